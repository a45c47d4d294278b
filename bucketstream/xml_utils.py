# -*- coding: utf-8 -*-

"""
bucketstream.xml_utils
~~~~~~~~~~~~~~~~~~~~~~

XML bodies of the HTTP store adapter:
    - parse_ functions fill a result object from a response body
    - to_ functions build a request body
"""

import xml.etree.ElementTree as ElementTree
from urllib.parse import unquote

from .models import SimplifiedObjectInfo
from .utils import iso8601_to_unixtime, to_string


def _text(parent, path):
    node = parent.find(path)
    if node is None:
        raise RuntimeError('parse xml: {0} could not be found under {1}'.format(path, parent.tag))

    return to_string(node.text or '')


def _key_text(parent, path, url_encoded):
    """Keys, prefixes and markers come back percent-encoded when the listing asked for encoding-type=url."""
    value = _text(parent, path)
    return unquote(value) if url_encoded else value


def _bool_text(parent, path):
    value = _text(parent, path)
    if value not in ('true', 'false'):
        raise RuntimeError('parse xml: value of {0} is not a boolean under {1}'.format(path, parent.tag))

    return value == 'true'


def parse_list_objects(result, body):
    root = ElementTree.fromstring(body)
    url_encoded = root.findtext('EncodingType') == 'url'

    result.is_truncated = _bool_text(root, 'IsTruncated')
    if result.is_truncated:
        result.next_marker = _key_text(root, 'NextMarker', url_encoded)

    for node in root.iterfind('Contents'):
        result.object_list.append(SimplifiedObjectInfo(_key_text(node, 'Key', url_encoded),
                                                       iso8601_to_unixtime(_text(node, 'LastModified')),
                                                       _text(node, 'ETag').strip('"'),
                                                       int(_text(node, 'Size'))))

    result.prefix_list.extend(_key_text(node, 'Prefix', url_encoded) for node in root.iterfind('CommonPrefixes'))

    return result


def parse_init_multipart_upload(result, body):
    result.upload_id = _text(ElementTree.fromstring(body), 'UploadId')
    return result


def parse_complete_multipart_upload(result, body):
    """Take the object ETag from the body when the response headers do not carry one."""
    if result.etag or not body:
        return result

    etag = ElementTree.fromstring(body).findtext('ETag')
    if etag:
        result.etag = to_string(etag).strip('"')

    return result


def to_complete_upload_request(parts):
    """Body of CompleteMultipartUpload. `parts` must already be in ascending part number order."""
    root = ElementTree.Element('CompleteMultipartUpload')
    for p in parts:
        node = ElementTree.SubElement(root, 'Part')
        ElementTree.SubElement(node, 'PartNumber').text = str(p.part_number)
        ElementTree.SubElement(node, 'ETag').text = '"{0}"'.format(p.etag)

    return ElementTree.tostring(root, encoding='utf-8')
