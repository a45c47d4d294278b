# -*- coding: utf-8 -*-

"""
bucketstream.auth
~~~~~~~~~~~~~~~~~

Request signing for :class:`HttpObjectStore <bucketstream.api.HttpObjectStore>`.

Requests are signed with HMAC-SHA1 over::

    METHOD \\n Content-MD5 \\n Content-Type \\n Date \\n [x-oss-* headers \\n ...] /bucket/key[?subresources]

and carry the result as ``Authorization: OSS <AccessKeyId>:<signature>``.
"""

import hashlib
import hmac
import logging

from . import utils
from .utils import to_bytes

logger = logging.getLogger(__name__)


# Query parameters that take part in the signature. Listing parameters such as prefix or marker do not.
_SIGNED_SUBRESOURCES = frozenset(['uploads', 'uploadId', 'partNumber'])

_SIGNED_HEADER_PREFIX = 'x-oss-'


class Auth(object):
    """Signs every request with an AccessKeyId / AccessKeySecret pair.

    :param str access_key_id: AccessKeyId
    :param str access_key_secret: AccessKeySecret
    """
    def __init__(self, access_key_id, access_key_secret):
        logger.debug("Init Auth: access_key_id: {0}, access_key_secret: ******".format(access_key_id))
        self.id = access_key_id.strip()
        self.secret = access_key_secret.strip()

    def _sign_request(self, req, bucket_name, key):
        req.headers['date'] = utils.http_date()

        string_to_sign = _string_to_sign(req, bucket_name, key)
        logger.debug('Make signature: string to be signed = {0}'.format(string_to_sign))

        digest = hmac.new(to_bytes(self.secret), to_bytes(string_to_sign), hashlib.sha1).digest()
        req.headers['authorization'] = 'OSS {0}:{1}'.format(self.id, utils.b64encode_as_string(digest))


class AnonymousAuth(object):
    """Anonymous access. Requests go out unsigned, so only public buckets are reachable."""
    def _sign_request(self, req, bucket_name, key):
        pass


def _string_to_sign(req, bucket_name, key):
    headers = req.headers

    lines = [req.method,
             headers.get('content-md5', ''),
             headers.get('content-type', ''),
             headers.get(_SIGNED_HEADER_PREFIX + 'date', '') or headers.get('date', '')]
    lines.extend(_canonical_headers(headers))
    lines.append(_canonical_resource(req.params, bucket_name, key))

    return '\n'.join(lines)


def _canonical_headers(headers):
    signed = sorted((k.lower(), v) for k, v in headers.items() if k.lower().startswith(_SIGNED_HEADER_PREFIX))
    return [k + ':' + v for k, v in signed]


def _canonical_resource(params, bucket_name, key):
    if bucket_name:
        resource = '/{0}/{1}'.format(bucket_name, key)
    else:
        resource = '/'

    subresources = sorted((k, v) for k, v in (params or {}).items() if k in _SIGNED_SUBRESOURCES)
    if not subresources:
        return resource

    return resource + '?' + '&'.join(k + '=' + str(v) if v else k for k, v in subresources)
