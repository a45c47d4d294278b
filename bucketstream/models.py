# -*- coding: utf-8 -*-

"""
bucketstream.models
~~~~~~~~~~~~~~~~~~~

Input parameter and return value types of the store interface and of the
upload stream.
"""

import collections
import logging

from requests.structures import CaseInsensitiveDict

logger = logging.getLogger(__name__)


#: No byte has crossed the part size yet; close() will issue a single put.
UPLOAD_STATE_UNDECIDED = 'undecided'

#: A multipart upload was initiated; parts are being transferred.
UPLOAD_STATE_MULTIPART = 'multipart'

#: The object has been created on the store.
UPLOAD_STATE_COMMITTED = 'committed'

#: A store call failed, or the stream was abandoned. Nothing is committed.
UPLOAD_STATE_FAILED = 'failed'


class PartInfo(object):
    """Information of one part.

    Used both as the output of an upload stream (one per transferred part) and as the input of
    :func:`complete_multipart_upload <bucketstream.store.ObjectStore.complete_multipart_upload>`.

    :param int part_number: part number, starting from 1
    :param str etag: ETag the store returned for the part
    :param int size: part size in bytes
    :param int last_modified: UNIX time of the last modification
    """
    def __init__(self, part_number, etag, size=None, last_modified=None):
        self.part_number = part_number
        self.etag = etag
        self.size = size
        self.last_modified = last_modified

    def __repr__(self):
        return 'PartInfo(part_number={0}, etag={1!r}, size={2})'.format(self.part_number, self.etag, self.size)


class PartTransferTask(collections.namedtuple('PartTransferTask',
                                              ['bucket_name', 'key', 'upload_id', 'part_number', 'data', 'is_last'])):
    """One part buffer on its way to the store. The stream hands over its buffer and never touches it again."""
    __slots__ = ()

    @property
    def size(self):
        return len(self.data)


def _hget(headers, key, converter=lambda x: x):
    if key in headers:
        return converter(headers[key])
    else:
        return None


def _get_etag(headers):
    return _hget(headers, 'etag', lambda x: x.strip('"'))


class RequestResult(object):
    def __init__(self, resp=None):
        #: HTTP response, None when the result does not come from an HTTP store
        self.resp = resp

        if resp is None:
            self.status = 200
            self.headers = CaseInsensitiveDict()
            self.request_id = ''
            return

        #: HTTP status code
        self.status = resp.status

        #: HTTP headers
        self.headers = resp.headers

        #: Request ID, used to trace one request on the store side
        self.request_id = resp.request_id


class HeadObjectResult(RequestResult):
    def __init__(self, resp=None, content_length=None, etag=None):
        super(HeadObjectResult, self).__init__(resp)

        #: MIME type of the object
        self.content_type = _hget(self.headers, 'content-type')

        #: Content-Length, may be None
        self.content_length = content_length
        if self.content_length is None:
            self.content_length = _hget(self.headers, 'content-length', int)

        #: HTTP ETag
        self.etag = etag or _get_etag(self.headers)


class GetObjectResult(HeadObjectResult):
    """A file-like object over the content of a downloaded object."""
    def __init__(self, resp=None, stream=None, content_length=None, etag=None):
        super(GetObjectResult, self).__init__(resp, content_length=content_length, etag=etag)

        if stream is None:
            self.stream = resp
        else:
            self.stream = stream

    def read(self, amt=None):
        return self.stream.read(amt)

    def close(self):
        if self.resp is not None:
            self.resp.response.close()
        else:
            self.stream.close()

    def __iter__(self):
        return iter(self.stream)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class PutObjectResult(RequestResult):
    def __init__(self, resp=None, etag=None):
        super(PutObjectResult, self).__init__(resp)

        #: HTTP ETag
        self.etag = etag or _get_etag(self.headers)


class InitMultipartUploadResult(RequestResult):
    def __init__(self, resp=None, upload_id=None):
        super(InitMultipartUploadResult, self).__init__(resp)

        #: The new upload ID
        self.upload_id = upload_id


class ListObjectsResult(RequestResult):
    def __init__(self, resp=None):
        super(ListObjectsResult, self).__init__(resp)

        #: True if there are more objects to list; False if the listing is complete.
        self.is_truncated = False

        #: Paging marker of the next call, i.e. the `marker` argument of the next `list_objects`.
        self.next_marker = ''

        #: Objects of this page, as a list of :class:`SimplifiedObjectInfo`.
        self.object_list = []

        #: Common prefixes of this page, as a list of str.
        self.prefix_list = []


class SimplifiedObjectInfo(object):
    def __init__(self, key, last_modified, etag, size):
        #: Object key, or common prefix
        self.key = key

        #: Last modified time of the object
        self.last_modified = last_modified

        #: HTTP ETag
        self.etag = etag

        #: Object size
        self.size = size

    def is_prefix(self):
        """True for a common prefix, False for an object"""
        return self.last_modified is None

    def __repr__(self):
        return 'SimplifiedObjectInfo(key={0!r}, size={1})'.format(self.key, self.size)
