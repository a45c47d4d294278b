# -*- coding: utf-8 -*-

"""
bucketstream.memory
~~~~~~~~~~~~~~~~~~~

An object store that keeps every bucket in memory. Useful in tests, and wherever an upload stream
needs a store double. All operations are protected by one lock, so worker threads may call it concurrently.

Usage ::

    >>> store = MemoryObjectStore(list_page_size=3)
    >>> with open_upload_sink(store, 'bucket', 'key', part_size=100 * 1024) as sink:
    ...     sink.write(b'x' * 1000000)
    >>> len(store.object_content('bucket', 'key'))
    1000000
"""

import hashlib
import io
import logging
import threading
import time

from . import defaults
from . import exceptions
from .models import (RequestResult, PutObjectResult, InitMultipartUploadResult, GetObjectResult,
                     ListObjectsResult, SimplifiedObjectInfo)
from .store import ObjectStore
from .utils import to_bytes

logger = logging.getLogger(__name__)


def _make_error(klass, message):
    return klass(klass.status, {}, b'', {'Code': klass.code, 'Message': message})


def _etag(data):
    return hashlib.md5(data).hexdigest().upper()


class _StoredObject(object):
    def __init__(self, content, etag=None):
        self.content = content
        self.etag = etag or _etag(content)
        self.last_modified = int(time.time())


class _Upload(object):
    def __init__(self, bucket_name, key):
        self.bucket_name = bucket_name
        self.key = key

        # part_number -> _StoredObject
        self.parts = {}


class MemoryObjectStore(ObjectStore):
    """In-memory implementation of :class:`ObjectStore <bucketstream.store.ObjectStore>`.

    :param objects: initial content, a dict of bucket name to a dict of key to bytes
    :param list_page_size: the most keys one list_objects call returns, whatever max_keys asks for.
        None means no extra limit.
    """
    def __init__(self, objects=None, list_page_size=None):
        self.list_page_size = list_page_size

        self.__lock = threading.Lock()
        self.__buckets = {}
        self.__uploads = {}
        self.__next_upload_id = 1

        for bucket_name, bucket_objects in (objects or {}).items():
            for key, content in bucket_objects.items():
                self.add_object(bucket_name, key, content)

    def add_object(self, bucket_name, key, content):
        """Store `content` under `key` directly."""
        with self.__lock:
            self.__buckets.setdefault(bucket_name, {})[key] = _StoredObject(to_bytes(content))

    def object_content(self, bucket_name, key):
        """Return the content stored under `key`, or raise :class:`NoSuchKey <bucketstream.exceptions.NoSuchKey>`."""
        with self.__lock:
            return self.__get(bucket_name, key).content

    @property
    def uploads(self):
        """IDs of the multipart uploads that are neither completed nor aborted."""
        with self.__lock:
            return sorted(self.__uploads, key=int)

    def put_object(self, bucket_name, key, data, content_length):
        data = bytes(to_bytes(data))
        if content_length != len(data):
            raise _make_error(exceptions.InvalidArgument,
                              'Content-Length {0} does not match body size {1}'.format(content_length, len(data)))

        logger.debug("Put object, bucket: {0}, key: {1}, content_length: {2}".format(bucket_name, key, content_length))
        obj = _StoredObject(data)
        with self.__lock:
            self.__buckets.setdefault(bucket_name, {})[key] = obj

        return PutObjectResult(etag=obj.etag)

    def init_multipart_upload(self, bucket_name, key):
        with self.__lock:
            upload_id = str(self.__next_upload_id)
            self.__next_upload_id += 1
            self.__uploads[upload_id] = _Upload(bucket_name, key)

        logger.debug("Init multipart upload, bucket: {0}, key: {1}, upload_id: {2}".format(bucket_name, key, upload_id))
        return InitMultipartUploadResult(upload_id=upload_id)

    def upload_part(self, bucket_name, key, upload_id, part_number, data, content_length, is_last=False):
        data = bytes(to_bytes(data))
        if content_length != len(data):
            raise _make_error(exceptions.InvalidArgument,
                              'Content-Length {0} does not match body size {1}'.format(content_length, len(data)))

        if part_number < 1 or part_number > defaults.max_part_count:
            raise _make_error(exceptions.InvalidArgument, 'Part number {0} out of range'.format(part_number))

        part = _StoredObject(data)
        with self.__lock:
            upload = self.__get_upload(bucket_name, key, upload_id)
            upload.parts[part_number] = part

        logger.debug("Upload part, bucket: {0}, key: {1}, upload_id: {2}, part_number: {3}, size: {4}".format(
            bucket_name, key, upload_id, part_number, len(data)))
        return PutObjectResult(etag=part.etag)

    def complete_multipart_upload(self, bucket_name, key, upload_id, parts):
        with self.__lock:
            upload = self.__get_upload(bucket_name, key, upload_id)

            previous = 0
            for p in parts:
                if p.part_number <= previous:
                    raise _make_error(exceptions.InvalidPartOrder,
                                      'Part {0} listed after part {1}'.format(p.part_number, previous))
                previous = p.part_number

                stored = upload.parts.get(p.part_number)
                if stored is None or stored.etag != p.etag:
                    raise _make_error(exceptions.InvalidPart,
                                      'Part {0} with etag {1} was not uploaded'.format(p.part_number, p.etag))

            content = b''.join(upload.parts[p.part_number].content for p in parts)
            etag = '{0}-{1}'.format(_etag(b''.join(upload.parts[p.part_number].etag.encode('ascii') for p in parts)),
                                    len(parts))
            obj = _StoredObject(content, etag)

            self.__buckets.setdefault(bucket_name, {})[key] = obj
            del self.__uploads[upload_id]

        logger.debug("Complete multipart upload, bucket: {0}, key: {1}, upload_id: {2}, parts: {3}, size: {4}".format(
            bucket_name, key, upload_id, len(parts), len(content)))
        return PutObjectResult(etag=obj.etag)

    def abort_multipart_upload(self, bucket_name, key, upload_id):
        with self.__lock:
            self.__get_upload(bucket_name, key, upload_id)
            del self.__uploads[upload_id]

        logger.debug("Abort multipart upload, bucket: {0}, key: {1}, upload_id: {2}".format(bucket_name, key, upload_id))
        return RequestResult()

    def get_object(self, bucket_name, key):
        with self.__lock:
            obj = self.__get(bucket_name, key)

        return GetObjectResult(stream=io.BytesIO(obj.content), content_length=len(obj.content), etag=obj.etag)

    def list_objects(self, bucket_name, prefix='', marker='', max_keys=100):
        if max_keys < 1:
            raise _make_error(exceptions.InvalidArgument, 'max-keys must be positive: {0}'.format(max_keys))

        if self.list_page_size is not None:
            max_keys = min(max_keys, self.list_page_size)

        with self.__lock:
            bucket = self.__buckets.get(bucket_name, {})
            keys = sorted(k for k in bucket if k.startswith(prefix) and k > marker)
            infos = [SimplifiedObjectInfo(k, bucket[k].last_modified, bucket[k].etag, len(bucket[k].content))
                     for k in keys[:max_keys]]

        result = ListObjectsResult()
        result.object_list = infos
        result.is_truncated = len(keys) > max_keys
        if result.is_truncated:
            result.next_marker = infos[-1].key

        logger.debug("List objects, bucket: {0}, prefix: {1}, marker: {2}, returned: {3}, truncated: {4}".format(
            bucket_name, prefix, marker, len(infos), result.is_truncated))
        return result

    def __get(self, bucket_name, key):
        try:
            return self.__buckets[bucket_name][key]
        except KeyError:
            raise _make_error(exceptions.NoSuchKey, 'The specified key does not exist: {0}'.format(key))

    def __get_upload(self, bucket_name, key, upload_id):
        upload = self.__uploads.get(upload_id)
        if upload is None or upload.bucket_name != bucket_name or upload.key != key:
            raise _make_error(exceptions.NoSuchUpload, 'The specified upload does not exist: {0}'.format(upload_id))
        return upload
