# -*- coding: utf-8 -*-

"""
bucketstream.store
~~~~~~~~~~~~~~~~~~

The object store interface an upload stream writes through.

Implementations are called from several worker threads at once and must be thread-safe.
:class:`HttpObjectStore <bucketstream.api.HttpObjectStore>` talks to a real store over HTTP,
:class:`MemoryObjectStore <bucketstream.memory.MemoryObjectStore>` keeps everything in memory.
"""

import abc


class ObjectStore(metaclass=abc.ABCMeta):
    """Bucket/key addressed object store with single put and multipart upload."""

    @abc.abstractmethod
    def put_object(self, bucket_name, key, data, content_length):
        """Create or overwrite an object in one request.

        :param str bucket_name: bucket name
        :param str key: object key
        :param data: full object content, bytes or bytearray
        :param int content_length: must equal len(data)

        :return: :class:`PutObjectResult <bucketstream.models.PutObjectResult>`
        """
        pass

    @abc.abstractmethod
    def init_multipart_upload(self, bucket_name, key):
        """Start a multipart upload.

        :return: :class:`InitMultipartUploadResult <bucketstream.models.InitMultipartUploadResult>`
        """
        pass

    @abc.abstractmethod
    def upload_part(self, bucket_name, key, upload_id, part_number, data, content_length, is_last=False):
        """Upload one part. The returned ETag identifies the part on completion.

        :param int part_number: part number, starting from 1
        :param data: part content, bytes or bytearray
        :param bool is_last: whether this is the final part of the upload

        :return: :class:`PutObjectResult <bucketstream.models.PutObjectResult>`
        """
        pass

    @abc.abstractmethod
    def complete_multipart_upload(self, bucket_name, key, upload_id, parts):
        """Assemble the uploaded parts into the object.

        :param parts: list of :class:`PartInfo <bucketstream.models.PartInfo>`, ascending by part number

        :return: :class:`PutObjectResult <bucketstream.models.PutObjectResult>`
        """
        pass

    @abc.abstractmethod
    def abort_multipart_upload(self, bucket_name, key, upload_id):
        """Drop a multipart upload and every part uploaded to it.

        :return: :class:`RequestResult <bucketstream.models.RequestResult>`
        """
        pass

    @abc.abstractmethod
    def get_object(self, bucket_name, key):
        """:return: file-like :class:`GetObjectResult <bucketstream.models.GetObjectResult>`"""
        pass

    @abc.abstractmethod
    def list_objects(self, bucket_name, prefix='', marker='', max_keys=100):
        """List one page of objects whose keys start with `prefix`, after `marker`.

        :return: :class:`ListObjectsResult <bucketstream.models.ListObjectsResult>`
        """
        pass
