# -*- coding: utf-8 -*-

"""
bucketstream.client
~~~~~~~~~~~~~~~~~~~

Caller-facing entry point bundling the upload stream, the download pass-through and listing over one store.

Usage ::

    >>> client = StreamClient(HttpObjectStore(Auth('id', 'secret'), 'storage.example.com'))
    >>> with client.open_upload_sink('bucket', 'a.txt') as sink:
    ...     sink.write(b'hello')
    >>> client.get_object('bucket', 'a.txt').read()
    b'hello'
    >>> [obj.key for obj in client.list_objects('bucket', prefix='a')]
    ['a.txt']
"""

import logging

from .iterators import ObjectIterator
from .stream import UploadStream

logger = logging.getLogger(__name__)


class StreamClient(object):
    """
    :param store: :class:`ObjectStore <bucketstream.store.ObjectStore>` every call goes to
    """
    def __init__(self, store):
        self.store = store

    def open_upload_sink(self, bucket_name, key, **kwargs):
        """Open an :class:`UploadStream <bucketstream.stream.UploadStream>` to `bucket_name`/`key`.

        :param kwargs: part_size, num_threads and max_part_count of the stream
        """
        return UploadStream(self.store, bucket_name, key, **kwargs)

    def get_object(self, bucket_name, key):
        """Download an object.

        :return: file-like :class:`GetObjectResult <bucketstream.models.GetObjectResult>`
        """
        return self.store.get_object(bucket_name, key)

    def list_objects(self, bucket_name, prefix='', max_keys=None):
        """Iterate over every object of the bucket whose key starts with `prefix`, across pages.

        :param max_keys: keys per page, defaults to `defaults.list_max_keys`

        :return: :class:`ObjectIterator <bucketstream.iterators.ObjectIterator>`
        """
        return ObjectIterator(self.store, bucket_name, prefix=prefix, max_keys=max_keys)
