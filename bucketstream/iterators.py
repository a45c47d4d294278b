# -*- coding: utf-8 -*-

"""
bucketstream.iterators
~~~~~~~~~~~~~~~~~~~~~~

Iterators that walk a paginated listing of a store.
"""

import logging

from .models import SimplifiedObjectInfo
from .exceptions import ServerError

from . import defaults

logger = logging.getLogger(__name__)


class _BaseIterator(object):
    def __init__(self, marker, max_retries):
        self.is_truncated = True
        self.next_marker = marker

        max_retries = defaults.get(max_retries, defaults.request_retries)
        self.max_retries = max_retries if max_retries > 0 else 1

        self.entries = []

    def _fetch(self):
        raise NotImplementedError    # pragma: no cover

    def __iter__(self):
        return self

    def __next__(self):
        while True:
            if self.entries:
                return self.entries.pop(0)

            if not self.is_truncated:
                raise StopIteration

            self.fetch_with_retry()

    def fetch_with_retry(self):
        for i in range(self.max_retries):
            try:
                self.is_truncated, self.next_marker = self._fetch()
            except ServerError as e:
                if e.status // 100 != 5:
                    raise

                if i == self.max_retries - 1:
                    raise

                logger.warning("Fetch page failed with status {0}, retry {1} of {2}".format(
                    e.status, i + 1, self.max_retries - 1))
            else:
                return


class ObjectIterator(_BaseIterator):
    """Iterator over the objects of a bucket.

    Each iteration returns a :class:`SimplifiedObjectInfo <bucketstream.models.SimplifiedObjectInfo>`.
    Pages are fetched lazily, following `next_marker` for as long as the listing is truncated.

    :param store: :class:`ObjectStore <bucketstream.store.ObjectStore>` instance
    :param bucket_name: bucket name
    :param prefix: only objects whose key starts with prefix are listed
    :param marker: paging marker, only keys after it are listed
    :param max_keys: keys per `list_objects` call, defaults to `defaults.list_max_keys`.
        The iterator itself may return more than that in total.
    """
    def __init__(self, store, bucket_name, prefix='', marker='', max_keys=None, max_retries=None):
        super(ObjectIterator, self).__init__(marker, max_retries)

        self.store = store
        self.bucket_name = bucket_name
        self.prefix = prefix
        self.max_keys = defaults.get(max_keys, defaults.list_max_keys)

    def _fetch(self):
        result = self.store.list_objects(self.bucket_name,
                                         prefix=self.prefix,
                                         marker=self.next_marker,
                                         max_keys=self.max_keys)
        self.entries = result.object_list + [SimplifiedObjectInfo(prefix, None, None, None)
                                             for prefix in result.prefix_list]
        self.entries.sort(key=lambda obj: obj.key)

        return result.is_truncated, result.next_marker
