# -*- coding: utf-8 -*-

"""
bucketstream.stream
~~~~~~~~~~~~~~~~~~~

Sequential-write sink that uploads an object of unknown size with bounded memory.

Usage ::

    >>> with open_upload_sink(store, 'bucket', 'logs/2024-01-01.gz') as sink:
    ...     for chunk in produce():
    ...         sink.write(chunk)

Bytes are collected in a buffer of `part_size` bytes. As long as the whole object fits in that buffer,
closing the stream creates it with one put. When more bytes arrive while the buffer is already full, the
stream starts a multipart upload and from then on hands every full buffer to a worker pool as one part.
Submitting a part blocks while `num_threads` parts are in flight, so the memory held by one stream
never exceeds (num_threads + 1) * part_size.

An upload stream is not thread-safe: it must be written and closed by one thread.
"""

import logging

from . import defaults
from .exceptions import ClientError, StreamClosed, PartCountExceeded, ObjectTooLarge
from .models import (PartInfo, PartTransferTask,
                     UPLOAD_STATE_UNDECIDED, UPLOAD_STATE_MULTIPART, UPLOAD_STATE_COMMITTED, UPLOAD_STATE_FAILED)
from .utils import to_bytes
from .worker_pool import BoundedWorkerPool

logger = logging.getLogger(__name__)


def open_upload_sink(store, bucket_name, key, **kwargs):
    """Open an upload stream to `bucket_name`/`key`.

    :param store: :class:`ObjectStore <bucketstream.store.ObjectStore>`
    :param kwargs: passed on to :class:`UploadStream`

    :return: :class:`UploadStream`
    """
    return UploadStream(store, bucket_name, key, **kwargs)


class UploadStream(object):
    """Write interface of one upload session.

    :param store: :class:`ObjectStore <bucketstream.store.ObjectStore>` the object is created in
    :param str bucket_name: bucket name
    :param str key: object key
    :param int part_size: part size, and the largest object still created with a single put.
        Defaults to `defaults.part_size`.
    :param int num_threads: number of parts transferred concurrently, defaults to `defaults.upload_num_threads`
    :param int max_part_count: the most parts one upload may use, defaults to `defaults.max_part_count`
    """
    def __init__(self, store, bucket_name, key,
                 part_size=None,
                 num_threads=None,
                 max_part_count=None):
        self.__store = store
        self.__bucket_name = bucket_name
        self.__key = key
        self.__part_size = defaults.get(part_size, defaults.part_size)
        self.__num_threads = defaults.get(num_threads, defaults.upload_num_threads)
        self.__max_part_count = defaults.get(max_part_count, defaults.max_part_count)
        self.__max_object_size = defaults.max_object_size

        if self.__part_size < 1 or self.__part_size > defaults.max_part_size:
            raise ClientError('part_size must be between 1 and {0}, got {1}'.format(
                defaults.max_part_size, self.__part_size))
        if self.__num_threads < 1:
            raise ClientError('num_threads must be at least 1, got {0}'.format(self.__num_threads))
        if self.__max_part_count < 1:
            raise ClientError('max_part_count must be at least 1, got {0}'.format(self.__max_part_count))

        self.__state = UPLOAD_STATE_UNDECIDED
        self.__buffer = bytearray()
        self.__bytes_written = 0
        self.__upload_id = None
        self.__next_part_number = 1
        self.__pool = None

        # every submitted part in submission order, and those not yet seen to succeed
        self.__futures = []
        self.__pending = []

        self.__parts = []
        self.__abort_error = None

        logger.debug("Open upload stream, bucket: {0}, key: {1}, part_size: {2}, num_threads: {3}".format(
            bucket_name, key, self.__part_size, self.__num_threads))

    @property
    def state(self):
        return self.__state

    @property
    def closed(self):
        return self.__state in (UPLOAD_STATE_COMMITTED, UPLOAD_STATE_FAILED)

    @property
    def upload_id(self):
        """ID of the multipart upload, None while the stream has not switched to multipart."""
        return self.__upload_id

    @property
    def bytes_written(self):
        return self.__bytes_written

    @property
    def part_size(self):
        return self.__part_size

    @property
    def parts(self):
        """:class:`PartInfo <bucketstream.models.PartInfo>` of every part, once a multipart upload is committed."""
        return list(self.__parts)

    @property
    def abort_error(self):
        """The error the cleanup abort raised, if it failed."""
        return self.__abort_error

    def write(self, data):
        """Append `data` to the object.

        :param data: bytes, bytearray, memoryview or str (encoded as UTF-8)

        :return: number of bytes accepted
        :raises StreamClosed: the stream was already committed or has failed
        """
        if self.closed:
            raise StreamClosed('write to a {0} upload stream, bucket: {1}, key: {2}'.format(
                self.__state, self.__bucket_name, self.__key))

        view = memoryview(to_bytes(data))
        if not view.c_contiguous:
            view = memoryview(view.tobytes())
        view = view.cast('B')
        total = len(view)

        try:
            if self.__bytes_written + total > self.__max_object_size:
                raise ObjectTooLarge('object would exceed {0} bytes, bucket: {1}, key: {2}'.format(
                    self.__max_object_size, self.__bucket_name, self.__key))

            self.__raise_if_transfer_failed()

            offset = 0
            while offset < total:
                if len(self.__buffer) == self.__part_size:
                    self.__flush()

                n = min(self.__part_size - len(self.__buffer), total - offset)
                self.__buffer += view[offset:offset + n]
                self.__bytes_written += n
                offset += n
        except Exception as e:
            logger.error("Write to upload stream failed, bucket: {0}, key: {1}, upload_id: {2}, error: {3}".format(
                self.__bucket_name, self.__key, self.__upload_id, e))
            self.__abandon()
            raise

        return total

    def close(self):
        """Create the object from everything written.

        Without a multipart upload this is a single put. Otherwise the buffered bytes are sent as the
        last part, every part is waited for, and the upload is completed. If anything fails, the multipart
        upload is aborted and the stream fails before the error is raised.

        Closing a stream that is already committed or has failed does nothing and returns None.

        :return: :class:`PutObjectResult <bucketstream.models.PutObjectResult>`
        """
        if self.closed:
            return None

        try:
            if self.__state == UPLOAD_STATE_UNDECIDED:
                logger.debug("Put object from upload stream, bucket: {0}, key: {1}, size: {2}".format(
                    self.__bucket_name, self.__key, len(self.__buffer)))
                result = self.__store.put_object(self.__bucket_name, self.__key,
                                                 self.__buffer, len(self.__buffer))
                parts = []
            else:
                self.__submit_buffer(is_last=True)
                parts = [f.result() for f in self.__futures]

                logger.debug("Complete upload stream, bucket: {0}, key: {1}, upload_id: {2}, parts: {3}".format(
                    self.__bucket_name, self.__key, self.__upload_id, len(parts)))
                result = self.__store.complete_multipart_upload(self.__bucket_name, self.__key,
                                                                self.__upload_id, parts)
        except Exception as e:
            logger.error("Close upload stream failed, bucket: {0}, key: {1}, upload_id: {2}, error: {3}".format(
                self.__bucket_name, self.__key, self.__upload_id, e))
            self.__abandon()
            raise

        self.__state = UPLOAD_STATE_COMMITTED
        self.__parts = parts
        self.__buffer = bytearray()
        if self.__pool is not None:
            self.__pool.shutdown(wait=True)

        logger.debug("Upload stream committed, bucket: {0}, key: {1}, size: {2}".format(
            self.__bucket_name, self.__key, self.__bytes_written))
        return result

    def finalize(self):
        """Same as :func:`close`."""
        return self.close()

    def abort(self):
        """Give up the object: abort the multipart upload, if any, and drop buffered bytes.

        Does nothing once the stream is committed or has failed. Raises the error of the abort call if it fails.
        """
        if self.closed:
            return

        logger.debug("Abort upload stream, bucket: {0}, key: {1}, upload_id: {2}".format(
            self.__bucket_name, self.__key, self.__upload_id))
        self.__abandon()

        if self.__abort_error is not None:
            raise self.__abort_error

    def __flush(self):
        if self.__next_part_number >= self.__max_part_count:
            raise PartCountExceeded('object needs more than {0} parts of {1} bytes, bucket: {2}, key: {3}'.format(
                self.__max_part_count, self.__part_size, self.__bucket_name, self.__key))

        if self.__state == UPLOAD_STATE_UNDECIDED:
            self.__start_multipart()

        self.__submit_buffer(is_last=False)

    def __start_multipart(self):
        result = self.__store.init_multipart_upload(self.__bucket_name, self.__key)

        self.__upload_id = result.upload_id
        self.__state = UPLOAD_STATE_MULTIPART
        self.__pool = BoundedWorkerPool(self.__num_threads)

        logger.debug("Upload stream switched to multipart, bucket: {0}, key: {1}, upload_id: {2}".format(
            self.__bucket_name, self.__key, self.__upload_id))

    def __submit_buffer(self, is_last):
        task = PartTransferTask(self.__bucket_name, self.__key, self.__upload_id,
                                self.__next_part_number, self.__buffer, is_last)
        self.__next_part_number += 1
        self.__buffer = bytearray()

        self.__raise_if_transfer_failed()

        logger.debug("Submit part, bucket: {0}, key: {1}, upload_id: {2}, part_number: {3}, size: {4}".format(
            task.bucket_name, task.key, task.upload_id, task.part_number, task.size))
        future = self.__pool.submit(self.__upload_part, task)
        self.__futures.append(future)
        self.__pending.append(future)

        self.__raise_if_transfer_failed()

    def __upload_part(self, task):
        result = self.__store.upload_part(task.bucket_name, task.key, task.upload_id, task.part_number,
                                          task.data, task.size, is_last=task.is_last)
        return PartInfo(task.part_number, result.etag, size=task.size)

    def __raise_if_transfer_failed(self):
        pending = []
        for future in self.__pending:
            if not future.done():
                pending.append(future)
                continue

            e = future.exception()
            if e is not None:
                raise e

        self.__pending = pending

    def __abandon(self):
        self.__state = UPLOAD_STATE_FAILED
        self.__buffer = bytearray()

        if self.__upload_id is not None:
            try:
                self.__store.abort_multipart_upload(self.__bucket_name, self.__key, self.__upload_id)
            except Exception as e:
                logger.exception("Abort multipart upload failed, bucket: {0}, key: {1}, upload_id: {2}".format(
                    self.__bucket_name, self.__key, self.__upload_id))
                self.__abort_error = e

        if self.__pool is not None:
            self.__pool.shutdown(wait=False)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.close()
        elif not self.closed:
            logger.debug("Upload stream left with {0}, aborting, bucket: {1}, key: {2}".format(
                exc_type.__name__, self.__bucket_name, self.__key))
            self.__abandon()
