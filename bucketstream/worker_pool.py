# -*- coding: utf-8 -*-

"""
bucketstream.worker_pool
~~~~~~~~~~~~~~~~~~~~~~~~

A fixed-size thread pool whose submit() blocks while every worker is busy.

Usage ::

    >>> with BoundedWorkerPool(2) as pool:
    ...     futures = [pool.submit(pow, 2, n) for n in range(5)]
    >>> [f.result() for f in futures]
    [1, 2, 4, 8, 16]

At most `num_threads` units of work run at the same time. The (num_threads + 1)th caller of submit()
waits until one of them finishes, which keeps a fast producer from queueing an unbounded amount of data.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from . import defaults
from .defaults import get_logger
from .exceptions import ClientError


class BoundedWorkerPool(object):
    """Worker pool with a blocking, bounded submit.

    :param int num_threads: number of worker threads and of permits, defaults to `defaults.upload_num_threads`
    """
    def __init__(self, num_threads=None):
        num_threads = defaults.get(num_threads, defaults.upload_num_threads)
        if num_threads < 1:
            raise ClientError('num_threads must be at least 1, got {0}'.format(num_threads))

        self.__num_threads = num_threads
        self.__permits = threading.BoundedSemaphore(num_threads)
        self.__executor = ThreadPoolExecutor(max_workers=num_threads, thread_name_prefix='bucketstream-worker')
        self.__lock = threading.Lock()
        self.__is_shutdown = False

    @property
    def num_threads(self):
        return self.__num_threads

    @property
    def is_shutdown(self):
        return self.__is_shutdown

    def submit(self, fn, *args, **kwargs):
        """Run `fn(*args, **kwargs)` on a worker thread, waiting first for a free worker if there is none.

        The permit is released as soon as `fn` returns or raises, before any callback added to the
        returned future runs.

        :return: :class:`concurrent.futures.Future`
        """
        self.__check_open()

        self.__permits.acquire()
        try:
            self.__check_open()
            future = self.__executor.submit(fn, *args, **kwargs)
        except ClientError:
            self.__permits.release()
            raise
        except RuntimeError as e:
            self.__permits.release()
            raise ClientError('worker pool rejected task: {0}'.format(e))

        future.add_done_callback(self.__release)
        return future

    def shutdown(self, wait=True):
        """Stop accepting work. With `wait`, block until every submitted unit has finished."""
        with self.__lock:
            self.__is_shutdown = True

        get_logger().debug("Shutdown worker pool, threads: {0}, wait: {1}".format(self.__num_threads, wait))
        self.__executor.shutdown(wait=wait)

    def __release(self, future):
        self.__permits.release()

    def __check_open(self):
        with self.__lock:
            if self.__is_shutdown:
                raise ClientError('worker pool has been shut down')

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
