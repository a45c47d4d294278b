# -*- coding: utf-8 -*-

"""
bucketstream.defaults
~~~~~~~~~~~~~~~~~~~~~

Global default variables. They are read at call time, so assigning a new
value here changes the behaviour of every stream opened afterwards.

"""

import logging


def get(value, default_value):
    if value is None:
        return default_value
    else:
        return value


#: connection timeout
connect_timeout = 60

#: retry count for listing pages that fail with a 5xx status
request_retries = 3

#: Part size, which is also the threshold for switching an upload stream to multipart upload.
part_size = 5 * 1024 * 1024

#: Number of worker threads, and so the number of parts in flight, per upload stream.
upload_num_threads = 3

#: The most parts one multipart upload may have.
max_part_count = 10000

#: The largest body a single put or a single part may carry.
max_part_size = 5 * 1024 * 1024 * 1024

#: The largest object the store accepts.
max_object_size = 5 * 1024 * 1024 * 1024 * 1024

#: Page size of list_objects calls made by iterators.
list_max_keys = 100

#: Connection pool size for each session.
connection_pool_size = 10

#: Default Logger
logger = logging.getLogger('bucketstream')


def get_logger():
    return logger
