__version__ = '1.0.0'

from . import models, exceptions, defaults

from .api import HttpObjectStore
from .auth import Auth, AnonymousAuth
from .http import Session, CaseInsensitiveDict
from .store import ObjectStore
from .memory import MemoryObjectStore

from .worker_pool import BoundedWorkerPool
from .stream import UploadStream, open_upload_sink
from .iterators import ObjectIterator
from .client import StreamClient

from .utils import to_bytes, to_string

from .models import PartInfo, PartTransferTask
from .models import UPLOAD_STATE_UNDECIDED, UPLOAD_STATE_MULTIPART, UPLOAD_STATE_COMMITTED, UPLOAD_STATE_FAILED

import logging

logger = logging.getLogger('bucketstream')


def set_file_logger(file_path, name="bucketstream", level=logging.INFO, format_string=None):
    global logger
    if not format_string:
        format_string = "%(asctime)s %(name)s [%(levelname)s] %(thread)d : %(message)s"
    logger = logging.getLogger(name)
    logger.setLevel(level)
    fh = logging.FileHandler(file_path)
    fh.setLevel(level)
    formatter = logging.Formatter(format_string)
    fh.setFormatter(formatter)
    logger.addHandler(fh)


def set_stream_logger(name='bucketstream', level=logging.DEBUG, format_string=None):
    global logger
    if not format_string:
        format_string = "%(asctime)s %(name)s [%(levelname)s] %(thread)d : %(message)s"
    logger = logging.getLogger(name)
    logger.setLevel(level)
    fh = logging.StreamHandler()
    fh.setLevel(level)
    formatter = logging.Formatter(format_string)
    fh.setFormatter(formatter)
    logger.addHandler(fh)
