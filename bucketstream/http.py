# -*- coding: utf-8 -*-

"""
bucketstream.http
~~~~~~~~~~~~~~~~~

HTTP adapters used by :class:`HttpObjectStore <bucketstream.api.HttpObjectStore>`.
`Session`, `Request` and `Response` are thin wrappers over the matching classes of requests.
"""

import logging
import platform

import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict

from . import __version__, defaults
from .exceptions import RequestError
from .utils import to_bytes

logger = logging.getLogger(__name__)


_USER_AGENT = 'bucketstream/{0}({1}/{2}/{3};{4})'.format(
    __version__, platform.system(), platform.release(), platform.machine(), platform.python_version())


class Session(object):
    """Requests of one Session share a connection pool; HTTP connections are reused where possible.

    Part transfers run on several worker threads, so the pool is sized by
    :data:`defaults.connection_pool_size <bucketstream.defaults.connection_pool_size>` unless told otherwise.
    """
    def __init__(self, pool_size=None):
        self.session = requests.Session()

        pool_size = defaults.get(pool_size, defaults.connection_pool_size)
        adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

    def do_request(self, req, timeout):
        try:
            logger.debug("Send request, method: {0}, url: {1}, params: {2}, headers: {3}, timeout: {4}".format(
                req.method, req.url, req.params, req.headers, timeout))
            return Response(self.session.request(req.method, req.url,
                                                 data=req.data,
                                                 params=req.params,
                                                 headers=req.headers,
                                                 stream=True,
                                                 timeout=timeout))
        except requests.RequestException as e:
            raise RequestError(e)


def _user_agent(app_name):
    if app_name:
        return _USER_AGENT + '/' + app_name
    return _USER_AGENT


class Request(object):
    """One store request. Headers are copied, so callers may reuse the dict they pass in."""
    def __init__(self, method, url,
                 data=None,
                 params=None,
                 headers=None,
                 app_name=''):
        self.method = method
        self.url = url
        self.data = to_bytes(data)
        self.params = params or {}

        self.headers = CaseInsensitiveDict(headers or {})
        # None keeps requests from adding 'Accept-Encoding: gzip, deflate'; bodies are passed through undecoded
        self.headers.setdefault('Accept-Encoding', None)
        self.headers.setdefault('User-Agent', _user_agent(app_name))


_CHUNK_SIZE = 8 * 1024


class Response(object):
    """Body of a streamed response. It is read in chunks so large objects are never held whole."""
    def __init__(self, response):
        self.response = response
        self.status = response.status_code
        self.headers = response.headers
        self.request_id = response.headers.get('x-oss-request-id') or response.headers.get('x-amz-request-id', '')

    def read(self, amt=None):
        if amt is not None:
            return next(self.response.iter_content(amt), b'')

        return b''.join(self.response.iter_content(_CHUNK_SIZE))

    def __iter__(self):
        return self.response.iter_content(_CHUNK_SIZE)
