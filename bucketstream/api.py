# -*- coding: utf-8 -*-

"""
bucketstream.api
~~~~~~~~~~~~~~~~

:class:`HttpObjectStore` implements the object store interface over the OSS/S3 style REST protocol.

Usage ::

    >>> import bucketstream
    >>> auth = bucketstream.Auth('your-access-key-id', 'your-access-key-secret')
    >>> store = bucketstream.HttpObjectStore(auth, 'http://storage.example.com')
    >>> with bucketstream.open_upload_sink(store, 'your-bucket', 'remote.txt') as sink:
    ...     sink.write(b'content of object')

Endpoints may be given with or without the scheme; 'http://' is assumed when it is missing.
Bucket names that are valid host labels are addressed virtual-host style (bucket.endpoint),
IP or localhost endpoints are addressed path style (endpoint/bucket).

One HttpObjectStore may be shared by several threads and upload streams. Each one holds a
:class:`Session <bucketstream.http.Session>`, and so a connection pool, unless a session is passed in.
"""

import logging
from urllib.parse import quote, urlparse

from . import defaults
from . import exceptions
from . import http
from . import models
from . import utils
from . import xml_utils
from .models import (RequestResult, PutObjectResult, InitMultipartUploadResult, GetObjectResult,
                     ListObjectsResult)
from .store import ObjectStore
from .utils import to_string

logger = logging.getLogger(__name__)


class _Base(object):
    def __init__(self, auth, endpoint, session, connect_timeout, app_name=''):
        self.auth = auth
        self.endpoint = _normalize_endpoint(endpoint.strip())
        self.session = session or http.Session()
        self.timeout = defaults.get(connect_timeout, defaults.connect_timeout)
        self.app_name = app_name

        self._make_url = _UrlMaker(self.endpoint)

    def _do(self, method, bucket_name, key, **kwargs):
        key = to_string(key)
        req = http.Request(method, self._make_url(bucket_name, key),
                           app_name=self.app_name,
                           **kwargs)
        self.auth._sign_request(req, bucket_name, key)

        resp = self.session.do_request(req, timeout=self.timeout)
        if resp.status // 100 != 2:
            e = exceptions.make_exception(resp)
            logger.error("Exception: {0}".format(e))
            raise e

        # Connections go back to the pool only after the whole body has been read.
        content_length = models._hget(resp.headers, 'content-length', int)
        if content_length is not None and content_length == 0:
            resp.read()

        return resp

    def _parse_result(self, resp, parse_func, klass):
        result = klass(resp)
        parse_func(result, resp.read())
        return result


class HttpObjectStore(_Base, ObjectStore):
    """Object store reached over HTTP.

    :param auth: :class:`Auth <bucketstream.auth.Auth>` or :class:`AnonymousAuth <bucketstream.auth.AnonymousAuth>`
    :param str endpoint: service address, e.g. 'http://storage.example.com' or 'http://127.0.0.1:9000'
    :param session: :class:`Session <bucketstream.http.Session>`; a new one is created when None
    :param connect_timeout: connection timeout in seconds, defaults to `defaults.connect_timeout`
    :param str app_name: appended to the User-Agent header
    """
    def __init__(self, auth, endpoint, session=None, connect_timeout=None, app_name=''):
        logger.debug("Init HttpObjectStore, endpoint: {0}, connect_timeout: {1}, app_name: {2}".format(
            endpoint, connect_timeout, app_name))
        super(HttpObjectStore, self).__init__(auth, endpoint, session, connect_timeout, app_name=app_name)

    def put_object(self, bucket_name, key, data, content_length):
        headers = http.CaseInsensitiveDict()
        headers['Content-Length'] = str(content_length)

        logger.debug("Start to put object, bucket: {0}, key: {1}, content_length: {2}".format(
            bucket_name, to_string(key), content_length))
        resp = self._do('PUT', bucket_name, key, data=data, headers=headers)
        logger.debug("Put object done, req_id: {0}, status_code: {1}".format(resp.request_id, resp.status))

        return PutObjectResult(resp)

    def init_multipart_upload(self, bucket_name, key):
        logger.debug("Start to init multipart upload, bucket: {0}, key: {1}".format(bucket_name, to_string(key)))
        resp = self._do('POST', bucket_name, key, params={'uploads': ''})
        logger.debug("Init multipart upload done, req_id: {0}, status_code: {1}".format(resp.request_id, resp.status))

        return self._parse_result(resp, xml_utils.parse_init_multipart_upload, InitMultipartUploadResult)

    def upload_part(self, bucket_name, key, upload_id, part_number, data, content_length, is_last=False):
        headers = http.CaseInsensitiveDict()
        headers['Content-Length'] = str(content_length)

        logger.debug(
            "Start to upload part, bucket: {0}, key: {1}, upload_id: {2}, part_number: {3}, size: {4}, last: {5}".format(
                bucket_name, to_string(key), upload_id, part_number, content_length, is_last))
        resp = self._do('PUT', bucket_name, key,
                        params={'uploadId': upload_id, 'partNumber': str(part_number)},
                        data=data,
                        headers=headers)
        logger.debug("Upload part done, req_id: {0}, status_code: {1}".format(resp.request_id, resp.status))

        return PutObjectResult(resp)

    def complete_multipart_upload(self, bucket_name, key, upload_id, parts):
        parts = sorted(parts, key=lambda p: p.part_number)
        data = xml_utils.to_complete_upload_request(parts)

        logger.debug("Start to complete multipart upload, bucket: {0}, key: {1}, upload_id: {2}, parts: {3}".format(
            bucket_name, to_string(key), upload_id, len(parts)))
        resp = self._do('POST', bucket_name, key,
                        params={'uploadId': upload_id},
                        data=data)
        logger.debug(
            "Complete multipart upload done, req_id: {0}, status_code: {1}".format(resp.request_id, resp.status))

        return self._parse_result(resp, xml_utils.parse_complete_multipart_upload, PutObjectResult)

    def abort_multipart_upload(self, bucket_name, key, upload_id):
        logger.debug("Start to abort multipart upload, bucket: {0}, key: {1}, upload_id: {2}".format(
            bucket_name, to_string(key), upload_id))
        resp = self._do('DELETE', bucket_name, key, params={'uploadId': upload_id})
        logger.debug("Abort multipart done, req_id: {0}, status_code: {1}".format(resp.request_id, resp.status))

        return RequestResult(resp)

    def get_object(self, bucket_name, key):
        logger.debug("Start to get object, bucket: {0}, key: {1}".format(bucket_name, to_string(key)))
        resp = self._do('GET', bucket_name, key)
        logger.debug("Get object done, req_id: {0}, status_code: {1}".format(resp.request_id, resp.status))

        return GetObjectResult(resp)

    def list_objects(self, bucket_name, prefix='', marker='', max_keys=100):
        logger.debug("Start to List objects, bucket: {0}, prefix: {1}, marker: {2}, max-keys: {3}".format(
            bucket_name, to_string(prefix), to_string(marker), max_keys))
        resp = self._do('GET', bucket_name, '',
                        params={'prefix': prefix,
                                'marker': marker,
                                'max-keys': str(max_keys),
                                'encoding-type': 'url'})
        logger.debug("List objects done, req_id: {0}, status_code: {1}".format(resp.request_id, resp.status))

        return self._parse_result(resp, xml_utils.parse_list_objects, ListObjectsResult)


def _normalize_endpoint(endpoint):
    if endpoint.startswith(('http://', 'https://')):
        return endpoint
    return 'http://' + endpoint


class _UrlMaker(object):
    """Virtual-host style (bucket.host/key) where the bucket name is a valid host label, path style
    (host/bucket/key) for IP or localhost endpoints and for every other bucket name."""
    def __init__(self, endpoint):
        p = urlparse(endpoint)

        self.scheme = p.scheme
        self.netloc = p.netloc
        self.path_style = utils.is_ip_or_localhost(p.netloc)

    def __call__(self, bucket_name, key):
        key = quote(key, '')

        if self.path_style or not utils.is_valid_bucket_name(bucket_name):
            host, path = self.netloc, '/{0}/{1}'.format(bucket_name, key)
        else:
            host, path = bucket_name + '.' + self.netloc, '/' + key

        return '{0}://{1}{2}'.format(self.scheme, host, path)
