# -*- coding: utf-8 -*-

import random
import string
import unittest
import io
import functools
import re
import threading

import xml
from xml.dom import minidom

import bucketstream

BUCKET_NAME = 'stream-bucket'

REQUEST_ID = '566AB62EB06147681C283D73'
ETAG = '7AE1A589ED6B161CAD94ACDB98206DA6'
UPLOAD_ID = '97BD544A65DB46F9A8735C93917A960F'


def random_string(n):
    return ''.join(random.choice(string.ascii_lowercase) for i in range(n))


def random_bytes(n):
    return bucketstream.to_bytes(random_string(n))


def store():
    return bucketstream.HttpObjectStore(bucketstream.Auth('fake-access-key-id', 'fake-access-key-secret'),
                                        'http://storage.example.com')


class RequestInfo(object):
    def __init__(self):
        self.req = None
        self.data = None
        self.resp = None
        self.size = None


class NonlocalObject(object):
    def __init__(self, value):
        self.var = value


def do4response(req, timeout, req_info=None, payload=None):
    if req_info:
        req_info.req = req

        if req.data is None:
            req_info.data = b''
            req_info.size = 0
        else:
            req_info.data = bucketstream.to_bytes(req.data)
            req_info.size = len(req_info.data)

    return MockResponse2(payload)


def mock_do_request(do_request, payload):
    req_info = RequestInfo()

    do_request.auto_spec = True
    do_request.side_effect = functools.partial(do4response, req_info=req_info, payload=payload)

    return req_info


def make_do4responses(req_infos, payloads):
    i = NonlocalObject(0)

    def do4responses(req, timeout):
        result = do4response(req, timeout, req_info=req_infos[i.var], payload=payloads[i.var])
        i.var += 1
        return result

    return do4responses


def query_to_params(query):
    params = {}
    for kv_pair in query.split('&'):
        kv = kv_pair.split('=', 1)
        if len(kv) == 2:
            params[kv[0]] = kv[1]
        else:
            params[kv[0]] = ''

    return params


def head_fields_to_headers(head_fields):
    headers = bucketstream.CaseInsensitiveDict()
    for header_kv in head_fields:
        kv = header_kv.split(':', 1)
        if len(kv) == 2:
            headers[kv[0].strip()] = kv[1].strip()
        else:
            headers[kv[0].strip()] = ''

    return headers


class MockRequest(object):
    def __init__(self, request_text):
        fields = re.split('\n\n', request_text, 1)
        head_fields = re.split('\n', fields[0])
        request_line_fields = head_fields[0].split()

        uri_query_fields = request_line_fields[1].split('?')
        if len(uri_query_fields) == 2:
            self.params = query_to_params(uri_query_fields[1])
        else:
            self.params = {}

        if len(fields) == 2:
            self.body = bucketstream.to_bytes(fields[1])
        else:
            self.body = b''

        self.method = request_line_fields[0]
        self.headers = head_fields_to_headers(head_fields[1:])
        self.url = 'http://' + self.headers['host'] + uri_query_fields[0]


class MockResponse2(object):
    def __init__(self, response_text):
        fields = re.split('\n\n', response_text, 1)
        head_fields = re.split('\n', fields[0])
        response_line_fields = head_fields[0].split(' ', 2)

        self.status = int(response_line_fields[1])
        self.headers = head_fields_to_headers(head_fields[1:])
        self.request_id = self.headers.get('x-oss-request-id', '')

        if len(fields) == 2:
            self.body = bucketstream.to_bytes(fields[1])
        else:
            self.body = b''

        self.__io = io.BytesIO(self.body)
        self.response = self

    def read(self, amt=None):
        return self.__io.read(amt)

    def close(self):
        self.__io.close()

    def __iter__(self):
        return self

    def __next__(self):
        content = self.read(8192)
        if not content:
            raise StopIteration
        return content


def _is_xml(content):
    try:
        minidom.parseString(content)
    except xml.parsers.expat.ExpatError:
        return False
    else:
        return True


class RecordingStore(bucketstream.MemoryObjectStore):
    """Memory store that counts calls, and optionally fails or delays chosen operations."""
    def __init__(self, fail_parts=None, fail_put=False, fail_complete=False, fail_abort=False, **kwargs):
        super(RecordingStore, self).__init__(**kwargs)
        self.fail_parts = set(fail_parts or [])
        self.fail_put = fail_put
        self.fail_complete = fail_complete
        self.fail_abort = fail_abort

        self.calls = []
        self.part_numbers = []
        self.part_sizes = {}
        self.last_flags = {}
        self.__lock = threading.Lock()

    def __record(self, name):
        with self.__lock:
            self.calls.append(name)

    def count(self, name):
        with self.__lock:
            return self.calls.count(name)

    def put_object(self, bucket_name, key, data, content_length):
        self.__record('put_object')
        if self.fail_put:
            raise make_server_error(bucketstream.exceptions.AccessDenied)
        return super(RecordingStore, self).put_object(bucket_name, key, data, content_length)

    def init_multipart_upload(self, bucket_name, key):
        self.__record('init_multipart_upload')
        return super(RecordingStore, self).init_multipart_upload(bucket_name, key)

    def upload_part(self, bucket_name, key, upload_id, part_number, data, content_length, is_last=False):
        self.__record('upload_part')
        with self.__lock:
            self.part_numbers.append(part_number)
            self.part_sizes[part_number] = content_length
            self.last_flags[part_number] = is_last

        if part_number in self.fail_parts:
            raise make_server_error(bucketstream.exceptions.ServerError, status=500, code='InternalError')
        return super(RecordingStore, self).upload_part(bucket_name, key, upload_id, part_number,
                                                       data, content_length, is_last=is_last)

    def complete_multipart_upload(self, bucket_name, key, upload_id, parts):
        self.__record('complete_multipart_upload')
        if self.fail_complete:
            raise make_server_error(bucketstream.exceptions.InvalidPart)
        return super(RecordingStore, self).complete_multipart_upload(bucket_name, key, upload_id, parts)

    def abort_multipart_upload(self, bucket_name, key, upload_id):
        self.__record('abort_multipart_upload')
        if self.fail_abort:
            raise bucketstream.exceptions.RequestError(IOError('connection reset'))
        return super(RecordingStore, self).abort_multipart_upload(bucket_name, key, upload_id)


def make_server_error(klass, status=None, code=None):
    status = status or klass.status
    code = code or klass.code
    return klass(status, {}, b'', {'Code': code, 'Message': 'injected'})


class StoreTestCase(unittest.TestCase):
    def __init__(self, *args, **kwargs):
        super(StoreTestCase, self).__init__(*args, **kwargs)
        self.default_connect_timeout = bucketstream.defaults.connect_timeout
        self.default_request_retries = bucketstream.defaults.request_retries
        self.default_part_size = bucketstream.defaults.part_size
        self.default_upload_num_threads = bucketstream.defaults.upload_num_threads
        self.default_max_part_count = bucketstream.defaults.max_part_count
        self.default_max_object_size = bucketstream.defaults.max_object_size

    def setUp(self):
        bucketstream.defaults.connect_timeout = self.default_connect_timeout
        bucketstream.defaults.request_retries = self.default_request_retries
        bucketstream.defaults.part_size = self.default_part_size
        bucketstream.defaults.upload_num_threads = self.default_upload_num_threads
        bucketstream.defaults.max_part_count = self.default_max_part_count
        bucketstream.defaults.max_object_size = self.default_max_object_size

    def tearDown(self):
        self.setUp()

    def assertXmlEqual(self, a, b):
        a = a.translate(None, b'\r\n')
        b = b.translate(None, b'\r\n')

        normalized_a = minidom.parseString(bucketstream.to_bytes(a)).toxml(encoding='utf-8')
        normalized_b = minidom.parseString(bucketstream.to_bytes(b)).toxml(encoding='utf-8')

        self.assertEqual(normalized_a, normalized_b)

    def assertUrlWithKey(self, url, key):
        self.assertEqual('http://' + BUCKET_NAME + '.storage.example.com/' + key, url)

    def assertRequest(self, req_info, request_text):
        req = req_info.req

        expected = MockRequest(request_text)

        self.assertEqual(req.method, expected.method)
        self.assertEqual(req.url, expected.url)

        for k, v in expected.params.items():
            self.assertTrue(k in req.params)
            self.assertEqual(req.params[k], v)

        if 'Content-Type' in expected.headers:
            self.assertEqual(req.headers.get('Content-Type'), expected.headers['Content-Type'])

        if _is_xml(expected.body):
            self.assertXmlEqual(req_info.data, expected.body)
        else:
            self.assertEqual(req_info.data, expected.body)
