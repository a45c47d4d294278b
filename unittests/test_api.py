# -*- coding: utf-8 -*-

import requests
from mock import patch

from unittests.common import *

from bucketstream import HttpObjectStore, AnonymousAuth, Auth, PartInfo, UploadStream
from bucketstream.exceptions import NoSuchKey, NoSuchUpload, AccessDenied, ServerError, RequestError


class TestHttpObjectStore(StoreTestCase):
    @patch('bucketstream.Session.do_request')
    def test_put_object(self, do_request):
        payload = '''HTTP/1.1 200 OK
Server: ObjectStore
Date: Sat, 12 Dec 2015 00:35:53 GMT
Content-Length: 0
Connection: keep-alive
x-oss-request-id: 566B6BE93A7B8CFD53D4BAA3
ETag: "D80CF0E5BE2436514894D64B2BCFB2AE"'''

        req_info = mock_do_request(do_request, payload)

        result = store().put_object(BUCKET_NAME, 'sjbhlsgsbecvlpbf.txt', b'hello world', 11)

        self.assertRequest(req_info, '''PUT /sjbhlsgsbecvlpbf.txt HTTP/1.1
Host: stream-bucket.storage.example.com
Content-Length: 11

hello world''')
        self.assertEqual(req_info.req.headers['Content-Length'], '11')
        self.assertTrue('Content-Type' not in req_info.req.headers)
        self.assertTrue(req_info.req.headers['authorization'].startswith('OSS fake-access-key-id:'))

        self.assertEqual(result.etag, 'D80CF0E5BE2436514894D64B2BCFB2AE')
        self.assertEqual(result.request_id, '566B6BE93A7B8CFD53D4BAA3')
        self.assertEqual(result.status, 200)

    @patch('bucketstream.Session.do_request')
    def test_init_multipart_upload(self, do_request):
        payload = '''HTTP/1.1 200 OK
Server: ObjectStore
Date: Sat, 12 Dec 2015 00:35:55 GMT
Content-Type: application/xml
Content-Length: 232
Connection: keep-alive
x-oss-request-id: 566B6BEB1BA604C27DD43805

<?xml version="1.0" encoding="UTF-8"?>
<InitiateMultipartUploadResult>
  <Bucket>stream-bucket</Bucket>
  <Key>uosvelpvgjwtxaciqtxoplnx</Key>
  <UploadId>97BD544A65DB46F9A8735C93917A960F</UploadId>
</InitiateMultipartUploadResult>
'''

        req_info = mock_do_request(do_request, payload)

        result = store().init_multipart_upload(BUCKET_NAME, 'uosvelpvgjwtxaciqtxoplnx')

        self.assertEqual(req_info.req.method, 'POST')
        self.assertEqual(req_info.req.params['uploads'], '')
        self.assertTrue('Content-Type' not in req_info.req.headers)
        self.assertUrlWithKey(req_info.req.url, 'uosvelpvgjwtxaciqtxoplnx')

        self.assertEqual(result.upload_id, UPLOAD_ID)

    @patch('bucketstream.Session.do_request')
    def test_upload_part(self, do_request):
        payload = '''HTTP/1.1 200 OK
Server: ObjectStore
Date: Sat, 12 Dec 2015 00:35:59 GMT
Content-Length: 0
Connection: keep-alive
x-oss-request-id: 566B6BEF6078C0E44874A4AD
ETag: "DF1F9DE8F39BDE03716AC8D425589A5A"'''

        content = random_bytes(1024 * 1024 + 1)
        req_info = mock_do_request(do_request, payload)

        result = store().upload_part(BUCKET_NAME, 'tmmzgvvmsgesihfo', '41337E94168A4E6F918C3D6CAAFADCCD', 3,
                                     content, len(content), is_last=True)

        self.assertEqual(req_info.req.method, 'PUT')
        self.assertEqual(req_info.data, content)
        self.assertEqual(req_info.req.params['partNumber'], '3')
        self.assertEqual(req_info.req.params['uploadId'], '41337E94168A4E6F918C3D6CAAFADCCD')
        self.assertEqual(req_info.req.headers['Content-Length'], str(len(content)))
        self.assertUrlWithKey(req_info.req.url, 'tmmzgvvmsgesihfo')

        self.assertEqual(result.etag, 'DF1F9DE8F39BDE03716AC8D425589A5A')

    @patch('bucketstream.Session.do_request')
    def test_complete_multipart_upload(self, do_request):
        payload = '''HTTP/1.1 200 OK
Server: ObjectStore
Date: Sat, 12 Dec 2015 00:36:26 GMT
Content-Type: application/xml
Content-Length: 327
Connection: keep-alive
x-oss-request-id: 566B6C0A05200A20B174994F

<?xml version="1.0" encoding="UTF-8"?>
<CompleteMultipartUploadResult>
  <Location>http://stream-bucket.storage.example.com/pasncdoyuvuvuiyewfsobdwn</Location>
  <Bucket>stream-bucket</Bucket>
  <Key>pasncdoyuvuvuiyewfsobdwn</Key>
  <ETag>"1EB7B8B2E1F0B5A28E7B4B5D9A4C8D1E-2"</ETag>
</CompleteMultipartUploadResult>'''

        req_info = mock_do_request(do_request, payload)

        parts = [PartInfo(2, '9433E6178C51CFEC867F592F4B827B50'),
                 PartInfo(1, '4DE8075FB607DF4D13FBC480EA488EFA')]
        result = store().complete_multipart_upload(BUCKET_NAME, 'pasncdoyuvuvuiyewfsobdwn', UPLOAD_ID, parts)

        self.assertRequest(req_info, '''POST /pasncdoyuvuvuiyewfsobdwn?uploadId={0} HTTP/1.1
Host: stream-bucket.storage.example.com

<CompleteMultipartUpload><Part><PartNumber>1</PartNumber><ETag>"4DE8075FB607DF4D13FBC480EA488EFA"</ETag></Part><Part><PartNumber>2</PartNumber><ETag>"9433E6178C51CFEC867F592F4B827B50"</ETag></Part></CompleteMultipartUpload>'''.format(UPLOAD_ID))

        self.assertEqual(result.etag, '1EB7B8B2E1F0B5A28E7B4B5D9A4C8D1E-2')

    @patch('bucketstream.Session.do_request')
    def test_abort_multipart_upload(self, do_request):
        payload = '''HTTP/1.1 204 No Content
Server: ObjectStore
Date: Sat, 12 Dec 2015 00:36:26 GMT
Content-Length: 0
Connection: keep-alive
x-oss-request-id: 566B6C0AD5A340D61A73D6B1'''

        req_info = mock_do_request(do_request, payload)

        result = store().abort_multipart_upload(BUCKET_NAME, 'uosvelpvgjwtxaciqtxoplnx', UPLOAD_ID)

        self.assertEqual(req_info.req.method, 'DELETE')
        self.assertEqual(req_info.req.params['uploadId'], UPLOAD_ID)
        self.assertEqual(result.status, 204)
        self.assertEqual(result.request_id, '566B6C0AD5A340D61A73D6B1')

    @patch('bucketstream.Session.do_request')
    def test_abort_unknown_upload(self, do_request):
        payload = '''HTTP/1.1 404 Not Found
Server: ObjectStore
Date: Sat, 12 Dec 2015 00:36:26 GMT
Content-Type: application/xml
Content-Length: 292
Connection: keep-alive
x-oss-request-id: 566B6C0AD5A340D61A73D6B2

<?xml version="1.0" encoding="UTF-8"?>
<Error>
  <Code>NoSuchUpload</Code>
  <Message>The specified upload does not exist.</Message>
  <RequestId>566B6C0AD5A340D61A73D6B2</RequestId>
  <HostId>stream-bucket.storage.example.com</HostId>
</Error>'''

        mock_do_request(do_request, payload)

        try:
            store().abort_multipart_upload(BUCKET_NAME, 'k', UPLOAD_ID)
        except NoSuchUpload as e:
            self.assertEqual(e.status, 404)
            self.assertEqual(e.code, 'NoSuchUpload')
            self.assertEqual(e.request_id, '566B6C0AD5A340D61A73D6B2')
            self.assertEqual(e.message, 'The specified upload does not exist.')
        else:
            self.fail('NoSuchUpload not raised')

    @patch('bucketstream.Session.do_request')
    def test_get_object(self, do_request):
        payload = '''HTTP/1.1 200 OK
Server: ObjectStore
Date: Sat, 12 Dec 2015 00:35:53 GMT
Content-Type: text/plain
Content-Length: 11
Connection: keep-alive
x-oss-request-id: 566B6BE93A7B8CFD53D4BAA4
ETag: "5EB63BBBE01EEED093CB22BB8F5ACDC3"

hello world'''

        req_info = mock_do_request(do_request, payload)

        with store().get_object(BUCKET_NAME, 'hello.txt') as result:
            self.assertEqual(req_info.req.method, 'GET')
            self.assertUrlWithKey(req_info.req.url, 'hello.txt')
            self.assertEqual(result.content_length, 11)
            self.assertEqual(result.content_type, 'text/plain')
            self.assertEqual(result.etag, '5EB63BBBE01EEED093CB22BB8F5ACDC3')
            self.assertEqual(result.read(), b'hello world')

    @patch('bucketstream.Session.do_request')
    def test_get_missing_object(self, do_request):
        payload = '''HTTP/1.1 404 Not Found
Server: ObjectStore
Date: Sat, 12 Dec 2015 00:35:53 GMT
Content-Type: application/xml
Content-Length: 287
Connection: keep-alive
x-oss-request-id: 566B6BE93A7B8CFD53D4BAA5

<?xml version="1.0" encoding="UTF-8"?>
<Error>
  <Code>NoSuchKey</Code>
  <Message>The specified key does not exist.</Message>
  <RequestId>566B6BE93A7B8CFD53D4BAA5</RequestId>
</Error>'''

        mock_do_request(do_request, payload)

        self.assertRaises(NoSuchKey, store().get_object, BUCKET_NAME, 'missing')

    @patch('bucketstream.Session.do_request')
    def test_list_objects(self, do_request):
        payload = '''HTTP/1.1 200 OK
Server: ObjectStore
Date: Sat, 12 Dec 2015 00:35:53 GMT
Content-Type: application/xml
Connection: keep-alive
x-oss-request-id: 566B6BE93A7B8CFD53D4BAA6

<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult>
  <Name>stream-bucket</Name>
  <Prefix>dir%2F</Prefix>
  <Marker></Marker>
  <MaxKeys>2</MaxKeys>
  <Delimiter></Delimiter>
  <EncodingType>url</EncodingType>
  <IsTruncated>true</IsTruncated>
  <NextMarker>dir%2F%E4%B8%AD%E6%96%87</NextMarker>
  <Contents>
    <Key>dir%2Fobject-1</Key>
    <LastModified>2015-02-02T05:15:13.000Z</LastModified>
    <ETag>"716AF6FFD529DFEA856FAA4E12D2C5EA"</ETag>
    <Type>Normal</Type>
    <Size>4308</Size>
    <StorageClass>Standard</StorageClass>
  </Contents>
  <Contents>
    <Key>dir%2F%E4%B8%AD%E6%96%87</Key>
    <LastModified>2015-06-23T09:56:55.000Z</LastModified>
    <ETag>"333D74B47CB1B0E275D2AB3CDDA02665-26"</ETag>
    <Type>Multipart</Type>
    <Size>3389246</Size>
    <StorageClass>Standard</StorageClass>
  </Contents>
</ListBucketResult>'''

        req_info = mock_do_request(do_request, payload)

        result = store().list_objects(BUCKET_NAME, prefix='dir/', max_keys=2)

        self.assertEqual(req_info.req.method, 'GET')
        self.assertEqual(req_info.req.url, 'http://stream-bucket.storage.example.com/')
        self.assertEqual(req_info.req.params['prefix'], 'dir/')
        self.assertEqual(req_info.req.params['max-keys'], '2')
        self.assertEqual(req_info.req.params['encoding-type'], 'url')

        self.assertTrue(result.is_truncated)
        self.assertEqual(result.next_marker, u'dir/中文')
        self.assertEqual([o.key for o in result.object_list], ['dir/object-1', u'dir/中文'])
        self.assertEqual(result.object_list[0].last_modified, 1422854113)
        self.assertEqual(result.object_list[0].etag, '716AF6FFD529DFEA856FAA4E12D2C5EA')
        self.assertEqual(result.object_list[1].size, 3389246)

    @patch('bucketstream.Session.do_request')
    def test_access_denied(self, do_request):
        payload = '''HTTP/1.1 403 Forbidden
Server: ObjectStore
Date: Sat, 12 Dec 2015 00:35:53 GMT
Content-Type: application/xml
Content-Length: 250
Connection: keep-alive
x-oss-request-id: 566B6BE93A7B8CFD53D4BAA7

<?xml version="1.0" encoding="UTF-8"?>
<Error>
  <Code>AccessDenied</Code>
  <Message>The bucket you access does not belong to you.</Message>
</Error>'''

        mock_do_request(do_request, payload)

        self.assertRaises(AccessDenied, store().put_object, BUCKET_NAME, 'k', b'x', 1)

    @patch('bucketstream.Session.do_request')
    def test_unknown_server_error(self, do_request):
        payload = '''HTTP/1.1 503 Service Unavailable
Server: ObjectStore
Content-Length: 0
x-oss-request-id: 566B6BE93A7B8CFD53D4BAA8'''

        mock_do_request(do_request, payload)

        try:
            store().put_object(BUCKET_NAME, 'k', b'x', 1)
        except ServerError as e:
            self.assertEqual(e.status, 503)
            self.assertEqual(e.code, '')
            self.assertEqual(e.request_id, '566B6BE93A7B8CFD53D4BAA8')
        else:
            self.fail('ServerError not raised')

    @patch('requests.Session.request')
    def test_request_error(self, request):
        request.side_effect = requests.ConnectionError('connection refused')

        try:
            store().put_object(BUCKET_NAME, 'k', b'x', 1)
        except RequestError as e:
            self.assertEqual(e.status, -2)
            self.assertTrue(isinstance(e.exception, requests.ConnectionError))
        else:
            self.fail('RequestError not raised')

    @patch('bucketstream.Session.do_request')
    def test_ip_endpoint_is_path_style(self, do_request):
        payload = '''HTTP/1.1 200 OK
Content-Length: 0
x-oss-request-id: 566B6BE93A7B8CFD53D4BAA9
ETag: "D80CF0E5BE2436514894D64B2BCFB2AE"'''

        req_info = mock_do_request(do_request, payload)

        s = HttpObjectStore(AnonymousAuth(), '127.0.0.1:9000')
        s.put_object(BUCKET_NAME, 'a b', b'x', 1)

        self.assertEqual(req_info.req.url, 'http://127.0.0.1:9000/stream-bucket/a%20b')
        self.assertTrue('authorization' not in req_info.req.headers)

    def test_connect_timeout(self):
        bucketstream.defaults.connect_timeout = 10
        self.assertEqual(store().timeout, 10)

        s = HttpObjectStore(Auth('id', 'secret'), 'https://storage.example.com', connect_timeout=30)
        self.assertEqual(s.timeout, 30)
        self.assertEqual(s.endpoint, 'https://storage.example.com')

    @patch('bucketstream.Session.do_request')
    def test_upload_stream_over_http(self, do_request):
        init_payload = '''HTTP/1.1 200 OK
Content-Type: application/xml
Content-Length: 232
x-oss-request-id: 566B6BEB1BA604C27DD43805

<?xml version="1.0" encoding="UTF-8"?>
<InitiateMultipartUploadResult>
  <Bucket>stream-bucket</Bucket>
  <Key>stream</Key>
  <UploadId>97BD544A65DB46F9A8735C93917A960F</UploadId>
</InitiateMultipartUploadResult>'''

        part_payload = '''HTTP/1.1 200 OK
Content-Length: 0
x-oss-request-id: 566B6BEF6078C0E44874A4AD
ETag: "{0}"'''

        complete_payload = '''HTTP/1.1 200 OK
Content-Length: 0
x-oss-request-id: 566B6C0A05200A20B174994F
ETag: "1EB7B8B2E1F0B5A28E7B4B5D9A4C8D1E-2"'''

        req_infos = [RequestInfo() for i in range(4)]
        do_request.auto_spec = True
        do_request.side_effect = make_do4responses(req_infos, [init_payload,
                                                               part_payload.format('ETAG-1'),
                                                               part_payload.format('ETAG-2'),
                                                               complete_payload])

        stream = UploadStream(store(), BUCKET_NAME, 'stream', part_size=10, num_threads=1)
        stream.write(b'0123456789abcde')
        result = stream.close()

        self.assertEqual(req_infos[0].req.params['uploads'], '')
        self.assertEqual(req_infos[1].req.params['partNumber'], '1')
        self.assertEqual(req_infos[1].data, b'0123456789')
        self.assertEqual(req_infos[2].req.params['partNumber'], '2')
        self.assertEqual(req_infos[2].data, b'abcde')
        self.assertXmlEqual(req_infos[3].data, b'<CompleteMultipartUpload>'
                                               b'<Part><PartNumber>1</PartNumber><ETag>"ETAG-1"</ETag></Part>'
                                               b'<Part><PartNumber>2</PartNumber><ETag>"ETAG-2"</ETag></Part>'
                                               b'</CompleteMultipartUpload>')
        self.assertEqual(result.etag, '1EB7B8B2E1F0B5A28E7B4B5D9A4C8D1E-2')


if __name__ == '__main__':
    unittest.main()
