# -*- coding: utf-8 -*-

import logging
import os

import bucketstream


# The code below streams an object of unknown size to the store, reads it back and lists the bucket.


# Fill in AccessKeyId, AccessKeySecret, Endpoint and Bucket, either through environment variables
# or by replacing the "<your ...>" placeholders.
#
# The endpoint may be a service domain such as
#   http://storage.example.com
# or an IP address of a self-hosted store, which is then addressed path style:
#   http://127.0.0.1:9000
access_key_id = os.getenv('BUCKETSTREAM_ACCESS_KEY_ID', '<your AccessKeyId>')
access_key_secret = os.getenv('BUCKETSTREAM_ACCESS_KEY_SECRET', '<your AccessKeySecret>')
bucket_name = os.getenv('BUCKETSTREAM_BUCKET', '<your Bucket>')
endpoint = os.getenv('BUCKETSTREAM_ENDPOINT', '<your Endpoint>')


# Make sure every parameter above is filled in
for param in (access_key_id, access_key_secret, bucket_name, endpoint):
    assert '<' not in param, 'Please set parameter: ' + param


bucketstream.set_stream_logger(level=logging.INFO)

store = bucketstream.HttpObjectStore(bucketstream.Auth(access_key_id, access_key_secret), endpoint)
client = bucketstream.StreamClient(store)


# A short object never crosses the part size, so closing the sink issues one put.
with client.open_upload_sink(bucket_name, 'motto.txt') as sink:
    sink.write('Never give up.')


# 12 MiB written 64 KiB at a time. The sink switches to multipart upload once the first 5 MiB are buffered,
# and never holds more than (num_threads + 1) parts in memory.
with client.open_upload_sink(bucket_name, 'big.bin', num_threads=4) as sink:
    chunk = os.urandom(64 * 1024)
    for i in range(12 * 16):
        sink.write(chunk)

print('upload id: {0}, parts: {1}'.format(sink.upload_id, len(sink.parts)))


# get_object() returns a file-like object
with client.get_object(bucket_name, 'motto.txt') as f:
    print(f.read())


# The iterator follows the listing across pages
for obj in client.list_objects(bucket_name, prefix='big'):
    print('{0} {1}'.format(obj.key, obj.size))
