# -*- coding: utf-8 -*-

"""
bucketstream.exceptions
~~~~~~~~~~~~~~~~~~~~~~~

Exception classes.
"""

import re

import xml.etree.ElementTree as ElementTree
from xml.parsers import expat

from .utils import to_string


_STORE_ERROR_TO_EXCEPTION = {} # populated at end of module


STORE_CLIENT_ERROR_STATUS = -1
STORE_REQUEST_ERROR_STATUS = -2


class StoreError(Exception):
    def __init__(self, status, headers, body, details):
        #: HTTP status code
        self.status = status

        #: Request ID, used to trace one request on the store side
        self.request_id = headers.get('x-oss-request-id', '') or headers.get('x-amz-request-id', '')

        #: HTTP response body (partial)
        self.body = body

        #: Error details, a dict of string to string
        self.details = details

        #: Store error code
        self.code = self.details.get('Code', '')

        #: Store error message
        self.message = self.details.get('Message', '')

    def __str__(self):
        return str(self.details)


class ClientError(StoreError):
    def __init__(self, message):
        StoreError.__init__(self, STORE_CLIENT_ERROR_STATUS, {}, 'ClientError: ' + message, {})

    def __str__(self):
        return self.body


class StreamClosed(ClientError):
    """Raised on a write to an upload stream that has been committed or has failed."""
    pass


class PartCountExceeded(ClientError):
    """Raised when an upload stream would need more parts than the store allows."""
    pass


class ObjectTooLarge(ClientError):
    """Raised when an upload stream would exceed the store's object size ceiling."""
    pass


class RequestError(StoreError):
    def __init__(self, e):
        StoreError.__init__(self, STORE_REQUEST_ERROR_STATUS, {}, 'RequestError: ' + str(e), {})
        self.exception = e

    def __str__(self):
        return self.body


class ServerError(StoreError):
    pass


class NotFound(ServerError):
    status = 404
    code = ''


class MalformedXml(ServerError):
    status = 400
    code = 'MalformedXML'


class InvalidArgument(ServerError):
    status = 400
    code = 'InvalidArgument'

    def __init__(self, status, headers, body, details):
        super(InvalidArgument, self).__init__(status, headers, body, details)
        self.name = details.get('ArgumentName')
        self.value = details.get('ArgumentValue')


class InvalidPart(ServerError):
    status = 400
    code = 'InvalidPart'


class InvalidPartOrder(ServerError):
    status = 400
    code = 'InvalidPartOrder'


class EntityTooSmall(ServerError):
    status = 400
    code = 'EntityTooSmall'


class EntityTooLarge(ServerError):
    status = 400
    code = 'EntityTooLarge'


class NoSuchBucket(NotFound):
    status = 404
    code = 'NoSuchBucket'


class NoSuchKey(NotFound):
    status = 404
    code = 'NoSuchKey'


class NoSuchUpload(NotFound):
    status = 404
    code = 'NoSuchUpload'


class AccessDenied(ServerError):
    status = 403
    code = 'AccessDenied'


def make_exception(resp):
    status = resp.status
    headers = resp.headers
    body = resp.read(4096)
    details = _parse_error_body(body)
    code = details.get('Code', '')

    try:
        klass = _STORE_ERROR_TO_EXCEPTION[(status, code)]
        return klass(status, headers, body, details)
    except KeyError:
        return ServerError(status, headers, body, details)


def _walk_subclasses(klass):
    for sub in klass.__subclasses__():
        yield sub
        for subsub in _walk_subclasses(sub):
            yield subsub


for klass in _walk_subclasses(ServerError):
    status = getattr(klass, 'status', None)
    code = getattr(klass, 'code', None)

    if status is not None and code is not None:
        _STORE_ERROR_TO_EXCEPTION[(status, code)] = klass


ElementTreeParseError = (ElementTree.ParseError, expat.ExpatError)


def _parse_error_body(body):
    try:
        root = ElementTree.fromstring(body)
        if root.tag != 'Error':
            return {}

        details = {}
        for child in root:
            details[child.tag] = child.text
        return details
    except ElementTreeParseError:
        return _guess_error_details(body)


def _guess_error_details(body):
    details = {}
    body = to_string(body)

    if '<Error>' not in body or '</Error>' not in body:
        return details

    m = re.search('<Code>(.*)</Code>', body)
    if m:
        details['Code'] = m.group(1)

    m = re.search('<Message>(.*)</Message>', body)
    if m:
        details['Message'] = m.group(1)

    return details
