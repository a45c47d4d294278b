# -*- coding: utf-8 -*-

"""
bucketstream.utils
~~~~~~~~~~~~~~~~~~

Conversions used by the upload stream and the HTTP store adapter.
"""

import base64
import calendar
import ipaddress
import re
import time
from email.utils import formatdate


def to_bytes(data):
    """Encode str as UTF-8; anything else is returned as is."""
    if isinstance(data, str):
        return data.encode('utf-8')
    return data


def to_string(data):
    """Decode UTF-8 bytes; anything else is returned as is."""
    if isinstance(data, bytes):
        return data.decode('utf-8')
    return data


def b64encode_as_string(data):
    return base64.b64encode(to_bytes(data)).decode('ascii')


def _host_of(netloc):
    if netloc.startswith('['):
        return netloc[1:netloc.find(']')]
    return netloc.rsplit(':', 1)[0]


def is_ip_or_localhost(netloc):
    """Whether the host of `netloc` ('host' or 'host:port') is localhost or an IPv4/IPv6 address."""
    host = _host_of(netloc)
    if host == 'localhost':
        return True

    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


# a DNS label: lower case letters, digits and inner hyphens
_BUCKET_HOST_LABEL_RE = re.compile(r'[a-z0-9][a-z0-9-]{1,61}[a-z0-9]')


def is_valid_bucket_name(name):
    """Whether `name` can be put in front of the endpoint host, i.e. addressed virtual-host style."""
    return _BUCKET_HOST_LABEL_RE.fullmatch(name) is not None


def http_date(timeval=None):
    """GMT date for the Date header, e.g. "Sat, 05 Dec 2015 11:10:29 GMT". Independent of the locale."""
    return formatdate(timeval, usegmt=True)


def iso8601_to_unixtime(time_string):
    """Convert a listing timestamp such as 2012-02-24T06:07:48.000Z to UNIX time in seconds.

    Fractions of a second and the zone suffix are ignored; listings always report UTC.
    """
    try:
        tm = time.strptime(time_string[:19], '%Y-%m-%dT%H:%M:%S')
    except ValueError:
        raise ValueError(time_string + ' is not in valid ISO8601 format')

    return calendar.timegm(tm)
