# Copyright 2013 IBM Corp.

import logging
import socket
from urllib import parse as urlparse

from vcompute.common import constants
from vcompute.common.gettextutils import _

LOG = logging.getLogger(__name__)


def is_ipv4_address(ip_or_host):
    """Determines if a netloc is an IPv4 address.

    :param ip_or_host: the host/ip to check
    """
    try:
        socket.inet_aton(ip_or_host)
        return True
    except (OSError, TypeError):
        return False


def hostname_url(url):
    """Converts the URL into its FQHN form.
    This requires DNS to be setup on the OS or the hosts table
    to be updated.

   :param url: the url to convert to FQHN form
    """
    frags = urlparse.urlsplit(url)
    if is_ipv4_address(frags.hostname) is True:
        return url
    try:
        fqhn, alist, ip = socket.gethostbyaddr(frags.hostname)
    except (OSError, TypeError, UnicodeError):
        # likely no DNS configured, return inital url
        return url
    port_str = ''
    if frags.port is not None:
        port_str = ':' + str(frags.port)
    return frags.scheme + '://' + fqhn + port_str + frags.path


def join_url(base, *segments):
    """Appends path segments to base with exactly one '/' between each.
    """
    url = base.rstrip('/')
    for segment in segments:
        segment = segment.strip('/')
        if segment:
            url = '%s/%s' % (url, segment)
    return url


def has_header(headers, name):
    """Case insensitive header lookup for plain dicts as well as
    requests' CaseInsensitiveDict.
    """
    if not headers:
        return False
    lname = name.lower()
    return any(key.lower() == lname for key in headers)


def read_payload_or_none(response, limit=constants.DEFAULT_MAX_PAYLOAD_BYTES):
    """Reads at most limit bytes of the response body as text.

    Read failures are logged and reported as None, the caller treats an
    unreadable body the same as an absent one.

    :param response: the requests.Response to read
    :param limit: the largest number of bytes to read
    """
    if response is None:
        return None
    try:
        chunks = []
        size = 0
        for chunk in response.iter_content(chunk_size=4096):
            if not chunk:
                continue
            chunks.append(chunk)
            size += len(chunk)
            if size >= limit:
                break
        data = b''.join(chunks)[:limit]
    except (IOError, RuntimeError) as e:
        LOG.warning(_("exception reading error from response %(response)s:"
                      " %(error)s"), {'response': response, 'error': e})
        return None
    try:
        return data.decode(response.encoding or 'utf-8', 'replace')
    except LookupError:
        # charset announced by the provider is unknown
        return data.decode('utf-8', 'replace')


def release_payload(response):
    """Returns the connection behind response to the pool; never raises.
    """
    if response is None:
        return
    try:
        response.close()
    except IOError as e:
        LOG.debug("error releasing payload of %s: %s", response, e)
