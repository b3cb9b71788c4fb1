# Copyright 2013 IBM Corp.

"""
OpenStack auth 1.0: the credentials go out as headers and the token and
service endpoints come back as headers.
"""

import logging

from vcompute.common import constants
from vcompute.common import exception
from vcompute.common import netutils
from vcompute.common.client import http
from vcompute.common.gettextutils import _
from vcompute.common.session import AuthSession

LOG = logging.getLogger(__name__)

# response header -> directory entry
SERVICE_HEADERS = {
    constants.SERVER_MANAGEMENT_URL: 'compute',
    constants.STORAGE_URL: 'object-store',
    constants.CDN_MANAGEMENT_URL: 'cdn',
}


class OpenStackAuthClient(object):
    """logs in to an OpenStack auth 1.0 endpoint
    """
    def __init__(self, http_client, endpoint, user, key, api_version='1.0',
                 timeout=constants.DEFAULT_LOGIN_TIMEOUT):
        self.http_client = http_client
        self.endpoint = endpoint
        self.user = user
        self.key = key
        self.api_version = api_version
        self.timeout = timeout

    def auth_url(self):
        return netutils.join_url(self.endpoint, 'v%s' % self.api_version)

    def authenticate(self):
        """perform the login and return the resulting AuthSession

        :raise AuthorizationError: if the credentials are rejected
        :raise HttpResponseError: if the reply carries no token
        """
        request = http.HttpRequest('GET', self.auth_url(), headers={
            constants.AUTH_USER: self.user,
            constants.AUTH_KEY: self.key,
        })
        LOG.debug("Authenticating %s against %s", self.user,
                  request.endpoint)
        response = self.http_client.execute(request, timeout=self.timeout)
        token = response.headers.get(constants.AUTH_TOKEN)
        if not token:
            raise exception.HttpResponseError(
                _('No %(header)s header in reply to %(request)s'),
                header=constants.AUTH_TOKEN, request=repr(request),
                status=response.status_code, content=None)
        directory = {}
        for header, service in SERVICE_HEADERS.items():
            url = response.headers.get(header)
            if url:
                directory[service] = url
        LOG.info(_("Authenticated %(user)s, services: %(services)s"),
                 {'user': self.user, 'services': sorted(directory)})
        return AuthSession(token, directory)

    __call__ = authenticate


class AuthenticateRequest(object):
    """request filter signing every request with the current token
    """
    def __init__(self, session_cache, token_header=constants.AUTH_TOKEN):
        self.session_cache = session_cache
        self.token_header = token_header

    def __call__(self, request):
        session = self.session_cache.get()
        return request.with_header(self.token_header, session.token)
