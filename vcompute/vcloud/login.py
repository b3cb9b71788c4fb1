# Copyright 2013 IBM Corp.

"""
vCloud login and version discovery.

Reading the org list and the version list out of a reply is left to
the parser callables handed in by the caller; this module only deals
with the exchange itself and with the session token.
"""

import base64
import logging

from vcompute.common import constants
from vcompute.common import exception
from vcompute.common import netutils
from vcompute.common.client import http
from vcompute.common.gettextutils import _
from vcompute.common.session import AuthSession

LOG = logging.getLogger(__name__)

TOKEN_STYLE_COOKIE = 'cookie'
TOKEN_STYLE_HEADER = 'header'


def no_orgs(response):
    return {}


def basic_auth(user, password):
    credentials = ('%s:%s' % (user, password)).encode('utf-8')
    return 'Basic %s' % base64.b64encode(credentials).decode('ascii')


def token_from_response(response):
    """the vcloud token is set as a cookie by 0.8 providers and as a
    header by 1.0 ones
    """
    token = response.cookies.get(constants.VCLOUD_TOKEN_COOKIE)
    if not token:
        token = response.headers.get(constants.VCLOUD_AUTHORIZATION_HEADER)
    return token


def select_login_uri(versions, version):
    """picks the login uri for version out of the supported versions

    :param versions: mapping of version to login uri
    :param version: the api version wanted
    :raise IllegalStateError: if version is not supported
    """
    if not versions:
        raise exception.IllegalStateError(reason=_('No versions present'))
    if version not in versions:
        raise exception.IllegalStateError(
            reason=_('version %(version)s not present in: %(versions)s') %
            {'version': version, 'versions': dict(versions)})
    return versions[version]


class VCloudVersionsClient(object):
    """queries the versions a vcloud endpoint supports
    """
    def __init__(self, http_client, endpoint, version_parser,
                 timeout=constants.DEFAULT_VERSIONS_TIMEOUT):
        self.http_client = http_client
        self.endpoint = endpoint
        self.version_parser = version_parser
        self.timeout = timeout

    def get_supported_versions(self):
        request = http.HttpRequest('GET',
                                   netutils.join_url(self.endpoint,
                                                     'versions'))
        response = self.http_client.execute(request, timeout=self.timeout)
        versions = self.version_parser(response)
        LOG.debug("Supported versions at %s: %s", self.endpoint,
                  sorted(versions or {}))
        return versions

    def login_uri(self, version):
        return select_login_uri(self.get_supported_versions(), version)


class VCloudLoginClient(object):
    """logs in to a vcloud provider with http basic credentials
    """
    def __init__(self, http_client, login_uri, user, password,
                 org_parser=no_orgs,
                 timeout=constants.DEFAULT_LOGIN_TIMEOUT):
        """
        :param login_uri: the login uri or a callable returning it
        :param org_parser: callable building the org name to
        ReferenceType mapping from the login reply
        """
        self.http_client = http_client
        self._login_uri = login_uri
        self.user = user
        self.password = password
        self.org_parser = org_parser
        self.timeout = timeout

    def login_uri(self):
        if callable(self._login_uri):
            return self._login_uri()
        return self._login_uri

    def login(self):
        """perform the login and return the resulting AuthSession

        :raise AuthorizationError: if the credentials are rejected
        :raise HttpResponseError: if the reply carries no token
        """
        request = http.HttpRequest('POST', self.login_uri(), headers={
            'Authorization': basic_auth(self.user, self.password),
        })
        response = self.http_client.execute(request, timeout=self.timeout)
        token = token_from_response(response)
        if not token:
            raise exception.HttpResponseError(
                _('No vcloud token in reply to %(request)s'),
                request=repr(request), status=response.status_code,
                content=None)
        orgs = self.org_parser(response)
        LOG.info(_("Logged in %(user)s, orgs: %(orgs)s"),
                 {'user': self.user, 'orgs': sorted(orgs)})
        return AuthSession(token, orgs)

    __call__ = login


class SetVCloudToken(object):
    """request filter signing every request with the current session
    token, as a cookie or as a header depending on the provider
    """
    def __init__(self, token_supplier, style=TOKEN_STYLE_COOKIE):
        self.token_supplier = token_supplier
        self.style = style

    def __call__(self, request):
        token = self.token_supplier()
        if self.style == TOKEN_STYLE_HEADER:
            return request.with_header(constants.VCLOUD_AUTHORIZATION_HEADER,
                                       token)
        return request.with_header('Cookie', '%s=%s' % (
            constants.VCLOUD_TOKEN_COOKIE, token))
