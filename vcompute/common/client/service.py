# Copyright 2013 IBM Corp.

import logging

import requests

from vcompute.common import constants
from vcompute.common import exception
from vcompute.common import netutils
from vcompute.common import utils
from vcompute.common.client import handlers
from vcompute.common.client import http
from vcompute.common.constants import PROVIDER_APIS as PROVIDER_APIS
from vcompute.common.gettextutils import _
from vcompute.openstack import auth
from vcompute.vcloud import handlers as vcloud_handlers
from vcompute.vcloud import login
from vcompute.vcloud import session as vcloud_session

LOG = logging.getLogger(__name__)


class ProviderMetadata(object):
    """describes a provider: which api it speaks and where to find it
    """
    def __init__(self, id, name, api, endpoint, api_version,
                 token_style='cookie', iso3166_codes=()):
        self.id = id
        self.name = name
        self.api = api
        self.endpoint = endpoint
        self.api_version = api_version
        self.token_style = token_style
        self.iso3166_codes = tuple(iso3166_codes)

    def __repr__(self):
        return '<ProviderMetadata %s (%s %s)>' % (self.id, self.api,
                                                  self.api_version)


class ComputeServiceContext(object):
    """what the compute operations of a provider run against: a transport
    whose requests are signed with the cached session of the provider
    """
    def __init__(self, metadata, http_client, session_cache,
                 endpoint_supplier, invalidate=None):
        self.metadata = metadata
        self.http_client = http_client
        self.session_cache = session_cache
        self._endpoint_supplier = endpoint_supplier
        self._invalidate = invalidate or session_cache.invalidate

    def session(self):
        return self.session_cache.get()

    def invalidate_session(self):
        self._invalidate()

    def endpoint(self):
        return self._endpoint_supplier()

    def request(self, method, path, headers=None, payload=None, params=None,
                timeout=None):
        """send a signed request to the provider

        :param path: an absolute href or a path below the endpoint
        :returns: the requests.Response
        """
        if path.startswith('http://') or path.startswith('https://'):
            url = path
        else:
            url = netutils.join_url(self.endpoint(), path)
        request = http.HttpRequest(method, url, headers, payload, params)
        return self.http_client.execute(request, timeout=timeout)

    def close(self):
        self.http_client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class AbstractService(object):
    """builds the context of one provider from its base args; subclasses
    know the login exchange of an api family.
    """
    def __init__(self, metadata, base_args):
        self.metadata = metadata
        self.base_args = base_args.copy()
        self.latch = utils.AuthorizationFailureLatch()
        self.session = requests.Session()

    def _memoize(self, fetch, what, ttl):
        return utils.memoize(fetch, ttl, self.latch,
                             self.base_args.get('green', False),
                             max_attempts=self.base_args['fetch_attempts'],
                             name='%s %s' % (self.metadata.id, what))

    def _retry_handler(self, session_cache, **renew_headers):
        renew = handlers.RetryOnRenew(
            session_cache,
            marker=self.base_args['lease_renew_marker'],
            max_payload_bytes=self.base_args['max_payload_bytes'],
            **renew_headers)
        backoff = handlers.BackoffLimitedRetryHandler(
            self.base_args['max_retries'],
            self.base_args['retry_delay_start'])
        return handlers.DelegatingRetryHandler(renew, backoff)

    def _http_client(self, retry_handler, error_handler):
        verify = self.base_args.get('cacert') or True
        if self.base_args.get('insecure'):
            verify = False
        return http.HttpClient(self.session,
                               retry_handler=retry_handler,
                               error_handler=error_handler,
                               max_retries=self.base_args['max_retries'],
                               timeout=self.base_args['timeout'],
                               verify=verify)

    def new_context(self):
        raise NotImplementedError()


class OpenStackService(AbstractService):
    """wrappers an openstack auth 1.0 provider
    """
    def __init__(self, metadata, base_args):
        super(OpenStackService, self).__init__(metadata, base_args)
        self.session_cache = self._memoize(self._authenticate, 'session',
                                           self.base_args['session_interval'])
        self.http_client = self._http_client(
            self._retry_handler(
                self.session_cache,
                user_header=self.base_args['auth_user_header'],
                key_header=self.base_args['auth_key_header'],
                token_header=self.base_args['auth_token_header']),
            handlers.ErrorHandler())
        self.auth = auth.OpenStackAuthClient(
            self.http_client, self.base_args['endpoint'],
            self.base_args['identity'], self.base_args['credential'],
            api_version=self.base_args['api_version'],
            timeout=self.base_args['login_timeout'])
        self.signer = auth.AuthenticateRequest(
            self.session_cache, self.base_args['auth_token_header'])

    def _authenticate(self):
        return self.auth.authenticate()

    def compute_endpoint(self):
        session = self.session_cache.get()
        if 'compute' not in session.directory:
            return self.base_args['endpoint']
        return session.directory['compute']

    def new_context(self):
        return ComputeServiceContext(self.metadata,
                                     self.http_client.with_filters(
                                         self.signer),
                                     self.session_cache,
                                     self.compute_endpoint)


class VCloudService(AbstractService):
    """wrappers a vcloud provider, terremark 0.8 or vcloud 1.0
    """
    def __init__(self, metadata, base_args, org_parser=None,
                 version_parser=None):
        super(VCloudService, self).__init__(metadata, base_args)
        self.suppliers = vcloud_session.VCloudSessionSuppliers(
            self._login, self.base_args['session_interval'],
            latch=self.latch, green=self.base_args.get('green', False),
            max_attempts=self.base_args['fetch_attempts'])
        self.session_cache = self.suppliers.session_cache
        token_header = 'Cookie'
        if metadata.token_style == login.TOKEN_STYLE_HEADER:
            token_header = constants.VCLOUD_AUTHORIZATION_HEADER
        # the login carries basic credentials and no session token
        self.http_client = self._http_client(
            self._retry_handler(self.suppliers,
                                user_header='Authorization',
                                key_header='Authorization',
                                token_header=token_header),
            vcloud_handlers.VCloudErrorHandler())
        self.versions = login.VCloudVersionsClient(
            self.http_client, self.base_args['endpoint'], version_parser,
            timeout=self.base_args['versions_timeout'])
        # resolved once for the life of the context
        self.login_uri_cache = self._memoize(self._login_uri, 'login uri',
                                             float('inf'))
        self.login_client = login.VCloudLoginClient(
            self.http_client, self.login_uri_cache.get,
            self.base_args['identity'], self.base_args['credential'],
            org_parser=org_parser or login.no_orgs,
            timeout=self.base_args['login_timeout'])
        self.signer = login.SetVCloudToken(self.suppliers.token,
                                           metadata.token_style)

    def _login_uri(self):
        if self.base_args.get('login_endpoint'):
            return self.base_args['login_endpoint']
        if self.versions.version_parser is None:
            raise exception.IllegalStateError(
                reason=_('%s has no login_endpoint configured and no '
                         'version parser to discover it') % self.metadata.id)
        login_uri = self.versions.login_uri(self.base_args['api_version'])
        LOG.info(_("Discovered login uri %(uri)s for %(provider)s"),
                 {'uri': login_uri, 'provider': self.metadata.id})
        return login_uri

    def _login(self):
        return self.login_client.login()

    def new_context(self):
        return ComputeServiceContext(self.metadata,
                                     self.http_client.with_filters(
                                         self.signer),
                                     self.session_cache,
                                     lambda: self.base_args['endpoint'],
                                     invalidate=self.suppliers.invalidate)


SERVICES = {
    str(PROVIDER_APIS.openstack): OpenStackService,
    str(PROVIDER_APIS.vcloud): VCloudService,
}
