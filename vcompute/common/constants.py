# Copyright 2013 IBM Corp.

"""
All Common vcompute Constants
"""

# Seconds a fetched session (and anything derived from it) stays fresh
DEFAULT_SESSION_INTERVAL = 60

# Per call budgets, in seconds
DEFAULT_LOGIN_TIMEOUT = 10
DEFAULT_VERSIONS_TIMEOUT = 180

# Attempts made by a memoized supplier when the fetch times out
DEFAULT_FETCH_ATTEMPTS = 3

# Body text a provider sends back when the session lease has run out
LEASE_RENEW_MARKER = 'lease renew'

# Largest error body read when looking for the lease marker
DEFAULT_MAX_PAYLOAD_BYTES = 65536

# OpenStack auth 1.0 headers
AUTH_USER = 'X-Auth-User'
AUTH_KEY = 'X-Auth-Key'
AUTH_TOKEN = 'X-Auth-Token'
STORAGE_URL = 'X-Storage-Url'
SERVER_MANAGEMENT_URL = 'X-Server-Management-Url'
CDN_MANAGEMENT_URL = 'X-CDN-Management-Url'

# vCloud session tokens
VCLOUD_TOKEN_COOKIE = 'vcloud-token'
VCLOUD_AUTHORIZATION_HEADER = 'x-vcloud-authorization'

# Transport defaults
DEFAULT_MAX_RETRIES = 5
DEFAULT_RETRY_DELAY_START = 0.05
DEFAULT_HTTP_TIMEOUT = 60

# Status codes the backoff handler treats as transient
TRANSIENT_SERVER_ERRORS = (500, 502, 503, 504)


class ProviderApi(object):
    """Wrappers the name of an api family.
    """
    def __init__(self, api):
        self.api = api

    def __str__(self):
        return self.api


class ProviderApis(object):
    """The api families known to this infrastructure which can be
    referenced using attr based notation.
    """
    def __init__(self):
        self.openstack = ProviderApi('openstack')
        self.vcloud = ProviderApi('vcloud')

PROVIDER_APIS = ProviderApis()
