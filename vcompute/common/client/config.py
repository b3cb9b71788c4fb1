# Copyright 2013 IBM Corp.

from vcompute.common import config
from vcompute.common import netutils

CONF = config.CONF


def _build_base_http_opts(metadata, opt_map):
    """http client opts of a provider from its config file section,
    the [session] and the [http] sections
    """
    configuration = config.register_provider_opts(metadata)
    opt_map['identity'] = configuration['identity']
    opt_map['credential'] = configuration['credential']
    opt_map['api_version'] = configuration['api_version']
    opt_map['login_endpoint'] = configuration['login_endpoint']
    opt_map['cacert'] = CONF['http']['cacert']
    opt_map['insecure'] = CONF['http']['insecure']
    if opt_map['insecure'] is False:
        opt_map['endpoint'] = netutils.hostname_url(configuration['endpoint'])
    else:
        opt_map['endpoint'] = configuration['endpoint']
    for key in ('max_retries', 'retry_delay_start', 'timeout'):
        opt_map[key] = CONF['http'][key]
    for key in ('session_interval', 'login_timeout', 'versions_timeout',
                'fetch_attempts', 'lease_renew_marker', 'auth_user_header',
                'auth_key_header', 'auth_token_header', 'max_payload_bytes',
                'green'):
        opt_map[key] = CONF['session'][key]
    return opt_map


def build_provider_opts(metadata, overrides=None):
    """the base args of a provider, overrides win over the config files
    """
    opt_map = _build_base_http_opts(metadata, {})
    opt_map.update(overrides or {})
    return opt_map
