# Copyright 2013, 2014 IBM Corp.

"""Config file utility

"""
from vcompute.common import constants

from oslo_config import cfg

CONF = cfg.CONF


def parse_config(argv, base_project, base_prog=None):
    """Loads configuration information from vcompute.conf as well as a
    project specific file. Expectation is that all session and http options
    will be in the common vcompute.conf file and the base_project will hold
    the provider sections. A base_prog file name can be optionally specified
    as well. This function should only be called once, in the startup path
    of a program.
    """
    # Ensure that we only try to load the config once. Loading it a second
    # time will result in errors.
    if hasattr(parse_config, 'config_loaded'):
        return

    if base_project and base_project.startswith('vcompute-'):
        default_files = cfg.find_config_files(project='vcompute',
                                              prog=base_project)
    else:
        default_files = cfg.find_config_files(project=base_project,
                                              prog=(base_project
                                                    if base_prog is None
                                                    else base_prog))
        default_files.extend(cfg.find_config_files(project='vcompute',
                                                   prog='vcompute'))
    # reduce duplicates
    default_files = list(set(default_files))
    CONF(argv[1:], default_config_files=default_files)
    parse_config.config_loaded = True

FILE_OPTIONS = {
    'session': [
        cfg.IntOpt('session_interval',
                   default=constants.DEFAULT_SESSION_INTERVAL,
                   help='Seconds a provider session is reused before '
                        'logging in again'),
        cfg.IntOpt('login_timeout',
                   default=constants.DEFAULT_LOGIN_TIMEOUT),
        cfg.IntOpt('versions_timeout',
                   default=constants.DEFAULT_VERSIONS_TIMEOUT),
        cfg.IntOpt('fetch_attempts',
                   default=constants.DEFAULT_FETCH_ATTEMPTS),
        cfg.StrOpt('lease_renew_marker',
                   default=constants.LEASE_RENEW_MARKER),
        cfg.StrOpt('auth_user_header', default=constants.AUTH_USER),
        cfg.StrOpt('auth_key_header', default=constants.AUTH_KEY),
        cfg.StrOpt('auth_token_header', default=constants.AUTH_TOKEN),
        cfg.IntOpt('max_payload_bytes',
                   default=constants.DEFAULT_MAX_PAYLOAD_BYTES),
        cfg.BoolOpt('green', default=False,
                    help='Guard session caches with eventlet primitives'),
    ],
    'http': [
        cfg.IntOpt('max_retries', default=constants.DEFAULT_MAX_RETRIES),
        cfg.FloatOpt('retry_delay_start',
                     default=constants.DEFAULT_RETRY_DELAY_START),
        cfg.IntOpt('timeout', default=constants.DEFAULT_HTTP_TIMEOUT),
        cfg.BoolOpt('insecure', default=False),
        cfg.StrOpt('cacert', default=None),
    ],
}

for section in FILE_OPTIONS:
    for option in FILE_OPTIONS[section]:
        if section:
            CONF.register_opt(option, group=section)
        else:
            CONF.register_opt(option)


def register_provider_opts(metadata):
    """Registers the [<provider id>] section for a provider, defaulting
    the endpoint and api version from its metadata. Safe to call more
    than once for the same provider.

    :param metadata: the ProviderMetadata of the provider
    """
    opts = [
        cfg.StrOpt('endpoint', default=metadata.endpoint),
        cfg.StrOpt('api_version', default=metadata.api_version),
        cfg.StrOpt('login_endpoint',
                   help='Skips version discovery when set'),
        cfg.StrOpt('identity'),
        cfg.StrOpt('credential', secret=True),
    ]
    CONF.register_opts(opts, group=metadata.id)
    return CONF[metadata.id]
