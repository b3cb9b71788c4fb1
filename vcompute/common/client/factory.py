# Copyright 2013 IBM Corp.

import logging

from oslo_utils import importutils

import vcompute.common.client.service as service
from vcompute.common.client import config as client_config
from vcompute.common import exception
from vcompute.common.gettextutils import _

"""sample useage

New context for Terremark eCloud, credentials from the [trmk-ecloud]
section of vcompute.conf:

    ecloud = factory.new_service('trmk-ecloud', org_parser=parse_org_list,
                                 version_parser=parse_versions)
    context = ecloud.new_context()
    orgs = context.request('GET', ecloud.suppliers.org_list_uri())

New context for an OpenStack auth 1.0 provider with explicit credentials:

    openstack = factory.new_context('openstack',
                                    endpoint='https://auth.example.com',
                                    identity='jsmith', credential='secret')
    servers = openstack.request('GET', 'servers/detail')
"""

LOG = logging.getLogger(__name__)

PROVIDER_PACKAGE = 'vcompute.providers'


def _module_name(provider_id):
    return '%s.%s' % (PROVIDER_PACKAGE, provider_id.replace('-', '_'))


def load_provider(provider_id):
    """returns the ProviderMetadata of a provider

    :raise ProviderNotFound: if no provider module exists for provider_id
    """
    module_name = _module_name(provider_id)
    try:
        module = importutils.import_module(module_name)
    except ImportError as e:
        if getattr(e, 'name', None) != module_name:
            raise
        raise exception.ProviderNotFound(provider=provider_id)
    return module.METADATA


def new_service(provider_id, **kwargs):
    """builds the service of a provider; kwargs are either overrides of
    its base args or the parsers the service accepts
    """
    metadata = load_provider(provider_id)
    parsers = {}
    for key in ('org_parser', 'version_parser'):
        if key in kwargs:
            parsers[key] = kwargs.pop(key)
    clazz = service.SERVICES[metadata.api]
    base_args = client_config.build_provider_opts(metadata, kwargs)
    LOG.info(_('Building %(clazz)s for %(provider)s at %(endpoint)s'),
             {'clazz': clazz.__name__, 'provider': metadata.id,
              'endpoint': base_args['endpoint']})
    return clazz(metadata, base_args, **parsers)


def new_context(provider_id, **kwargs):
    """builds a ComputeServiceContext for a provider
    """
    return new_service(provider_id, **kwargs).new_context()
