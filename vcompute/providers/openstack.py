# Copyright 2013 IBM Corp.

from vcompute.common.client.service import ProviderMetadata

METADATA = ProviderMetadata(
    id='openstack',
    name='OpenStack auth 1.0',
    api='openstack',
    endpoint='http://localhost:5000',
    api_version='1.0',
    token_style='header')
