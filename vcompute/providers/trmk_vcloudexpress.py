# Copyright 2013 IBM Corp.

"""
Terremark vCloud Express.
"""

from vcompute.common.client.service import ProviderMetadata

METADATA = ProviderMetadata(
    id='trmk-vcloudexpress',
    name='Terremark vCloud Express',
    api='vcloud',
    endpoint='https://services.vcloudexpress.terremark.com/api',
    api_version='0.8a-ext1.6',
    token_style='cookie',
    iso3166_codes=('US-FL',))
