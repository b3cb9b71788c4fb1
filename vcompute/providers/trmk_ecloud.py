# Copyright 2013 IBM Corp.

"""
Terremark Enterprise Cloud, vCloud 0.8 with the Terremark extensions.
"""

from vcompute.common.client.service import ProviderMetadata

METADATA = ProviderMetadata(
    id='trmk-ecloud',
    name='Terremark Enterprise Cloud',
    api='vcloud',
    endpoint='https://services.enterprisecloud.terremark.com/api',
    api_version='0.8b-ext2.8',
    token_style='cookie',
    iso3166_codes=('US-FL', 'US-VA', 'NL-NH'))
