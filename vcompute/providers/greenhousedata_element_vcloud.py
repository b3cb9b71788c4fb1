# Copyright 2013 IBM Corp.

"""
Green House Data Element vCloud. Speaks vCloud 1.0, so the session token
travels in the x-vcloud-authorization header rather than a cookie.
"""

from vcompute.common.client.service import ProviderMetadata

METADATA = ProviderMetadata(
    id='greenhousedata-element-vcloud',
    name='Green House Data Element vCloud',
    api='vcloud',
    endpoint='https://mycloud.greenhousedata.com/cloud/api',
    api_version='1.0',
    token_style='header',
    iso3166_codes=('US-WY',))
