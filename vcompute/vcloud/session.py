# Copyright 2013 IBM Corp.

import logging
import re

from vcompute.common import constants
from vcompute.common import exception
from vcompute.common import utils
from vcompute.common.gettextutils import _

LOG = logging.getLogger(__name__)


class VCloudSessionSuppliers(object):
    """
    The session cache of a vcloud credential and the caches derived from
    it. Every cache shares one AuthorizationFailureLatch, so a rejected
    credential stops them all.

    Usage sample:
        login = VCloudLoginClient(client, login_uri, 'user', 'secret',
                                  org_parser=parse_org_list)
        suppliers = VCloudSessionSuppliers(login, ttl=60)
        token = suppliers.token()
        org_list = suppliers.org_list_uri()
    """
    def __init__(self, login, ttl=constants.DEFAULT_SESSION_INTERVAL,
                 latch=None, green=False,
                 max_attempts=constants.DEFAULT_FETCH_ATTEMPTS):
        self.latch = latch if latch is not None \
            else utils.AuthorizationFailureLatch()
        self.session_cache = utils.memoize(login, ttl, self.latch, green,
                                           max_attempts=max_attempts,
                                           name='vcloud session')
        self.org_cache = utils.memoize(self._org_map, ttl, self.latch, green,
                                       max_attempts=max_attempts,
                                       name='vcloud org map')

    def session(self):
        return self.session_cache.get()

    def _org_map(self):
        return dict(self.session_cache.get().directory)

    def orgs(self):
        """org name -> ReferenceType for every org the credential sees
        """
        return self.org_cache.get()

    def token(self):
        token = self.session_cache.get().token
        if token is None:
            raise exception.IllegalStateError(
                reason=_('No token present in session'))
        return token

    def org_list_uri(self):
        """the org list uri, derived from the href of the last org
        """
        orgs = self.session_cache.get().directory
        if not orgs:
            raise exception.IllegalStateError(
                reason=_('No orgs present in session'))
        last = list(orgs.values())[-1]
        return re.sub('org/.*', 'org', last.href)

    def invalidate(self):
        self.session_cache.invalidate()
        self.org_cache.invalidate()


def vdc_to_org(org_vdcs):
    """inverts an org name -> vdc names mapping into vdc -> org name

    :param org_vdcs: mapping of org name to the names of its vdcs
    """
    result = {}
    for org_name, vdcs in org_vdcs.items():
        for vdc in vdcs:
            result[vdc] = org_name
    return result
