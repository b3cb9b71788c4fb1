# Copyright 2013 IBM Corp.

import collections
import time
import types

ReferenceType = collections.namedtuple('ReferenceType',
                                       ['name', 'href', 'type'])
ReferenceType.__new__.__defaults__ = (None,)


class AuthSession(object):
    """The result of logging in to a provider: the token to sign requests
    with and a directory naming what the credential may reach (orgs for
    vCloud, service endpoints for OpenStack).

    Sessions are never changed once built, renewing the session builds a
    new one.
    """
    __slots__ = ('_token', '_directory', '_created')

    def __init__(self, token, directory=None, created=None):
        self._token = token
        self._directory = types.MappingProxyType(dict(directory or {}))
        self._created = created if created is not None else time.time()

    @property
    def token(self):
        return self._token

    @property
    def directory(self):
        return self._directory

    @property
    def created(self):
        return self._created

    def __eq__(self, other):
        return (isinstance(other, AuthSession) and
                self._token == other._token and
                self._directory == other._directory)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self._token)

    def __repr__(self):
        # the token is a credential, keep it out of logs
        return '<AuthSession directory=%s created=%s>' % (
            sorted(self._directory), self._created)
