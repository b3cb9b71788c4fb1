# Copyright 2013 IBM Corp.
import logging
import threading
import time

import requests
from eventlet import event
from eventlet import timeout as green_timeout
from eventlet.semaphore import Semaphore

from vcompute.common import constants
from vcompute.common.exception import AuthorizationError
from vcompute.common.exception import SessionTimeout
from vcompute.common.gettextutils import _

LOG = logging.getLogger(__name__)

DEFAULT_TTL = constants.DEFAULT_SESSION_INTERVAL

# Failures a fetch is retried on
TIMEOUT_EXCEPTIONS = (TimeoutError,
                      requests.exceptions.Timeout,
                      requests.exceptions.ConnectionError)


class AuthorizationFailureLatch(object):
    """
    Records the first authorization failure seen for a credential. Every
    cache built over that credential shares one latch, so once the
    provider has rejected the credential no cache will ask again.
    The latch is never reset.
    """
    def __init__(self):
        self._lock = threading.Lock()
        self._error = None

    def try_set(self, error):
        """
        Records error unless a failure was already recorded.

        :returns: True if this call set the latch
        """
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            return True

    def is_set(self):
        return self._error is not None

    @property
    def error(self):
        return self._error


def find_authorization_error(error):
    """Walks the cause chain of error looking for an AuthorizationError.
    """
    seen = set()
    while error is not None and id(error) not in seen:
        if isinstance(error, AuthorizationError):
            return error
        seen.add(id(error))
        error = error.__cause__ or error.__context__
    return None


class _Flight(object):
    """A fetch in progress which concurrent callers wait on."""

    def __init__(self):
        self._done = threading.Event()
        self.value = None
        self.error = None

    def finish(self, value=None, error=None):
        self.value = value
        self.error = error
        self._done.set()

    def wait(self, timeout=None):
        """Returns False if timeout elapsed before the fetch landed."""
        return self._done.wait(timeout)


class _GreenFlight(_Flight):

    def __init__(self):
        super(_GreenFlight, self).__init__()
        self._event = event.Event()

    def finish(self, value=None, error=None):
        self.value = value
        self.error = error
        self._event.send(True)

    def wait(self, timeout=None):
        with green_timeout.Timeout(timeout, False):
            return self._event.wait()
        return False


class ExpiringMemoizedSupplier(object):
    """
    Memoizes the result of a slow fetch, typically a login, for ttl
    seconds.

    Only one caller performs the fetch when the value is stale; callers
    arriving meanwhile wait for that fetch and get its value, or its
    error. Fetches which time out are retried up to max_attempts times.
    An authorization failure sets the shared latch and from then on every
    get() raises it without fetching.
    """
    def __init__(self, fetch, ttl=DEFAULT_TTL, latch=None,
                 max_attempts=constants.DEFAULT_FETCH_ATTEMPTS, name=None,
                 timeout_exceptions=TIMEOUT_EXCEPTIONS):
        self._fetch = fetch
        self.ttl = ttl
        self.latch = latch if latch is not None \
            else AuthorizationFailureLatch()
        self.max_attempts = max(1, max_attempts)
        self.name = name or getattr(fetch, '__name__', repr(fetch))
        self._timeout_exceptions = timeout_exceptions
        self._value = None
        self._last_updated = None
        self._generation = 0
        self._flight = None
        self._lock = threading.Lock()

    def __str__(self):
        return self.name

    def _new_flight(self):
        return _Flight()

    def _is_fresh(self, now):
        return (self._last_updated is not None and
                now - self._last_updated < self.ttl)

    def _check_latch(self):
        if self.latch.is_set():
            raise self.latch.error

    def get(self, timeout=None):
        """
        Returns the memoized value, fetching it if stale or absent.

        :param timeout: optional budget in seconds for this call; once it
        is spent no further fetch attempt is started.
        :raise AuthorizationError: if the credential was rejected, now or
        at any earlier point
        :raise SessionTimeout: if every attempt timed out
        """
        self._check_latch()
        deadline = None if timeout is None else time.time() + timeout
        with self._lock:
            if self._is_fresh(time.time()):
                return self._value
            flight = self._flight
            leader = flight is None
            if leader:
                flight = self._flight = self._new_flight()
                generation = self._generation
        if not leader:
            return self._await(flight, timeout)

        try:
            value = self._fetch_with_retry(deadline)
        except BaseException as e:
            self._land(flight, generation, error=e)
            raise
        self._land(flight, generation, value=value)
        return value

    def _await(self, flight, timeout):
        if not flight.wait(timeout):
            raise SessionTimeout(name=self.name, attempts=0)
        if flight.error is not None:
            raise flight.error
        return flight.value

    def _land(self, flight, generation, value=None, error=None):
        with self._lock:
            if self._flight is flight:
                self._flight = None
            # an invalidate() during the fetch discards its result
            if error is None and generation == self._generation:
                now = time.time()
                LOG.debug(_("Updated %s at %s. Last update: %s") %
                          (str(self), now, self._last_updated))
                self._value = value
                self._last_updated = now
        flight.finish(value, error)

    def _fetch_with_retry(self, deadline):
        attempt = 0
        while True:
            self._check_latch()
            attempt += 1
            try:
                return self._fetch()
            except SessionTimeout:
                # a nested supplier has already spent its attempts
                raise
            except self._timeout_exceptions as e:
                if attempt >= self.max_attempts or \
                        (deadline is not None and time.time() >= deadline):
                    LOG.error(_("Giving up on %(name)s after %(attempt)d "
                                "attempt(s): %(error)s"),
                              {'name': self.name, 'attempt': attempt,
                               'error': e})
                    raise SessionTimeout(name=self.name,
                                         attempts=attempt) from e
                LOG.warning(_("Timed out fetching %(name)s, attempt "
                              "%(attempt)d of %(max)d"),
                            {'name': self.name, 'attempt': attempt,
                             'max': self.max_attempts})
            except Exception as e:
                auth_error = find_authorization_error(e)
                if auth_error is None:
                    raise
                if self.latch.try_set(auth_error):
                    LOG.error(_("Authorization failed fetching %(name)s, "
                                "not retrying: %(error)s"),
                              {'name': self.name, 'error': auth_error})
                if self.latch.error is e:
                    raise
                raise self.latch.error

    def invalidate(self):
        """
        Forgets the memoized value so the next get() fetches again.
        """
        with self._lock:
            self._generation += 1
            # later callers start a fetch of their own
            self._flight = None
            self._value = None
            self._last_updated = None
        LOG.debug(_("Invalidated %s") % str(self))


class GreenExpiringMemoizedSupplier(ExpiringMemoizedSupplier):
    """
    Extend the ExpiringMemoizedSupplier to use green thread.
    """
    def __init__(self, fetch, ttl=DEFAULT_TTL, **kwargs):
        super(GreenExpiringMemoizedSupplier, self).__init__(fetch, ttl,
                                                            **kwargs)
        # Replace with the semaphore.
        self._lock = Semaphore()

    def _new_flight(self):
        return _GreenFlight()


def memoize(fetch, ttl=DEFAULT_TTL, latch=None, green=False, **kwargs):
    """
    Builds the memoized supplier for fetch, the green thread flavour if
    green is set.
    """
    clazz = GreenExpiringMemoizedSupplier if green \
        else ExpiringMemoizedSupplier
    return clazz(fetch, ttl, latch=latch, **kwargs)
