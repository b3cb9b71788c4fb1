# Copyright 2013 IBM Corp.

import threading
import time

import eventlet
import mock
import requests
import testtools

from vcompute.common import exception
from vcompute.common import utils


class CountingFetch(object):
    """a fetch returning the values it is given, in order
    """
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


class AuthorizationFailureLatchTest(testtools.TestCase):

    def test_try_set_only_once(self):
        latch = utils.AuthorizationFailureLatch()
        first = exception.AuthorizationError(reason='first')
        second = exception.AuthorizationError(reason='second')
        self.assertFalse(latch.is_set())
        self.assertTrue(latch.try_set(first))
        self.assertFalse(latch.try_set(second))
        self.assertTrue(latch.is_set())
        self.assertIs(latch.error, first)

    def test_find_authorization_error_in_cause_chain(self):
        auth_error = exception.AuthorizationError(reason='bad key')
        try:
            try:
                raise auth_error
            except exception.AuthorizationError as e:
                raise RuntimeError('login failed') from e
        except RuntimeError as wrapped:
            self.assertIs(utils.find_authorization_error(wrapped), auth_error)
        self.assertIsNone(utils.find_authorization_error(ValueError('x')))


class ExpiringMemoizedSupplierTest(testtools.TestCase):

    def setUp(self):
        super(ExpiringMemoizedSupplierTest, self).setUp()
        p = mock.patch('vcompute.common.utils.time')
        self.time = p.start()
        self.addCleanup(p.stop)
        self.time.time.return_value = 1000.0

    def test_get_is_memoized_within_ttl(self):
        fetch = CountingFetch('session-1', 'session-2')
        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60)
        self.assertEqual(supplier.get(), 'session-1')
        self.time.time.return_value = 1059.0
        self.assertEqual(supplier.get(), 'session-1')
        self.assertEqual(fetch.calls, 1)

    def test_get_fetches_again_after_ttl(self):
        fetch = CountingFetch('session-1', 'session-2')
        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60)
        self.assertEqual(supplier.get(), 'session-1')
        self.time.time.return_value = 1060.0
        self.assertEqual(supplier.get(), 'session-2')
        self.assertEqual(fetch.calls, 2)

    def test_invalidate_forces_fetch(self):
        fetch = CountingFetch('session-1', 'session-2')
        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60)
        supplier.get()
        supplier.invalidate()
        supplier.invalidate()
        self.assertEqual(supplier.get(), 'session-2')
        self.assertEqual(fetch.calls, 2)

    def test_invalidate_during_fetch_discards_result(self):
        supplier = None

        def fetch():
            fetch.calls += 1
            supplier.invalidate()
            return 'session-%d' % fetch.calls
        fetch.calls = 0

        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60)
        self.assertEqual(supplier.get(), 'session-1')
        self.assertEqual(supplier.get(), 'session-2')

    def test_timeout_is_retried(self):
        fetch = CountingFetch(TimeoutError(), requests.exceptions.Timeout(),
                              'session-1')
        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60,
                                                  max_attempts=3)
        self.assertEqual(supplier.get(), 'session-1')
        self.assertEqual(fetch.calls, 3)

    def test_timeout_gives_up_after_attempts(self):
        fetch = CountingFetch(TimeoutError(), TimeoutError(), TimeoutError())
        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60,
                                                  max_attempts=3,
                                                  name='login')
        e = self.assertRaises(exception.SessionTimeout, supplier.get)
        self.assertIsInstance(e, TimeoutError)
        self.assertIn('login', str(e))
        self.assertEqual(fetch.calls, 3)

    def test_timeout_stops_at_deadline(self):
        fetch = CountingFetch(TimeoutError(), 'session-1')
        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60,
                                                  max_attempts=3)
        self.assertRaises(exception.SessionTimeout, supplier.get, timeout=0)
        self.assertEqual(fetch.calls, 1)

    def test_authorization_error_is_latched(self):
        error = exception.AuthorizationError(reason='bad key')
        fetch = CountingFetch(error, 'session-1')
        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60)
        e = self.assertRaises(exception.AuthorizationError, supplier.get)
        self.assertIs(e, error)
        supplier.invalidate()
        self.time.time.return_value = 5000.0
        e = self.assertRaises(exception.AuthorizationError, supplier.get)
        self.assertIs(e, error)
        self.assertEqual(fetch.calls, 1)
        self.assertTrue(supplier.latch.is_set())

    def test_wrapped_authorization_error_is_latched(self):
        def fetch():
            fetch.calls += 1
            try:
                raise exception.AuthorizationError(reason='bad key')
            except exception.AuthorizationError as e:
                raise RuntimeError('login failed') from e
        fetch.calls = 0

        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60)
        self.assertRaises(exception.AuthorizationError, supplier.get)
        self.assertRaises(exception.AuthorizationError, supplier.get)
        self.assertEqual(fetch.calls, 1)

    def test_authorization_error_is_not_retried_as_timeout(self):
        fetch = CountingFetch(TimeoutError(),
                              exception.AuthorizationError(reason='nope'),
                              'session-1')
        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60,
                                                  max_attempts=5)
        self.assertRaises(exception.AuthorizationError, supplier.get)
        self.assertEqual(fetch.calls, 2)

    def test_shared_latch_stops_every_supplier(self):
        latch = utils.AuthorizationFailureLatch()
        session = utils.ExpiringMemoizedSupplier(
            CountingFetch(exception.AuthorizationError(reason='nope')),
            latch=latch)
        orgs_fetch = CountingFetch({'org': 'ref'})
        orgs = utils.ExpiringMemoizedSupplier(orgs_fetch, latch=latch)
        self.assertRaises(exception.AuthorizationError, session.get)
        self.assertRaises(exception.AuthorizationError, orgs.get)
        self.assertEqual(orgs_fetch.calls, 0)

    def test_other_errors_propagate_and_are_not_cached(self):
        fetch = CountingFetch(ValueError('garbled'), 'session-1')
        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60)
        self.assertRaises(ValueError, supplier.get)
        self.assertFalse(supplier.latch.is_set())
        self.assertEqual(supplier.get(), 'session-1')
        self.assertEqual(fetch.calls, 2)

    def test_nested_session_timeout_is_not_retried(self):
        inner_fetch = CountingFetch(TimeoutError(), TimeoutError(),
                                    TimeoutError())
        inner = utils.ExpiringMemoizedSupplier(inner_fetch, max_attempts=3,
                                               name='session')
        outer = utils.ExpiringMemoizedSupplier(inner.get, max_attempts=3,
                                               name='org map')
        e = self.assertRaises(exception.SessionTimeout, outer.get)
        self.assertIn('session', str(e))
        self.assertEqual(inner_fetch.calls, 3)

    def test_memoize_picks_flavour(self):
        self.assertIsInstance(utils.memoize(lambda: 1),
                              utils.ExpiringMemoizedSupplier)
        self.assertIsInstance(utils.memoize(lambda: 1, green=True),
                              utils.GreenExpiringMemoizedSupplier)


class WaiterCountingSupplier(utils.ExpiringMemoizedSupplier):

    def __init__(self, *args, **kwargs):
        super(WaiterCountingSupplier, self).__init__(*args, **kwargs)
        self.waiting = 0
        self._waiting_lock = threading.Lock()

    def _await(self, flight, timeout):
        with self._waiting_lock:
            self.waiting += 1
        return super(WaiterCountingSupplier, self)._await(flight, timeout)


class ConcurrentFetchTest(testtools.TestCase):

    callers = 8

    def _run(self, outcome):
        started = threading.Event()
        release = threading.Event()
        calls = []

        def fetch():
            calls.append(1)
            started.set()
            release.wait(10)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome

        supplier = WaiterCountingSupplier(fetch, ttl=60)
        results = []
        lock = threading.Lock()

        def call():
            try:
                value = supplier.get()
            except Exception as e:
                value = e
            with lock:
                results.append(value)

        threads = [threading.Thread(target=call)
                   for _ in range(self.callers)]
        for thread in threads:
            thread.start()
        self.assertTrue(started.wait(10))
        deadline = time.time() + 10
        while supplier.waiting < self.callers - 1 and time.time() < deadline:
            time.sleep(0.01)
        release.set()
        for thread in threads:
            thread.join(10)
        return calls, results

    def test_one_fetch_for_all_callers(self):
        calls, results = self._run('session-1')
        self.assertEqual(len(calls), 1)
        self.assertEqual(results, ['session-1'] * self.callers)

    def test_all_callers_get_the_same_error(self):
        error = exception.AuthorizationError(reason='bad key')
        calls, results = self._run(error)
        self.assertEqual(len(calls), 1)
        self.assertEqual(len(results), self.callers)
        for result in results:
            self.assertIs(result, error)


class GreenExpiringMemoizedSupplierTest(testtools.TestCase):

    def test_one_fetch_for_all_greenthreads(self):
        calls = []

        def fetch():
            calls.append(1)
            eventlet.sleep(0.01)
            return 'session-1'

        supplier = utils.GreenExpiringMemoizedSupplier(fetch, ttl=60)
        pile = [eventlet.spawn(supplier.get) for _ in range(10)]
        results = [thread.wait() for thread in pile]
        self.assertEqual(results, ['session-1'] * 10)
        self.assertEqual(len(calls), 1)

    def test_waiter_times_out(self):
        def fetch():
            eventlet.sleep(0.5)
            return 'session-1'

        supplier = utils.GreenExpiringMemoizedSupplier(fetch, ttl=60)
        leader = eventlet.spawn(supplier.get)
        eventlet.sleep(0)
        self.assertRaises(exception.SessionTimeout, supplier.get,
                          timeout=0.01)
        self.assertEqual(leader.wait(), 'session-1')


class InvalidateWhileFetchingTest(testtools.TestCase):

    def test_get_after_invalidate_fetches_again(self):
        started = threading.Event()
        release = threading.Event()
        values = ['stale', 'fresh']
        calls = []

        def fetch():
            calls.append(1)
            value = values.pop(0)
            if value == 'stale':
                started.set()
                release.wait(10)
            return value

        supplier = utils.ExpiringMemoizedSupplier(fetch, ttl=60)
        leader_results = []
        results = []
        leader = threading.Thread(
            target=lambda: leader_results.append(supplier.get()))
        leader.start()
        self.assertTrue(started.wait(10))
        supplier.invalidate()
        follower = threading.Thread(
            target=lambda: results.append(supplier.get()))
        follower.start()
        follower.join(10)
        release.set()
        leader.join(10)
        self.assertEqual((results, len(calls)), (['fresh'], 2))
        self.assertEqual(leader_results, ['stale'])
        # the older fetch landing late does not replace the fresh value
        self.assertEqual(supplier.get(), 'fresh')
        self.assertEqual(len(calls), 2)
