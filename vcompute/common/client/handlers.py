# Copyright 2013 IBM Corp.

"""
Retry and error handlers consulted by the transport when a request
comes back with an error status.

A retry handler answers whether one particular failure is worth retrying;
the transport owns how many times. Retry handlers never raise.
"""

import logging
import time

from vcompute.common import constants
from vcompute.common import exception
from vcompute.common import netutils
from vcompute.common.gettextutils import _

LOG = logging.getLogger(__name__)


class RetryOnRenew(object):
    """
    Retries a request which failed because the provider let the session
    lease run out. The session cache is invalidated so the retried
    request is signed with a freshly fetched session.

    A 401 answering the login request itself is final: its headers carry
    the user and key but no token.
    """
    def __init__(self, session_cache,
                 marker=constants.LEASE_RENEW_MARKER,
                 user_header=constants.AUTH_USER,
                 key_header=constants.AUTH_KEY,
                 token_header=constants.AUTH_TOKEN,
                 max_payload_bytes=constants.DEFAULT_MAX_PAYLOAD_BYTES):
        self.session_cache = session_cache
        self.marker = marker
        self.user_header = user_header
        self.key_header = key_header
        self.token_header = token_header
        self.max_payload_bytes = max_payload_bytes

    def should_retry(self, command, response):
        retry = False
        try:
            if response.status_code == 401:
                if self._is_login_request(command):
                    retry = False
                else:
                    content = netutils.read_payload_or_none(
                        response, self.max_payload_bytes)
                    if content is not None and self.marker in content:
                        LOG.info(_("Session lease expired, renewing for "
                                   "%r"), command)
                        self.session_cache.invalidate()
                        retry = True
            return retry
        finally:
            netutils.release_payload(response)

    def _is_login_request(self, command):
        headers = command.current_request.headers
        return (netutils.has_header(headers, self.user_header) and
                netutils.has_header(headers, self.key_header) and
                not netutils.has_header(headers, self.token_header))


class BackoffLimitedRetryHandler(object):
    """
    Retries transient server errors, sleeping exponentially longer
    between each attempt.
    """
    def __init__(self, retry_count_limit=constants.DEFAULT_MAX_RETRIES,
                 delay_start=constants.DEFAULT_RETRY_DELAY_START,
                 max_delay=30.0,
                 statuses=constants.TRANSIENT_SERVER_ERRORS):
        self.retry_count_limit = retry_count_limit
        self.delay_start = delay_start
        self.max_delay = max_delay
        self.statuses = statuses

    def should_retry(self, command, response):
        try:
            if response.status_code not in self.statuses:
                return False
            failures = command.failure_count + 1
            if failures > self.retry_count_limit:
                LOG.warning(_("Cannot retry after server error, command "
                              "has exceeded retry limit %(limit)d: "
                              "%(command)r"),
                            {'limit': self.retry_count_limit,
                             'command': command})
                return False
            self.backoff(failures, command)
            return True
        finally:
            netutils.release_payload(response)

    def backoff(self, failures, command):
        delay = min(self.delay_start * 2 ** (failures - 1), self.max_delay)
        LOG.debug("Retry %d/%d: delaying for %.2f seconds: %r",
                  failures, self.retry_count_limit, delay, command)
        time.sleep(delay)


class DelegatingRetryHandler(object):
    """routes 4xx responses to one handler and 5xx to another
    """
    def __init__(self, client_error_handler=None, server_error_handler=None):
        self.client_error_handler = client_error_handler
        self.server_error_handler = server_error_handler

    def should_retry(self, command, response):
        status = response.status_code
        if 400 <= status < 500 and self.client_error_handler is not None:
            return self.client_error_handler.should_retry(command, response)
        if status >= 500 and self.server_error_handler is not None:
            return self.server_error_handler.should_retry(command, response)
        netutils.release_payload(response)
        return False


class ErrorHandler(object):
    """
    Turns a failed response into the matching exception.
    """
    def handle_error(self, command, response):
        status = response.status_code
        message = self.parse_message(response)
        kwargs = {'request': repr(command.current_request),
                  'status': status,
                  'content': message}
        LOG.debug("Translating error %d for %r: %s", status, command,
                  message)
        if status in (401, 403):
            raise exception.AuthorizationError(
                reason='%s -> %s' % (kwargs['request'], message or status))
        if status == 404:
            raise exception.ResourceNotFound(command=command,
                                             response=response, **kwargs)
        if status in (409, 412):
            raise exception.IllegalStateError(
                reason='%s -> %s' % (kwargs['request'], message or status))
        raise exception.HttpResponseError(command=command,
                                          response=response, **kwargs)

    def parse_message(self, response):
        try:
            content = response.text
        except (IOError, RuntimeError):
            return None
        return content.strip() if content else None
