# Copyright 2013 IBM Corp.

"""
The transport every provider client sends its requests through.

A request passes its filters (which typically sign it with the current
session token) on every attempt, so a retry after the session cache was
invalidated goes out with a fresh token.
"""

import logging

import requests

from vcompute.common import constants
from vcompute.common.gettextutils import _

LOG = logging.getLogger(__name__)


class HttpRequest(object):
    """an http request which filters copy rather than mutate
    """
    def __init__(self, method, endpoint, headers=None, payload=None,
                 params=None):
        self.method = method
        self.endpoint = endpoint
        self.headers = dict(headers or {})
        self.payload = payload
        self.params = params

    def with_header(self, name, value):
        """returns a copy of this request with name set to value
        """
        headers = self.headers.copy()
        headers[name] = value
        return HttpRequest(self.method, self.endpoint, headers,
                           self.payload, self.params)

    def __repr__(self):
        return '%s %s' % (self.method, self.endpoint)


class HttpCommand(object):
    """tracks a request through its attempts
    """
    def __init__(self, request):
        self.original_request = request
        self.current_request = request
        self.failure_count = 0

    def increment_failure_count(self):
        self.failure_count += 1
        return self.failure_count

    def __repr__(self):
        return '[request=%r, failures=%d]' % (self.current_request,
                                              self.failure_count)


class HttpClient(object):
    """Sends HttpRequests with a requests session, retrying failed
    responses the retry handler says are worth retrying, up to
    max_retries times. Failures that are not retried are handed to the
    error handler which raises the matching exception.
    """
    def __init__(self, session=None, filters=None, retry_handler=None,
                 error_handler=None,
                 max_retries=constants.DEFAULT_MAX_RETRIES,
                 timeout=constants.DEFAULT_HTTP_TIMEOUT,
                 verify=True):
        self.session = session or requests.Session()
        self.filters = list(filters or [])
        self.retry_handler = retry_handler
        self.error_handler = error_handler
        self.max_retries = max_retries
        self.timeout = timeout
        self.verify = verify

    def with_filters(self, *filters):
        """returns a client sharing this one's session and handlers which
        additionally applies filters to every request
        """
        return HttpClient(self.session, self.filters + list(filters),
                          self.retry_handler, self.error_handler,
                          self.max_retries, self.timeout, self.verify)

    def _filter(self, request):
        for request_filter in self.filters:
            request = request_filter(request)
        return request

    def _send(self, request, timeout):
        LOG.debug("Sending request %r", request)
        return self.session.request(request.method, request.endpoint,
                                    headers=request.headers,
                                    data=request.payload,
                                    params=request.params,
                                    timeout=timeout,
                                    verify=self.verify)

    def execute(self, request, timeout=None):
        """perform the request, retrying as the handlers allow

        :param request: the HttpRequest to send
        :param timeout: seconds to wait for the provider, defaults to
        the client timeout
        :returns: the requests.Response of the final attempt
        """
        command = HttpCommand(request)
        timeout = timeout or self.timeout
        while True:
            command.current_request = self._filter(command.original_request)
            try:
                response = self._send(command.current_request, timeout)
            except requests.exceptions.ConnectionError as e:
                if command.increment_failure_count() > self.max_retries:
                    LOG.error(_("Cannot retry after %(count)d failures: "
                                "%(command)r"),
                              {'count': command.failure_count - 1,
                               'command': command})
                    raise
                LOG.warning(_("Retrying %(command)r after connection "
                              "error: %(error)s"),
                            {'command': command, 'error': e})
                continue

            if response.status_code < 300:
                return response
            if self._should_retry(command, response):
                continue
            if self.error_handler is not None:
                self.error_handler.handle_error(command, response)
            return response

    def _should_retry(self, command, response):
        if self.retry_handler is None:
            return False
        if not self.retry_handler.should_retry(command, response):
            return False
        if command.increment_failure_count() > self.max_retries:
            LOG.warning(_("Cannot retry after %(count)d failures: "
                          "%(command)r"),
                        {'count': command.failure_count - 1,
                         'command': command})
            return False
        LOG.debug("Retrying %r, status %d", command, response.status_code)
        return True

    def close(self):
        self.session.close()
