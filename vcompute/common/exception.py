# Copyright 2013 IBM Corp.

"""
vcompute Common Exceptions
"""

from vcompute.common.gettextutils import _

_FATAL_EXCEPTION_FORMAT_ERRORS = False


class CommonException(Exception):
    """
    vcompute Common Exception

    To correctly use this class, inherit from it and define a 'message'
    property. That message will get printed with the keyword arguments
    provided to the constructor.
    """
    message = _('An unknown exception occurred')

    def __init__(self, message=None, *args, **kwargs):
        self.kwargs = kwargs
        if not message:
            message = self.message
        try:
            message = message % kwargs
        except Exception:
            if _FATAL_EXCEPTION_FORMAT_ERRORS:
                raise
            else:
                # at least get the core message out if something happened
                pass

        super(CommonException, self).__init__(message)


class AuthorizationError(CommonException):
    """
    Raised when the provider rejects the credentials outright. Never
    retried; memoized suppliers latch it for the lifetime of the process.
    """
    message = _('Not authorized: %(reason)s')


class SessionTimeout(CommonException, TimeoutError):
    """
    Raised once a fetch has kept timing out past its attempts or deadline.

    :param name: what was being fetched
    :param attempts: how many attempts were made
    """
    message = _('Timed out fetching %(name)s after %(attempts)s attempt(s)')


class HttpResponseError(CommonException):
    """
    Raised when the provider answers a request with an error status.

    :param command: the command whose request failed
    :param status: the http status code
    :param content: the error text returned by the provider
    """
    message = _('request %(request)s failed with code %(status)s, '
                'content: %(content)s')

    def __init__(self, message=None, command=None, response=None, **kwargs):
        self.command = command
        self.response = response
        self.status = kwargs.get('status')
        self.content = kwargs.get('content')
        super(HttpResponseError, self).__init__(message, **kwargs)


class ResourceNotFound(HttpResponseError):
    """
    Raised when the provider answers 404 to a request.
    """
    message = _('resource not found for request %(request)s: %(content)s')


class IllegalStateError(CommonException):
    """
    Raised when the provider or the configuration is not in a state
    that permits the operation.
    """
    message = _('Illegal state: %(reason)s')


class ProviderNotFound(CommonException):
    """
    Raised when no provider module exists for the requested id.

    :param provider: the provider id which was not found
    """
    message = _('The provider \'%(provider)s\' was not found.')
