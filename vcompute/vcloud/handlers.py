# Copyright 2013 IBM Corp.

import logging

from vcompute.common import exception
from vcompute.common.client import handlers

LOG = logging.getLogger(__name__)

# Terremark puts the error text in this header rather than the body
ERROR_HEADER = 'x-elastic-error'

# provider messages meaning the resource is busy or taken, not broken
ILLEGAL_STATE_MESSAGES = ('because there is a pending task running',
                          'already exists',
                          'is not in a valid state')


class VCloudErrorHandler(handlers.ErrorHandler):
    """
    Error handler reading the message out of the vcloud error header and
    reporting busy or conflicting resources as IllegalStateError.
    """
    def parse_message(self, response):
        message = response.headers.get(ERROR_HEADER)
        if message:
            return message
        return super(VCloudErrorHandler, self).parse_message(response)

    def handle_error(self, command, response):
        message = self.parse_message(response)
        if message and response.status_code in (400, 500) and \
                any(text in message for text in ILLEGAL_STATE_MESSAGES):
            LOG.debug("%r failed on resource state: %s", command, message)
            raise exception.IllegalStateError(reason=message)
        super(VCloudErrorHandler, self).handle_error(command, response)
