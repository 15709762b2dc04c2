"""
User-facing notifications
Messages are logged and, inside a request, flashed to the user's session
"""

import logging
from flask import flash, has_request_context

logger = logging.getLogger(__name__)


def notify(message, category='info'):
    """Record a transient notification for the current user"""
    if has_request_context():
        flash(message, category)


def notify_error(message, error=None):
    """Notify the user of a failed operation; the operation itself carries on"""
    if error is not None:
        logger.error(f"{message}: {error}")
    else:
        logger.error(message)
    notify(message, 'danger')


def notify_success(message):
    logger.info(message)
    notify(message, 'success')
