"""Audit trail shared by the mutation handlers."""

from __future__ import annotations

import logging
from typing import Optional

from django.contrib.auth.models import User
from django.db import DatabaseError

from core.models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(user: Optional[User], action: str, details: str = '') -> None:
    """Create a log entry recording the specified action.

    Args:
        user: The user who performed the action.  May be None if the
            action occurred anonymously.
        action: A short description of the action (e.g., "Created interview").
        details: Optional additional information about the action.
    """
    logger.info('%s: %s %s', getattr(user, 'username', 'anonymous'), action, details)
    try:
        ActivityLog.objects.create(user=user, action=action, details=details)
    except DatabaseError:
        # The audit row is secondary to the action that was already performed.
        logger.exception('Failed to record activity %r for %s', action, user)
