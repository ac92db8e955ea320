"""Mutation handlers and list queries for interview records.

Every function resolves the acting user first and raises
``UnauthorizedError`` for anonymous callers.  Updates and deletes filter on
``(id, owner)`` so a caller can never touch another owner's row; a missing
match is reported as a generic ``StoreError``.  Lists are read from the
store on every call and successful mutations write an ``ActivityLog`` entry.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from django.contrib.auth.models import User
from django.db import DatabaseError, transaction
from django.db.models import Value
from django.db.models.functions import Coalesce, NullIf
from django.utils.dateparse import parse_date

from core.models import Interview
from core.services.activity import log_activity
from core.services.errors import StoreError, UnauthorizedError, ValidationError
from core.services.images import delete_interview_image, store_interview_image
from core.services.interview_groups import UNKNOWN_USER_NAME

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('profile', 'company', 'step', 'interview_date', 'note', 'state', 'interview_type', 'script')
OPTIONAL_FIELDS = ('note', 'interview_type', 'script')


def require_user(user: Optional[User]) -> User:
    """Return ``user`` when authenticated, otherwise raise ``UnauthorizedError``."""

    if user is None or not getattr(user, 'is_authenticated', False):
        raise UnauthorizedError()
    return user


def _clean_values(data: Mapping[str, Any]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for field in EDITABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if isinstance(value, str):
            value = value.strip()
        if field in OPTIONAL_FIELDS and not value:
            value = None
        if field == 'interview_date' and isinstance(value, str) and value:
            parsed = parse_date(value)
            if parsed is None:
                raise ValidationError(f'Invalid interview date: {value}')
            value = parsed
        values[field] = value
    if not values.get('state'):
        values.pop('state', None)
    for field in ('profile', 'company', 'step', 'interview_date'):
        if field in values and not values[field]:
            raise ValidationError(f'{field.replace("_", " ").capitalize()} is required.')
    return values


def _owned_queryset(user: User):
    return Interview.objects.filter(user=user)


def get_interviews(user: Optional[User]) -> List[Interview]:
    """Return the caller's interviews, most recent ``interview_date`` first."""

    user = require_user(user)
    try:
        return list(_owned_queryset(user).order_by('-interview_date', '-id'))
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc


def get_all_interviews(user: Optional[User]) -> List[Interview]:
    """Return every user's interviews annotated with ``user_name``."""

    require_user(user)
    try:
        return list(
            Interview.objects.select_related('user')
            .annotate(user_name=Coalesce(NullIf('user__profile__name', Value('')), Value(UNKNOWN_USER_NAME)))
            .order_by('-interview_date', '-id')
        )
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc


def get_interview(user: Optional[User], interview_id: int) -> Interview:
    """Return one of the caller's interviews or raise ``StoreError``."""

    user = require_user(user)
    try:
        return _owned_queryset(user).get(pk=interview_id)
    except Interview.DoesNotExist as exc:
        raise StoreError('Interview not found') from exc
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc


def create_interview(user: Optional[User], data: Mapping[str, Any], image=None) -> Interview:
    """Insert a new interview owned by the caller and return it.

    When ``image`` is given it is resized and uploaded first; if the insert
    then fails the uploaded object is deleted again.
    """

    user = require_user(user)
    values = _clean_values(data)
    values.setdefault('state', Interview.State.ONGOING)
    image_path = store_interview_image(user.pk, image) if image else None
    try:
        with transaction.atomic():
            interview = Interview.objects.create(user=user, image_path=image_path, **values)
    except DatabaseError as exc:
        if image_path and not delete_interview_image(image_path):
            logger.warning('Orphaned interview image left behind: %s', image_path)
        raise StoreError(str(exc)) from exc

    log_activity(user, 'Created interview', f"Interview {interview.pk}: {interview.company} / {interview.step}")
    return interview


def update_interview(
    user: Optional[User],
    interview_id: int,
    data: Mapping[str, Any],
    image=None,
) -> Interview:
    """Update the caller's interview ``interview_id`` and return the new row.

    A new ``image`` replaces the stored one; the previous object is removed
    once the row has been written.
    """

    user = require_user(user)
    values = _clean_values(data)
    new_image_path = store_interview_image(user.pk, image) if image else None
    try:
        with transaction.atomic():
            interview = _owned_queryset(user).select_for_update().filter(pk=interview_id).first()
            if interview is None:
                raise StoreError('Interview not found')
            old_image_path = interview.image_path
            for field, value in values.items():
                setattr(interview, field, value)
            if new_image_path:
                interview.image_path = new_image_path
            interview.save()
    except (DatabaseError, StoreError) as exc:
        if new_image_path and not delete_interview_image(new_image_path):
            logger.warning('Orphaned interview image left behind: %s', new_image_path)
        if isinstance(exc, StoreError):
            raise
        raise StoreError(str(exc)) from exc

    if new_image_path and old_image_path:
        delete_interview_image(old_image_path)
    log_activity(user, 'Updated interview', f"Interview {interview.pk}: {interview.company} / {interview.step}")
    return interview


def update_interview_status(user: Optional[User], interview_id: int, state: str) -> Interview:
    """Change only the ``state`` of one of the caller's interviews."""

    user = require_user(user)
    if state not in Interview.State.values:
        raise ValidationError(f'Unknown status: {state}')
    return update_interview(user, interview_id, {'state': state})


def delete_interview(user: Optional[User], interview_id: int) -> None:
    """Delete the caller's interview and its stored image, if any."""

    user = require_user(user)
    try:
        with transaction.atomic():
            interview = _owned_queryset(user).filter(pk=interview_id).first()
            if interview is None:
                raise StoreError('Interview not found')
            image_path = interview.image_path
            label = f"Interview {interview.pk}: {interview.company} / {interview.step}"
            interview.delete()
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc

    if image_path:
        delete_interview_image(image_path)
    log_activity(user, 'Deleted interview', label)
