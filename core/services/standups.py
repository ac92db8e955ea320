"""Mutation handlers, item cleaning and outline parsing for daily standups.

A standup holds an ordered list of items::

    {"title": str,
     "subtitles": [{"subtitle": str, "contents": [{"text": str}, ...]}, ...],
     "contents": [{"text": str}, ...]}

Before anything is written, empty leaves are pruned: blank contents are
dropped, subtitles without a title or without remaining contents are
dropped, and an item survives only when it has a title and at least one
subtitle or direct content left.  ``(user, standup_date)`` is the upsert
key, so saving twice for the same day replaces the first save's items.

The standup form edits items as a plain-text outline::

    # Item title
    - direct content
    ## Subtitle
    - content under the subtitle
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from django.contrib.auth.models import User
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Value
from django.db.models.functions import Coalesce, NullIf
from django.utils.dateparse import parse_date

from core.models import DailyStandup
from core.services.activity import log_activity
from core.services.errors import StoreError, ValidationError
from core.services.interview_groups import UNKNOWN_USER_NAME
from core.services.interviews import require_user

logger = logging.getLogger(__name__)

INVALID_ITEMS_MESSAGE = 'Invalid items format'
NO_ITEMS_MESSAGE = 'Please add at least one item with title and content'


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ''


def _clean_contents(contents: Any) -> List[Dict[str, str]]:
    if not isinstance(contents, list):
        return []
    cleaned = []
    for content in contents:
        text = _text(content.get('text')) if isinstance(content, dict) else _text(content)
        if text:
            cleaned.append({'text': text})
    return cleaned


def clean_standup_items(items: Any) -> List[Dict[str, Any]]:
    """Return ``items`` with every empty leaf pruned."""

    if not isinstance(items, list):
        raise ValidationError(INVALID_ITEMS_MESSAGE)
    valid: List[Dict[str, Any]] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        title = _text(item.get('title'))
        if not title:
            continue
        subtitles = []
        for sub in item.get('subtitles') or []:
            if not isinstance(sub, dict):
                continue
            subtitle = _text(sub.get('subtitle'))
            contents = _clean_contents(sub.get('contents'))
            if subtitle and contents:
                subtitles.append({'subtitle': subtitle, 'contents': contents})
        contents = _clean_contents(item.get('contents'))
        if subtitles or contents:
            valid.append({'title': title, 'subtitles': subtitles, 'contents': contents})
    return valid


def parse_items_payload(raw: Any) -> List[Any]:
    """Decode the JSON ``items`` payload posted by clients."""

    if isinstance(raw, list):
        return raw
    try:
        items = json.loads(raw or '')
    except (TypeError, ValueError) as exc:
        raise ValidationError(INVALID_ITEMS_MESSAGE) from exc
    if not isinstance(items, list):
        raise ValidationError(INVALID_ITEMS_MESSAGE)
    return items


def parse_outline(text: str) -> List[Dict[str, Any]]:
    """Parse the outline format into (uncleaned) standup items.

    ``# `` starts an item, ``## `` starts a subtitle in the current item and
    any other non-blank line (with an optional ``-``/``*`` bullet) is a
    content line for the current subtitle, or for the item when no subtitle
    has been opened yet.  Content before the first item is ignored.
    """

    items: List[Dict[str, Any]] = []
    current_item: Optional[Dict[str, Any]] = None
    current_sub: Optional[Dict[str, Any]] = None
    for raw_line in (text or '').splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith('## '):
            if current_item is None:
                continue
            current_sub = {'subtitle': line[3:].strip(), 'contents': []}
            current_item['subtitles'].append(current_sub)
        elif line.startswith('# '):
            current_item = {'title': line[2:].strip(), 'subtitles': [], 'contents': []}
            current_sub = None
            items.append(current_item)
        elif current_item is not None:
            if line[:2] in ('- ', '* '):
                line = line[2:].strip()
            target = current_sub if current_sub is not None else current_item
            target['contents'].append({'text': line})
    return items


def render_outline(items: List[Dict[str, Any]]) -> str:
    """Inverse of :func:`parse_outline` for pre-filling the edit form."""

    lines: List[str] = []
    for item in items or []:
        lines.append(f"# {item.get('title', '')}")
        for content in item.get('contents') or []:
            lines.append(f"- {content.get('text', '')}")
        for sub in item.get('subtitles') or []:
            lines.append(f"## {sub.get('subtitle', '')}")
            for content in sub.get('contents') or []:
                lines.append(f"- {content.get('text', '')}")
        lines.append('')
    return '\n'.join(lines).strip()


def _parse_standup_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    parsed = parse_date(str(value or '').strip())
    if parsed is None:
        raise ValidationError('A valid standup date is required.')
    return parsed


def get_my_standups(user: Optional[User]) -> List[DailyStandup]:
    user = require_user(user)
    try:
        return list(DailyStandup.objects.filter(user=user).order_by('-standup_date', '-id'))
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc


def get_all_standups(user: Optional[User]) -> List[DailyStandup]:
    """Return every user's standups annotated with ``user_name``."""

    require_user(user)
    try:
        return list(
            DailyStandup.objects.annotate(
                user_name=Coalesce(NullIf('user__profile__name', Value('')), Value(UNKNOWN_USER_NAME))
            ).order_by('-standup_date', '-id')
        )
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc


def create_or_update_standup(user: Optional[User], standup_date: Any, items: Any) -> DailyStandup:
    """Upsert the caller's standup for ``standup_date`` and return the row.

    ``items`` may be a decoded list or the raw JSON text posted by a client.
    """

    user = require_user(user)
    day = _parse_standup_date(standup_date)
    valid_items = clean_standup_items(parse_items_payload(items))
    if not valid_items:
        raise ValidationError(NO_ITEMS_MESSAGE)
    try:
        with transaction.atomic():
            standup, created = DailyStandup.objects.update_or_create(
                user=user,
                standup_date=day,
                defaults={'items': valid_items},
            )
    except IntegrityError as exc:
        # A concurrent insert for the same day won the race.
        logger.warning('Standup upsert conflict for user %s on %s: %s', user.pk, day, exc)
        raise StoreError(str(exc)) from exc
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc

    action = 'Created standup' if created else 'Updated standup'
    log_activity(user, action, f"Standup {standup.pk}: {day.isoformat()} ({len(valid_items)} items)")
    return standup


def delete_standup(user: Optional[User], standup_id: int) -> None:
    user = require_user(user)
    try:
        deleted, _ = DailyStandup.objects.filter(pk=standup_id, user=user).delete()
    except DatabaseError as exc:
        raise StoreError(str(exc)) from exc
    if not deleted:
        raise StoreError('Standup not found')
    log_activity(user, 'Deleted standup', f"Standup {standup_id}")
