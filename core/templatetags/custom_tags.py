"""Custom template filters for the core app."""

from __future__ import annotations

from typing import Iterable

from django import template

register = template.Library()

STATE_BADGES = {
    'Ongoing': 'text-bg-primary',
    'Offer': 'text-bg-success',
    'Rejected': 'text-bg-danger',
}


@register.filter
def state_badge(state: str) -> str:
    """Return the Bootstrap badge class for an interview state.

    Usage::

        <span class="badge {{ interview.state|state_badge }}">{{ interview.state }}</span>

    Unknown states fall back to a neutral grey badge.
    """
    return STATE_BADGES.get(state, 'text-bg-secondary')


@register.filter
def short_date(value) -> str:
    """Format a date as ``Mar 05, 2024``; empty values render as ``''``."""
    if not value:
        return ''
    return value.strftime('%b %d, %Y')


@register.filter
def is_expanded(group, expanded: Iterable[str]) -> bool:
    return group.display_key in (expanded or ())


@register.simple_tag(takes_context=True)
def toggle_expand_url(context, group) -> str:
    """Return the current query string with ``group`` expanded or collapsed.

    The expanded groups live in repeated ``expand`` parameters so that the
    selection survives reloads and filter changes.
    """
    request = context['request']
    params = request.GET.copy()
    expanded = [key for key in params.getlist('expand') if key != group.display_key]
    if group.display_key not in params.getlist('expand'):
        expanded.append(group.display_key)
    params.setlist('expand', expanded)
    return '?' + params.urlencode()
