"""Custom context processors for the core application.

Context processors add extra variables into the context of every template
rendered by Django.  Here we expose the name shown in the navigation bar
and the URL name of the current page so the active tab can be
highlighted.
"""

from __future__ import annotations

from typing import Any, Dict


def navigation(request) -> Dict[str, Any]:
    """Expose the display name and active navigation tab to all templates."""
    display_name = ''
    user = getattr(request, 'user', None)
    if user and user.is_authenticated:
        profile = getattr(user, 'profile', None)
        display_name = (profile.name if profile else '') or user.email or user.username
    match = getattr(request, 'resolver_match', None)
    return {
        'display_name': display_name,
        'active_page': match.url_name if match else '',
    }
