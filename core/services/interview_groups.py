"""Filtering and grouping of interview lists for the card views.

Records are grouped by ``(profile, company)`` for a single user's view and
by ``(user_name, profile, company)`` for the cross-user view.  A group's
status is the ``state`` of its latest member, i.e. the member with the
greatest ``(interview_date, id)``; the record id breaks ties between
interviews on the same day.

The status filter is evaluated per group: a record whose own ``state``
matches is still excluded when its group's latest record has a different
state.  All other predicates are evaluated per record.  Everything here
works on plain attribute access so model instances and lightweight
stand-ins can be mixed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from django.utils.dateparse import parse_date

UNKNOWN_USER_NAME = 'Unknown'
KEY_SEPARATOR = '-'


def interview_user_name(record: Any) -> str:
    return getattr(record, 'user_name', None) or UNKNOWN_USER_NAME


def group_key(record: Any, by_user: bool = False) -> Tuple[str, ...]:
    if by_user:
        return (interview_user_name(record), record.profile, record.company)
    return (record.profile, record.company)


def display_key(key: Tuple[str, ...]) -> str:
    """Join a group key for display and for the ``expand`` query parameter."""

    return KEY_SEPARATOR.join(key)


def _as_date(value: Any) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    return parse_date(str(value))


def _sort_key(record: Any) -> Tuple[date, Any]:
    return (_as_date(record.interview_date) or date.min, getattr(record, 'id', None) or 0)


@dataclass(frozen=True)
class InterviewFilters:
    """Active filter predicates; empty values mean "no restriction"."""

    profiles: FrozenSet[str] = frozenset()
    company: str = ''
    status: str = ''
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    user_name: str = ''

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> 'InterviewFilters':
        """Build filters from a ``QueryDict`` (or any mapping of strings)."""

        if hasattr(params, 'getlist'):
            profiles = params.getlist('profile')
        else:
            raw = params.get('profile') or []
            profiles = [raw] if isinstance(raw, str) else list(raw)
        return cls(
            profiles=frozenset(p for p in profiles if p),
            company=(params.get('company') or '').strip(),
            status=(params.get('status') or '').strip(),
            date_from=_as_date(params.get('date_from')),
            date_to=_as_date(params.get('date_to')),
            user_name=(params.get('user') or '').strip(),
        )

    @property
    def is_active(self) -> bool:
        return bool(
            self.profiles or self.company or self.status
            or self.date_from or self.date_to or self.user_name
        )

    def as_query(self) -> Dict[str, Any]:
        """Return the filters as query parameters (used for links and exports)."""

        query: Dict[str, Any] = {}
        if self.profiles:
            query['profile'] = sorted(self.profiles)
        for name, value in (('company', self.company), ('status', self.status), ('user', self.user_name)):
            if value:
                query[name] = value
        if self.date_from:
            query['date_from'] = self.date_from.isoformat()
        if self.date_to:
            query['date_to'] = self.date_to.isoformat()
        return query


@dataclass
class InterviewGroup:
    """One pipeline: the interviews sharing a group key."""

    key: Tuple[str, ...]
    interviews: List[Any] = field(default_factory=list)

    @property
    def display_key(self) -> str:
        return display_key(self.key)

    @property
    def user_name(self) -> Optional[str]:
        return self.key[0] if len(self.key) == 3 else None

    @property
    def profile(self) -> str:
        return self.key[-2]

    @property
    def company(self) -> str:
        return self.key[-1]

    @property
    def latest(self) -> Any:
        return self.interviews[-1]

    @property
    def latest_status(self) -> str:
        return self.latest.state

    def as_dict(self) -> Dict[str, Any]:
        payload = {
            'key': self.display_key,
            'profile': self.profile,
            'company': self.company,
            'latestStatus': self.latest_status,
            'interviews': [
                record.as_dict() if hasattr(record, 'as_dict') else vars(record)
                for record in self.interviews
            ],
        }
        if self.user_name is not None:
            payload['userName'] = self.user_name
        return payload


def group_interviews(records: Iterable[Any], by_user: bool = False) -> List[InterviewGroup]:
    """Partition ``records`` by group key.

    Groups keep the order in which their first member appears in
    ``records``.  Members are sorted ascending by ``(interview_date, id)``
    so the last member is the latest one.
    """

    groups: Dict[Tuple[str, ...], InterviewGroup] = {}
    for record in records:
        key = group_key(record, by_user)
        group = groups.get(key)
        if group is None:
            group = groups[key] = InterviewGroup(key=key)
        group.interviews.append(record)
    for group in groups.values():
        group.interviews.sort(key=_sort_key)
    return list(groups.values())


def latest_status_by_group(records: Iterable[Any], by_user: bool = False) -> Dict[Tuple[str, ...], str]:
    return {group.key: group.latest_status for group in group_interviews(records, by_user)}


def filter_interviews(records: Iterable[Any], filters: InterviewFilters, by_user: bool = False) -> List[Any]:
    """Return the records satisfying every active predicate.

    Predicates are applied in this order: user name, profile set, company
    substring, group status, date range.  The status predicate considers the
    groups formed by the records that survived the earlier predicates.
    """

    result = list(records)
    if by_user and filters.user_name:
        result = [r for r in result if interview_user_name(r) == filters.user_name]
    if filters.profiles:
        result = [r for r in result if r.profile in filters.profiles]
    if filters.company:
        needle = filters.company.lower()
        result = [r for r in result if needle in (r.company or '').lower()]
    if filters.status:
        latest = latest_status_by_group(result, by_user)
        result = [r for r in result if latest[group_key(r, by_user)] == filters.status]
    if filters.date_from:
        result = [r for r in result if _as_date(r.interview_date) >= filters.date_from]
    if filters.date_to:
        result = [r for r in result if _as_date(r.interview_date) <= filters.date_to]
    return result


def unique_profiles(records: Iterable[Any], user_name: str = '') -> List[str]:
    """Sorted distinct profile labels, optionally limited to one user."""

    if user_name:
        records = [r for r in records if interview_user_name(r) == user_name]
    return sorted({r.profile for r in records})


def unique_user_names(records: Iterable[Any]) -> List[str]:
    return sorted({interview_user_name(r) for r in records})


def build_grouped_view(
    records: Iterable[Any],
    filters: InterviewFilters,
    by_user: bool = False,
) -> Tuple[List[Any], List[InterviewGroup]]:
    """Filter then group; returns ``(filtered_records, groups)``."""

    filtered = filter_interviews(records, filters, by_user)
    return filtered, group_interviews(filtered, by_user)
