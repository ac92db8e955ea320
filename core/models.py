"""Data models for the Interview Tracker application.

This module defines the database schema using Django's ORM.  Every
interview and standup row belongs to exactly one owner (a Django auth
``User``) and all reads and writes performed on behalf of a user are
filtered on that owner column.  ``Profile`` carries the display name
chosen at sign-up and the administrator controlled ``verified`` flag that
gates sign-in.
"""

from __future__ import annotations

from django.contrib.auth.models import User
from django.core.files.storage import default_storage
from django.db import models


class Profile(models.Model):
    """Additional information associated with a Django auth User.

    The built-in ``User`` model handles credentials (the email doubles as
    the username).  ``Profile`` adds the name shown in the cross-user views
    and the ``verified`` flag; accounts stay locked until an administrator
    verifies them.
    """

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    name = models.CharField(max_length=255, blank=True)
    verified = models.BooleanField(default=False)
    register_date = models.DateField(auto_now_add=True)

    def __str__(self) -> str:  # pragma: no cover
        return f"Profile of {self.user.username}"


class ActivityLog(models.Model):
    """Tracks user actions within the application.

    Each log entry records the user who performed the action, a short
    description of the action, optional details and the timestamp.  Logs
    are intended for auditing and can be browsed from the Django admin.
    """

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='activity_logs')
    action = models.CharField(max_length=255)
    details = models.TextField(blank=True, null=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-timestamp']

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.timestamp:%Y-%m-%d %H:%M:%S} - {self.user}: {self.action}"


class Interview(models.Model):
    """One step of a job application pipeline.

    ``profile`` is a free-text label picked by the user (for example the
    persona or CV the application was sent with); it is unrelated to the
    ``Profile`` model.  ``state`` has no enforced transitions: any value may
    follow any other.  ``image_path`` is the storage key of an optional
    screenshot kept in ``default_storage``.
    """

    class State(models.TextChoices):
        ONGOING = 'Ongoing', 'Ongoing'
        REJECTED = 'Rejected', 'Rejected'
        OFFER = 'Offer', 'Offer'

    class InterviewType(models.TextChoices):
        REMOTE = 'Remote', 'Remote'
        ONSITE = 'Onsite', 'Onsite'
        HYBRID = 'Hybrid', 'Hybrid'

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='interviews')
    profile = models.CharField(max_length=255)
    company = models.CharField(max_length=255)
    step = models.CharField(max_length=255)
    interview_date = models.DateField()
    note = models.TextField(blank=True, null=True)
    state = models.CharField(max_length=20, choices=State.choices, default=State.ONGOING)
    interview_type = models.CharField(
        max_length=20,
        choices=InterviewType.choices,
        blank=True,
        null=True,
    )
    image_path = models.CharField(max_length=500, blank=True, null=True)
    script = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'interviews'
        ordering = ['-interview_date', '-id']

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.profile} @ {self.company}: {self.step} ({self.interview_date})"

    @property
    def image_url(self) -> str | None:
        if not self.image_path:
            return None
        return default_storage.url(self.image_path)

    def as_dict(self) -> dict:
        """Serialise the row for JSON responses."""

        payload = {
            'id': self.pk,
            'user_id': self.user_id,
            'profile': self.profile,
            'company': self.company,
            'step': self.step,
            'interview_date': self.interview_date.isoformat() if self.interview_date else None,
            'note': self.note,
            'state': self.state,
            'interview_type': self.interview_type,
            'image_url': self.image_url,
            'script': self.script,
        }
        user_name = getattr(self, 'user_name', None)
        if user_name is not None:
            payload['user_name'] = user_name
        return payload


class DailyStandup(models.Model):
    """A user's standup notes for one calendar day.

    ``items`` holds an ordered list of ``{title, subtitles, contents}``
    dictionaries where each subtitle is ``{subtitle, contents}`` and each
    content is ``{text}``.  ``(user, standup_date)`` is the upsert key.
    """

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='daily_standups')
    standup_date = models.DateField()
    items = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'daily_standups'
        ordering = ['-standup_date', '-id']
        unique_together = ('user', 'standup_date')

    def __str__(self) -> str:  # pragma: no cover
        return f"Standup<{self.user_id} {self.standup_date}>"

    def as_dict(self) -> dict:
        payload = {
            'id': self.pk,
            'user_id': self.user_id,
            'standup_date': self.standup_date.isoformat() if self.standup_date else None,
            'items': self.items,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        user_name = getattr(self, 'user_name', None)
        if user_name is not None:
            payload['user_name'] = user_name
        return payload
