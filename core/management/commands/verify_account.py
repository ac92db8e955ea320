"""Management command to verify (or lock) user accounts.

New accounts cannot sign in until an administrator verifies them.  This
is normally done from the Django admin; the command covers deployments
where the admin is not exposed.

Usage::

    python manage.py verify_account jane@example.com john@example.com
    python manage.py verify_account --revoke jane@example.com
    python manage.py verify_account --pending

``--pending`` lists the accounts that are still waiting for
verification and changes nothing.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from core.models import Profile
from core.services.activity import log_activity


class Command(BaseCommand):
    help = "Verify, revoke or list pending user accounts by email."

    def add_arguments(self, parser):
        parser.add_argument('emails', nargs='*', help='Email addresses of the accounts to update')
        parser.add_argument(
            '--revoke',
            action='store_true',
            help='Mark the accounts as unverified instead of verified',
        )
        parser.add_argument(
            '--pending',
            action='store_true',
            help='List accounts awaiting verification',
        )

    def handle(self, *args, **options):
        if options['pending']:
            pending = Profile.objects.filter(verified=False).select_related('user').order_by('register_date')
            for profile in pending:
                self.stdout.write(f"{profile.user.username}\t{profile.name}\t{profile.register_date}")
            self.stdout.write(self.style.NOTICE(f'{len(pending)} account(s) pending verification.'))
            return

        emails = [email.strip().lower() for email in options['emails'] if email.strip()]
        if not emails:
            raise CommandError('Pass at least one email address or --pending.')

        verified = not options['revoke']
        profiles = Profile.objects.filter(user__username__in=emails).select_related('user')
        found = {profile.user.username for profile in profiles}
        missing = sorted(set(emails) - found)
        if missing:
            raise CommandError(f"No account found for: {', '.join(missing)}")

        for profile in profiles:
            profile.verified = verified
            profile.save(update_fields=['verified'])
            action = 'Verified account' if verified else 'Revoked account verification'
            log_activity(profile.user, action, 'manage.py verify_account')
            self.stdout.write(self.style.SUCCESS(f'{action}: {profile.user.username}'))
