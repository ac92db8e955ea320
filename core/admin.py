"""Django admin configuration for core models.

Administrators verify new accounts here, either from the user page (the
profile is edited inline) or in bulk from the profile list.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import User

from .models import ActivityLog, DailyStandup, Interview, Profile
from .services.activity import log_activity


class ProfileInline(admin.StackedInline):
    """Allows editing of the Profile model on the same page as the User model."""
    model = Profile
    can_delete = False
    verbose_name_plural = 'profile'


class UserAdmin(BaseUserAdmin):
    """Extend the default User admin to include Profile fields."""
    inlines = (ProfileInline,)
    list_display = BaseUserAdmin.list_display + ('is_verified',)

    @admin.display(boolean=True, description='Verified')
    def is_verified(self, obj: User) -> bool:
        profile = getattr(obj, 'profile', None)
        return bool(profile and profile.verified)


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'name', 'verified', 'register_date')
    list_filter = ('verified',)
    search_fields = ('user__username', 'name')
    actions = ('mark_verified', 'mark_unverified')

    @admin.action(description='Mark selected profiles as verified')
    def mark_verified(self, request, queryset):
        updated = queryset.update(verified=True)
        log_activity(request.user, 'Verified profiles', f"{updated} profile(s)")
        self.message_user(request, f'{updated} profile(s) verified.')

    @admin.action(description='Mark selected profiles as unverified')
    def mark_unverified(self, request, queryset):
        updated = queryset.update(verified=False)
        log_activity(request.user, 'Unverified profiles', f"{updated} profile(s)")
        self.message_user(request, f'{updated} profile(s) marked unverified.')


@admin.register(Interview)
class InterviewAdmin(admin.ModelAdmin):
    list_display = ('company', 'profile', 'step', 'interview_date', 'state', 'user')
    list_filter = ('state', 'interview_type')
    search_fields = ('company', 'profile', 'step', 'user__username')


@admin.register(DailyStandup)
class DailyStandupAdmin(admin.ModelAdmin):
    list_display = ('standup_date', 'user', 'updated_at')
    search_fields = ('user__username',)


admin.site.unregister(User)
admin.site.register(User, UserAdmin)
admin.site.register(ActivityLog)
