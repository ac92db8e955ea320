"""URL declarations for the core application.

This module maps URL patterns to view functions for all user facing
functionality: authentication and password reset, the personal interview
dashboard and its mutations, the cross-user interview view, the daily
standups and the JSON endpoints.
"""

from django.contrib.auth import views as auth_views
from django.urls import path, reverse_lazy

from . import views

urlpatterns = [
    # Authentication
    path('auth/signup/', views.signup, name='signup'),
    path('auth/signin/', views.signin, name='signin'),
    path('auth/signout/', views.signout, name='signout'),
    path(
        'auth/password-reset/',
        auth_views.PasswordResetView.as_view(
            template_name='auth/password_reset.html',
            email_template_name='auth/password_reset_email.txt',
            success_url=reverse_lazy('password_reset_done'),
        ),
        name='password_reset',
    ),
    path(
        'auth/password-reset/done/',
        auth_views.PasswordResetDoneView.as_view(template_name='auth/password_reset_done.html'),
        name='password_reset_done',
    ),
    path(
        'auth/reset-password/<uidb64>/<token>/',
        auth_views.PasswordResetConfirmView.as_view(
            template_name='auth/password_reset_confirm.html',
            success_url=reverse_lazy('password_reset_complete'),
        ),
        name='password_reset_confirm',
    ),
    path(
        'auth/reset-password/complete/',
        auth_views.PasswordResetCompleteView.as_view(template_name='auth/password_reset_complete.html'),
        name='password_reset_complete',
    ),

    # Own interviews
    path('', views.dashboard, name='home'),
    path('dashboard/', views.dashboard, name='dashboard'),
    path('interviews/create/', views.interview_create, name='interview_create'),
    path('interviews/<int:interview_id>/edit/', views.interview_edit, name='interview_edit'),
    path('interviews/<int:interview_id>/status/', views.interview_status, name='interview_status'),
    path('interviews/<int:interview_id>/delete/', views.interview_delete, name='interview_delete'),
    path('interviews/<int:interview_id>/analyze/', views.interview_analyze, name='interview_analyze'),
    path('interviews/export/', views.interviews_export, name='interviews_export'),

    # Everyone's interviews
    path('interviews/all/', views.interviews_all, name='interviews_all'),

    # Daily standups
    path('standups/', views.standups, name='standups'),
    path('standups/save/', views.standup_save, name='standup_save'),
    path('standups/<int:standup_id>/delete/', views.standup_delete, name='standup_delete'),

    # JSON
    path('api/interviews/', views.api_interviews, name='api_interviews'),
    path('api/interviews/all/', views.api_interviews_all, name='api_interviews_all'),
    path('api/standups/', views.api_standups, name='api_standups'),
]
