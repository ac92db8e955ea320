"""
Initial schema for the Interview Tracker.

Creates the ``Profile`` table holding the display name and verification
flag for each auth user, the ``interviews`` and ``daily_standups`` tables
scoped to their owner, and the ``ActivityLog`` audit table.  A unique
constraint on ``(user, standup_date)`` backs the standup upsert.
"""

from __future__ import annotations

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Profile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(blank=True, max_length=255)),
                ('verified', models.BooleanField(default=False)),
                ('register_date', models.DateField(auto_now_add=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='ActivityLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=255)),
                ('details', models.TextField(blank=True, null=True)),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='activity_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-timestamp'],
            },
        ),
        migrations.CreateModel(
            name='Interview',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('profile', models.CharField(max_length=255)),
                ('company', models.CharField(max_length=255)),
                ('step', models.CharField(max_length=255)),
                ('interview_date', models.DateField()),
                ('note', models.TextField(blank=True, null=True)),
                ('state', models.CharField(choices=[('Ongoing', 'Ongoing'), ('Rejected', 'Rejected'), ('Offer', 'Offer')], default='Ongoing', max_length=20)),
                ('interview_type', models.CharField(blank=True, choices=[('Remote', 'Remote'), ('Onsite', 'Onsite'), ('Hybrid', 'Hybrid')], max_length=20, null=True)),
                ('image_path', models.CharField(blank=True, max_length=500, null=True)),
                ('script', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='interviews', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'interviews',
                'ordering': ['-interview_date', '-id'],
            },
        ),
        migrations.CreateModel(
            name='DailyStandup',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('standup_date', models.DateField()),
                ('items', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='daily_standups', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'daily_standups',
                'ordering': ['-standup_date', '-id'],
                'unique_together': {('user', 'standup_date')},
            },
        ),
    ]
