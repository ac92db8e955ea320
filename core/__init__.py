"""Core application for the Interview Tracker.

This package contains the models, views, forms, templates and services
that power interview tracking, daily standups and script analysis.
"""
