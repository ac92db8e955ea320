"""Management package for custom Django admin commands.

This package exposes additional ``manage.py`` commands for account
administration.  Refer to the documentation in ``verify_account.py`` for
more details.
"""
