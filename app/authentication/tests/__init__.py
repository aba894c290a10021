"""
Tests for authentication app.

This package contains test modules for:
- test_managers.py: UserManager (users, gym owners, superusers)
- test_services.py: UserDirectory identity lookup
- test_signals.py: Profile auto-creation

Usage:
    pytest authentication/tests/
"""
