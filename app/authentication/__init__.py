"""
Authentication application.

Accounts for members, gym owners and admins.

Key components:
    - User model: Custom email-based user with an account role
    - Profile model: Display name and city
    - UserDirectory: Identity lookup consumed by chat

Usage:
    from authentication.models import User, Profile
    from authentication.services import UserDirectory
"""
