"""
Gyms app for the gym directory.

This app handles:
- Gym listings owned by gym owner accounts
- Owner-only updates, with gym renames carried over to chat

Related apps:
    - authentication: Gym owners
    - chat: Conversations are scoped by gym name
"""
