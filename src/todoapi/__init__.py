"""Todo API — per-user task lists behind bearer-token auth.

Users register, log in, and manage a private list of todo items.
Every data operation is scoped to the authenticated owner, so one
user's items are invisible to everyone else.
"""

__version__ = "0.1.0"
