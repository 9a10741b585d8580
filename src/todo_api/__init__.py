"""
Multi-user todo backend.

Password and GitHub sign-in, in-memory sessions, and todo storage behind a
swappable repository (in-memory or relational). The ASGI application lives in
todo_api.main (``app``, or ``create_app()`` for a fresh instance).
"""

__version__ = "0.2.0"
