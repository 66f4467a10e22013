"""Taskboard — kanban task tracking API.

Tasks can be created anonymously (tracked by a cookie) or by registered
users (tracked by a bearer token). Logging in or registering hands any
anonymous tasks over to the account.
"""

__version__ = "0.1.0"
