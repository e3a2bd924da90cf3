"""Postboard — users, posts and admin REST API.

A thin HTTP layer over a relational store: bearer-token authentication,
role-based access control, and per-route lookups that load the resource
a handler works on before it runs.
"""

__version__ = "0.1.0"
