"""Authentication and authorization.

Users log in with username/password and receive a signed JWT access
token. Protected routes run the token through the authenticate gate,
and admin routes additionally through a role gate (see gates.py).
"""
