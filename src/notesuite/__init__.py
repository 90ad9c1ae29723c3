"""
NoteSuite - note sharing backend.

Notes with owner, per-user shares and anonymous public links, behind a
FastAPI application with JWT access tokens and rotating refresh tokens.
"""

__version__ = "1.0.0"
