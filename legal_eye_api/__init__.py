"""
Top-level package for the Legal Eye API.

All functionality lives in submodules under ``app``; the ASGI
application is ``legal_eye_api.app.main:app``.
"""

__all__ = []
