"""
Top-level package for the Events Platform API.

All functionality lives in submodules under ``app``; import the ASGI
application as ``eventhub_api.app.main:app``.
"""

__all__ = []
