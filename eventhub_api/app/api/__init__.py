"""
HTTP layer.

``router.py`` aggregates the domain routers from ``endpoints`` and is
mounted under ``/api`` by ``main.create_app``.  ``deps.py`` holds the
FastAPI dependencies that build services and authenticate requests.
"""
