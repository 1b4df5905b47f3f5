"""
Application package initializer.

This package contains the main entrypoint for the API and its
submodules:

* ``core`` – configuration, logging, storage handle, errors, security;
* ``schemas`` – request and response models;
* ``services`` – business logic, one service per domain;
* ``api`` – FastAPI routers and dependencies.
"""

from .main import app  # noqa: F401
