"""
Pydantic schema definitions for API payloads.

Each domain (users, events, registrations, comments, payments) defines
its own Pydantic models for request and response bodies.  Schemas are
separated from the storage layer to decouple the API representation
from persistence.  Attribute names are English; the JSON keys clients
exchange are the platform's established French names, declared as
aliases.  Requests may use either form.
"""
