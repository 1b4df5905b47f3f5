"""
Service layer.

Each service encapsulates the business logic of one domain and raises
the typed errors from ``core.errors``.  Services receive their storage
handle (and any collaborator such as the payment gateway) through their
constructor, so API handlers and tests decide which database they talk
to.

Service methods are coroutines but their SQLite calls are synchronous
and run on the event loop; a write can wait up to
``settings.database_timeout`` seconds on a locked database.  Calls to
the payment provider go through ``run_in_threadpool``.
"""
