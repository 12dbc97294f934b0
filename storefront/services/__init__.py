"""
Service layer (use cases) for the storefront backend.

Routers call StoreService; it owns validation, default synthesis and error
translation and talks to whichever persistence driver is active.
"""
