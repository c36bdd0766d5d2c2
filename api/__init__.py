"""
FastAPI application for the Fastly ACL dashboard.

Modules in this package provide request/response schemas and the ASGI app
itself (`api.main:app`).
"""

__all__ = ["main", "schemas"]
