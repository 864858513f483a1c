"""
Aspire CMS API package.

A FastAPI content-management backend for the ASPIRE Design Lab site, with a
tiered in-memory response cache in front of its public read endpoints.
"""
from .main import app, create_app

__version__ = "1.0.0"
__all__ = ["app", "create_app"]
