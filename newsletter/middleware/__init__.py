"""Middleware package for FastAPI application."""

from newsletter.middleware.request_id import RequestIdMiddleware

__all__ = ["RequestIdMiddleware"]
