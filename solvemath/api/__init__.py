"""API package exports."""

from .server import create_app

__all__ = ["create_app"]
