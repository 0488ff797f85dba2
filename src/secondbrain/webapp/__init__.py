"""HTTP API for browsing and editing the brain."""

from .api import create_app

__all__ = ["create_app"]
