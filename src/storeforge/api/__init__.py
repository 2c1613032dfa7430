"""HTTP API for the store assistant."""

from storeforge.api.server import create_app

__all__ = ["create_app"]
