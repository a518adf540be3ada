"""HTTP API package."""

from currency_clarity.api.app import create_app

__all__ = ["create_app"]
