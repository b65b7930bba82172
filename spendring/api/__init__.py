"""HTTP API package."""

from spendring.api.app import create_app, require_admin

__all__ = ["create_app", "require_admin"]
