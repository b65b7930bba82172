"""
ASGI entry point for the account deletion API.

    uvicorn app.api:app

Without Google Sheets credentials the endpoint answers with a server
configuration error instead of deleting anything from in-memory storage.
"""

from spendring.api import create_app
from spendring.orchestrator import create_app_components

components = create_app_components(use_storage=True)

app = create_app(
    deletion_service=components.deletion_service if components.sheets_client else None,
)
