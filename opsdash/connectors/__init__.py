"""
Connectors to the automation backend.

BackendClient posts JSON envelopes to the allowlisted CRUD webhooks and
normalizes lookup responses to plain record lists.
"""

from opsdash.connectors.backend_client import (
    ALLOWED_ENDPOINTS,
    BackendClient,
    BackendError,
    EndpointNotAllowedError,
    EntityDataSource,
    clean_filters,
    extract_records,
    get_backend_client,
)

__all__ = [
    "ALLOWED_ENDPOINTS",
    "BackendClient",
    "BackendError",
    "EndpointNotAllowedError",
    "EntityDataSource",
    "clean_filters",
    "extract_records",
    "get_backend_client",
]
