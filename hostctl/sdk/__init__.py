"""
Hosting API SDK.

Thin synchronous client for the hosting API: an httpx-based HTTP client,
one endpoint class per resource domain, and the resource model the
endpoints return.
"""

from hostctl.sdk.client import APIClient
from hostctl.sdk.endpoints import ENDPOINTS, Endpoint, get_endpoint
from hostctl.sdk.resources import Backup, CloudAccount, Resource, ResourceCollection

__all__ = [
    "APIClient",
    "Backup",
    "CloudAccount",
    "ENDPOINTS",
    "Endpoint",
    "Resource",
    "ResourceCollection",
    "get_endpoint",
]
