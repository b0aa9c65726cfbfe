"""
API Endpoints.

One endpoint class per resource domain. Endpoints turn API calls into
resources; they hold no state beyond the client they were built with.

Usage:
    endpoint = get_endpoint(client, "cloud-account")
    account = endpoint.retrieve(42)
    backup = endpoint.create_backup(account)
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from hostctl.core.exceptions import RemoteOperationError
from hostctl.core.logging import get_logger, log_with_source
from hostctl.sdk.client import APIClient
from hostctl.sdk.resources import (
    App,
    Backup,
    Cloud,
    CloudAccount,
    Package,
    Resource,
    ResourceCollection,
)

logger = get_logger(__name__)


def _items(payload: Any) -> list[Mapping[str, Any]]:
    """List responses come back either bare or wrapped in {"data": [...]}."""
    if isinstance(payload, Mapping):
        payload = payload.get("data", [])
    return list(payload or [])


class Endpoint:
    """Readable endpoint: retrieve one resource by id, or list with filters."""

    PATH = ""
    MODEL: type[Resource] = Resource

    def __init__(self, client: APIClient) -> None:
        self.client = client

    def fetch(self, resource_id: Any) -> dict[str, Any]:
        """Fetch the raw fields of one resource."""
        return self.client.get_json(f"/{self.PATH}/{resource_id}")

    def retrieve(self, resource_id: Any) -> Resource:
        """Retrieve one resource by id."""
        return self.MODEL(self.fetch(resource_id), self)

    def list(self, filters: Mapping[str, str] | None = None) -> ResourceCollection:
        """List resources, optionally filtered by key:value pairs."""
        payload = self.client.get_json(f"/{self.PATH}", params=dict(filters or {}))
        return ResourceCollection(self.MODEL(item, self) for item in _items(payload))


class CloudAccountEndpoint(Endpoint):
    """Cloud accounts and their backups."""

    PATH = "cloud-account"
    MODEL = CloudAccount

    def create(self, data: Mapping[str, Any]) -> CloudAccount:
        """Create a new cloud account."""
        return CloudAccount(self.client.post_json(f"/{self.PATH}", json=dict(data)), self)

    def create_backup(self, account: CloudAccount) -> Backup:
        """Start a backup of a cloud account. The backup completes asynchronously."""
        data = self.client.post_json(f"/{self.PATH}/{account.id}/backup")
        log_with_source(
            logger, "sdk", "info", "Backup requested",
            cloud_account_id=account.id, filename=data.get("filename"),
        )
        return Backup(data, self, account)

    def get_backups(self, account: CloudAccount) -> ResourceCollection:
        """List the backups of a cloud account."""
        payload = self.client.get_json(f"/{self.PATH}/{account.id}/backup")
        return ResourceCollection(Backup(item, self, account) for item in _items(payload))

    def fetch_backup(self, account: CloudAccount, filename: str) -> dict[str, Any]:
        """Fetch the raw fields of one backup."""
        return self.client.get_json(f"/{self.PATH}/{account.id}/backup/{filename}")

    def get_backup(self, account: CloudAccount, filename: str) -> Backup:
        """Retrieve one backup by filename."""
        return Backup(self.fetch_backup(account, filename), self, account)

    def download_backup(self, backup: Backup, directory: str | Path) -> Path:
        """
        Stream a backup archive into a directory.

        The archive is written to a .part file that replaces the target only
        once the whole body arrived. Only the final path component of the
        filename is used.

        Raises:
            RemoteOperationError: If the filename has no usable name
            ExternalServiceError: If the transfer fails
        """
        name = Path(str(backup.filename or "")).name
        if name in ("", ".", ".."):
            raise RemoteOperationError(
                f"Backup filename {backup.filename!r} cannot be saved",
                details={"filename": backup.filename},
            )
        target = Path(directory) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(f"{name}.part")
        url = backup.get("download_url") or (
            f"/{self.PATH}/{backup.cloud_account.id}/backup/{backup.filename}/download"
        )

        try:
            with self.client.stream(url) as response, open(partial, "wb") as f:
                for chunk in response.iter_bytes():
                    f.write(chunk)
            partial.replace(target)
        finally:
            partial.unlink(missing_ok=True)

        log_with_source(logger, "sdk", "info", "Backup downloaded", path=str(target))
        return target


class AppEndpoint(Endpoint):
    PATH = "app"
    MODEL = App


class CloudEndpoint(Endpoint):
    PATH = "cloud"
    MODEL = Cloud


class PackageEndpoint(Endpoint):
    PATH = "package"
    MODEL = Package


ENDPOINTS: dict[str, type[Endpoint]] = {
    "app": AppEndpoint,
    "cloud": CloudEndpoint,
    "cloud-account": CloudAccountEndpoint,
    "package": PackageEndpoint,
}


def get_endpoint(client: APIClient, name: str) -> Endpoint:
    """
    Build the endpoint for a resource domain.

    Raises:
        KeyError: If no endpoint is registered under name
    """
    return ENDPOINTS[name](client)
