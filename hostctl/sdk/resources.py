"""
Resource Model.

Resources wrap the JSON objects returned by the API. They expose field
access, conversion to plain structures for output, and domain navigation
(a backup knows its cloud account). Resources that represent server-side
work in progress (backups) also expose a terminal-state predicate.
"""

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from hostctl.core.exceptions import RemoteOperationError

if TYPE_CHECKING:
    from hostctl.sdk.endpoints import CloudAccountEndpoint, Endpoint


def _plain(value: Any) -> Any:
    if isinstance(value, Resource):
        return value.to_dict()
    if isinstance(value, ResourceCollection):
        return value.to_list()
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


class Resource:
    """Base resource: a mapping of API fields plus the endpoint that produced it."""

    def __init__(self, data: Mapping[str, Any], endpoint: "Endpoint | None" = None) -> None:
        self._data = dict(data)
        self._endpoint = endpoint

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"

    @property
    def id(self) -> Any:
        return self._data.get("id")

    def get(self, field: str, default: Any = None) -> Any:
        """Get a field value."""
        return self._data.get(field, default)

    def refresh(self) -> "Resource":
        """Reload this resource's fields from the API."""
        if self._endpoint is None:
            return self
        self._data = dict(self._endpoint.fetch(self.id))
        return self

    def to_dict(self, deep: bool = True) -> dict[str, Any]:
        """
        Convert to a plain dict.

        Args:
            deep: Also convert nested resources and collections
        """
        if not deep:
            return dict(self._data)
        return {key: _plain(value) for key, value in self._data.items()}


class CloudAccount(Resource):
    """A hosted cloud account (one site / domain)."""

    @property
    def domain(self) -> str:
        return self.get("domain", "")


class App(Resource):
    """An installable application environment (WordPress, Magento, Flexible...)."""


class Cloud(Resource):
    """A hosting location."""


class Package(Resource):
    """A service package that a cloud account can be created on."""


class Backup(Resource):
    """
    A cloud account backup.

    Backups are created asynchronously: the API returns immediately with
    complete = false and flips it once the archive is ready to download.
    """

    def __init__(
        self,
        data: Mapping[str, Any],
        endpoint: "CloudAccountEndpoint | None" = None,
        cloud_account: CloudAccount | None = None,
    ) -> None:
        super().__init__(data, endpoint)
        self._cloud_account = cloud_account

    def __repr__(self) -> str:
        return f"Backup(filename={self.filename!r})"

    @property
    def id(self) -> Any:
        return self.filename

    @property
    def filename(self) -> str:
        return self.get("filename", "")

    @property
    def cloud_account(self) -> CloudAccount:
        """The cloud account this backup belongs to."""
        if self._cloud_account is None:
            raise RemoteOperationError(f"Backup {self.filename} is not attached to a cloud account")
        return self._cloud_account

    def refresh(self) -> "Backup":
        if self._endpoint is not None:
            self._data = dict(self._endpoint.fetch_backup(self.cloud_account, self.filename))
        return self

    def is_complete(self) -> bool:
        """
        Refresh and report whether the backup archive is ready.

        Raises:
            RemoteOperationError: If the API reports the backup failed
        """
        self.refresh()
        if self.get("failed") or self.get("status") == "failed":
            raise RemoteOperationError(
                f"Backup {self.filename} failed",
                details=self.to_dict(),
            )
        return bool(self.get("complete"))

    def download(self, directory: str | Path) -> Path:
        """Download the backup archive into a directory. Returns the file path."""
        if self._endpoint is None:
            raise RemoteOperationError(f"Backup {self.filename} cannot be downloaded")
        return self._endpoint.download_backup(self, directory)


class ResourceCollection:
    """An ordered list of resources returned by a list call."""

    def __init__(self, resources: Iterable[Resource]) -> None:
        self._resources = list(resources)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources)

    def __len__(self) -> int:
        return len(self._resources)

    def __getitem__(self, index: int) -> Resource:
        return self._resources[index]

    def to_list(self, deep: bool = True) -> list[dict[str, Any]]:
        """Convert every resource to a plain dict."""
        return [resource.to_dict(deep) for resource in self._resources]
