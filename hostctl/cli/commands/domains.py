"""
Choice domains shared by the cloud account commands.

Each provider fetches key → record for the running invocation. Records
are plain dicts (resource.to_dict()), keyed by resource id, or by
filename for backups.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from hostctl.cli.choices import ChoiceProvider, Records, pad
from hostctl.core.exceptions import ChoiceErrorKind
from hostctl.sdk.resources import Resource

CLOUD_ACCOUNT_PACKAGE_TYPE = "virt-guest-cloud"


def _by_id(resources: Iterable[Resource]) -> dict[Any, dict[str, Any]]:
    return {resource.id: resource.to_dict() for resource in resources}


def _nested(record: Mapping[str, Any], field: str, key: str) -> Any:
    value = record.get(field)
    if isinstance(value, Mapping):
        return value.get(key)
    return value


# =============================================================================
# cloud_account_id
# =============================================================================


def _fetch_cloud_accounts(invocation: Any) -> Records:
    return _by_id(invocation.endpoint("cloud-account").list())


def _format_cloud_accounts(records: Records) -> dict[Any, str]:
    domains = pad(records, "domain")
    return {
        key: f"{domains[key]}  ({_nested(record, 'location', 'identity') or '-'})"
        for key, record in records.items()
    }


CLOUD_ACCOUNTS = ChoiceProvider(
    fetch=_fetch_cloud_accounts,
    value=lambda record: record.get("domain"),
    formatter=_format_cloud_accounts,
    empty=ChoiceErrorKind.NO_CLOUD_ACCOUNT_CHOICES,
)


# =============================================================================
# filename (backups of the resolved cloud account)
# =============================================================================


def _fetch_backups(invocation: Any) -> Records:
    endpoint = invocation.endpoint("cloud-account")
    account = endpoint.retrieve(invocation.get("cloud_account_id"))
    return {backup.filename: backup.to_dict() for backup in endpoint.get_backups(account)}


def _format_backups(records: Records) -> dict[Any, str]:
    names = pad(records, "filename")
    return {
        key: f"{names[key]}  {record.get('filesize', '')}  {record.get('filedate', '')}".rstrip()
        for key, record in records.items()
    }


BACKUPS = ChoiceProvider(
    fetch=_fetch_backups,
    value=lambda record: record.get("filename"),
    formatter=_format_backups,
    empty=ChoiceErrorKind.NO_BACKUP_CHOICES,
)


# =============================================================================
# package_id
# =============================================================================


def _fetch_packages(invocation: Any) -> Records:
    packages = invocation.endpoint("package").list({"type": CLOUD_ACCOUNT_PACKAGE_TYPE})
    return _by_id(packages)


def _format_packages(records: Records) -> dict[Any, str]:
    names = pad(records, "name")
    return {
        key: f"{names[key]}  {record.get('monthly_fee', '')}".rstrip()
        for key, record in records.items()
    }


PACKAGES = ChoiceProvider(
    fetch=_fetch_packages,
    value=lambda record: record.get("name"),
    formatter=_format_packages,
    empty=ChoiceErrorKind.NO_CLOUD_ACCOUNT_PACKAGE_CHOICES,
)


# =============================================================================
# app_id
# =============================================================================


def _app_order(item: tuple[Any, Mapping[str, Any]]) -> tuple[bool, str]:
    name = str(item[1].get("name", ""))
    # Flexible is the generic environment and always listed first
    return "Flexible" not in name, name


def _fetch_apps(invocation: Any) -> Records:
    apps = _by_id(invocation.endpoint("app").list())
    return dict(sorted(apps.items(), key=_app_order))


APPS = ChoiceProvider(
    fetch=_fetch_apps,
    value=lambda record: record.get("name"),
    formatter=lambda records: pad(records, "name"),
)


# =============================================================================
# cloud_id
# =============================================================================


def _fetch_clouds(invocation: Any) -> Records:
    return _by_id(invocation.endpoint("cloud").list({"status": "active"}))


CLOUDS = ChoiceProvider(
    fetch=_fetch_clouds,
    value=lambda record: record.get("location_code"),
    formatter=lambda records: pad(records, "location"),
)
