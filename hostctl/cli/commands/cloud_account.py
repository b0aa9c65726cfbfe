"""
Cloud account commands.

    cloud-account:show     --id ID
    cloud-account:list     [--filter key:value ...]
    cloud-account:create   [APP] [--app-id] [--cloud-id] [--domain] [--install-app] [--package-id]
"""

from typing import Any

from hostctl.cli.command import CommandDefinition, Invocation
from hostctl.cli.commands.domains import APPS, CLOUDS, PACKAGES
from hostctl.cli.inputs import FilterKind, parse_filters
from hostctl.cli.specs import ArgumentMode, ValueMode
from hostctl.sdk.resources import CloudAccount, ResourceCollection

ENDPOINT = "cloud-account"


def show(invocation: Invocation) -> CloudAccount:
    return invocation.endpoint().retrieve(invocation.get("id"))


def show_list(invocation: Invocation) -> ResourceCollection:
    filters = parse_filters(invocation.get("filter", ()))
    return invocation.endpoint().list(filters)


def create(invocation: Invocation) -> CloudAccount:
    """Create a cloud account from the resolved app, cloud and package."""
    data = {
        "app_id": invocation.get("app_id"),
        "cloud_id": invocation.get("cloud_id"),
        "domain": invocation.get("domain"),
        "install_app": bool(invocation.get("install_app", False)),
        "package_id": invocation.get("package_id"),
    }
    invocation.notice("creating", domain=data["domain"])
    return invocation.endpoint().create(data)


def _identity(value: Any, field: str = "identity") -> Any:
    if isinstance(value, dict):
        return value.get(field)
    return value


def summarize_created(details: dict[str, Any]) -> dict[str, Any]:
    service = details.get("service") or {}
    return {
        "state": details.get("state"),
        "domain": details.get("domain"),
        "temp_domain": details.get("temp_domain"),
        "app": _identity(details.get("app")),
        "cloud": _identity(details.get("location")),
        "service_level": _identity(service, "description"),
        "service_status": _identity(service, "status"),
    }


SHOW = CommandDefinition(
    name="cloud-account:show",
    endpoint=ENDPOINT,
    operation=show,
    options={"id": (ValueMode.REQUIRED,)},
    inputs={"id": FilterKind.INT},
    required=frozenset({"id"}),
)

LIST = CommandDefinition(
    name="cloud-account:list",
    endpoint=ENDPOINT,
    operation=show_list,
    options={"filter": (ValueMode.ARRAY, ())},
    summary_keys=("id", "domain", "state"),
    listing=True,
)

CREATE = CommandDefinition(
    name="cloud-account:create",
    endpoint=ENDPOINT,
    operation=create,
    arguments={"app": (ArgumentMode.OPTIONAL,)},
    options={
        "app-id": (ValueMode.REQUIRED,),
        "cloud-id": (ValueMode.REQUIRED,),
        "domain": (ValueMode.REQUIRED,),
        "install-app": (ValueMode.NONE,),
        "package-id": (ValueMode.REQUIRED,),
    },
    inputs={
        "app_id": FilterKind.INT,
        "cloud_id": FilterKind.INT,
        "install_app": FilterKind.BOOL,
        "package_id": FilterKind.INT,
    },
    choices={"app_id": APPS, "cloud_id": CLOUDS, "package_id": PACKAGES},
    lookups={"app": "app_id"},
    required=frozenset({"domain"}),
    summarize=summarize_created,
    restrict_to=("nexcess",),
)

COMMANDS = (SHOW, LIST, CREATE)
