"""
Cloud account backup commands.

    cloud-account:backup:create     [-c ID] [-d DIR] [--wait]
    cloud-account:backup:list       [-c ID]
    cloud-account:backup:download   [-c ID] [-f FILENAME] [-d DIR]

Backups complete asynchronously. backup:create returns as soon as the API
accepts the request unless --wait or --download is given.
"""

from datetime import datetime
from typing import Any

from hostctl.cli.command import CommandDefinition, Invocation
from hostctl.cli.commands.domains import BACKUPS, CLOUD_ACCOUNTS
from hostctl.cli.inputs import FilterKind, filter_int
from hostctl.cli.specs import ValueMode
from hostctl.core.exceptions import InvalidInputError
from hostctl.sdk.resources import Backup, CloudAccount, ResourceCollection

ENDPOINT = "cloud-account"

FILEDATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _account(invocation: Invocation) -> CloudAccount:
    return invocation.endpoint().retrieve(invocation.get("cloud_account_id"))


def create(invocation: Invocation) -> Backup:
    invocation.notice("starting")
    return invocation.endpoint().create_backup(_account(invocation))


def show_list(invocation: Invocation) -> ResourceCollection:
    return invocation.endpoint().get_backups(_account(invocation))


def download(invocation: Invocation) -> Backup:
    return invocation.endpoint().get_backup(_account(invocation), invocation.get("filename"))


def completion_context(invocation: Invocation, backup: Backup) -> dict[str, Any]:
    return {"filename": backup.filename, "cloud_account_id": backup.cloud_account.id}


def summarize_listed(backup: dict[str, Any]) -> dict[str, Any]:
    """Render the unix filedate as a readable timestamp."""
    filedate = backup.get("filedate")
    if filedate in (None, ""):
        return backup
    try:
        timestamp = filter_int("filedate", filedate)
    except InvalidInputError:
        return backup
    return {**backup, "filedate": datetime.fromtimestamp(timestamp).strftime(FILEDATE_FORMAT)}


_CLOUD_ACCOUNT_OPTION = {"cloud-account-id|c": (ValueMode.REQUIRED,)}

CREATE = CommandDefinition(
    name="cloud-account:backup:create",
    endpoint=ENDPOINT,
    operation=create,
    options={
        **_CLOUD_ACCOUNT_OPTION,
        "download|d": (ValueMode.REQUIRED,),
    },
    inputs={"cloud_account_id": FilterKind.INT},
    choices={"cloud_account_id": CLOUD_ACCOUNTS},
    summary_keys=("filename", "complete"),
    completion_context=completion_context,
    restrict_to=("nexcess",),
)

LIST = CommandDefinition(
    name="cloud-account:backup:list",
    endpoint=ENDPOINT,
    operation=show_list,
    options=_CLOUD_ACCOUNT_OPTION,
    inputs={"cloud_account_id": FilterKind.INT},
    choices={"cloud_account_id": CLOUD_ACCOUNTS},
    summary_keys=("filename", "filesize", "filedate"),
    summarize=summarize_listed,
    listing=True,
)

DOWNLOAD = CommandDefinition(
    name="cloud-account:backup:download",
    endpoint=ENDPOINT,
    operation=download,
    options={
        **_CLOUD_ACCOUNT_OPTION,
        "filename|f": (ValueMode.REQUIRED,),
        "download|d": (ValueMode.REQUIRED, "."),
    },
    inputs={"cloud_account_id": FilterKind.INT},
    choices={"cloud_account_id": CLOUD_ACCOUNTS, "filename": BACKUPS},
    summary_keys=("filename", "complete"),
    completion_context=completion_context,
    restrict_to=("nexcess",),
)

COMMANDS = (CREATE, LIST, DOWNLOAD)
