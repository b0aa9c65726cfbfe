"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

API calls never leave the process: FakeHostingApi answers every request
through httpx.MockTransport, so the real APIClient, endpoints and resources
are exercised end to end. Completion polling sleeps through a recorder
instead of time.sleep.
"""

import io
import json
import logging
from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest
import structlog
from rich.console import Console

from hostctl.cli.application import Application
from hostctl.core.config import get_app_config
from hostctl.core.i18n import Translator
from hostctl.sdk.client import APIClient

# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def _quiet_logging() -> Generator[None, None, None]:
    """Drop log output so it never mixes with command output under test."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


# =============================================================================
# Fake API
# =============================================================================


def _matches(record: dict[str, Any], params: httpx.QueryParams) -> bool:
    return all(str(record.get(key)) == value for key, value in params.items())


class FakeHostingApi:
    """
    In-memory hosting API.

    Backups are created incomplete and report complete on the
    complete_after-th status check.
    """

    def __init__(
        self,
        accounts: list[dict[str, Any]] | None = None,
        apps: list[dict[str, Any]] | None = None,
        clouds: list[dict[str, Any]] | None = None,
        packages: list[dict[str, Any]] | None = None,
        complete_after: int = 1,
    ) -> None:
        self.accounts = {account["id"]: dict(account) for account in accounts or []}
        self.apps = list(apps or [])
        self.clouds = list(clouds or [])
        self.packages = list(packages or [])
        self.complete_after = complete_after
        self.fail_backups = False
        self.backups: dict[int, list[dict[str, Any]]] = {}
        self.polls: dict[str, int] = {}
        self.created: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def add_backup(self, account_id: int, **fields: Any) -> dict[str, Any]:
        backups = self.backups.setdefault(account_id, [])
        backup = {
            "filename": f"backup-{account_id}-{len(backups) + 1}.tgz",
            "filesize": "1.2 GB",
            "filedate": 1538000000,
            "complete": False,
            **fields,
        }
        backups.append(backup)
        return backup

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        method = request.method

        if parts == ["app"]:
            return httpx.Response(200, json=[a for a in self.apps if _matches(a, request.url.params)])
        if parts == ["cloud"]:
            return httpx.Response(200, json=[c for c in self.clouds if _matches(c, request.url.params)])
        if parts == ["package"]:
            return httpx.Response(
                200, json={"data": [p for p in self.packages if _matches(p, request.url.params)]},
            )

        if parts[0] != "cloud-account":
            return httpx.Response(404, json={"message": "Not found"})

        if len(parts) == 1:
            if method == "POST":
                return self._create_account(json.loads(request.content))
            accounts = [a for a in self.accounts.values() if _matches(a, request.url.params)]
            return httpx.Response(200, json=accounts)

        account = self.accounts.get(int(parts[1]))
        if account is None:
            return httpx.Response(404, json={"message": "Cloud account not found"})

        if len(parts) == 2:
            return httpx.Response(200, json=account)

        if len(parts) == 3 and method == "POST":
            return httpx.Response(201, json=dict(self.add_backup(account["id"])))
        if len(parts) == 3:
            return httpx.Response(200, json=self.backups.get(account["id"], []))

        backup = next(
            (b for b in self.backups.get(account["id"], []) if b["filename"] == parts[3]),
            None,
        )
        if backup is None:
            return httpx.Response(404, json={"message": "Backup not found"})

        if len(parts) == 5 and parts[4] == "download":
            return httpx.Response(200, content=b"archive-bytes")

        self.polls[backup["filename"]] = self.polls.get(backup["filename"], 0) + 1
        if self.fail_backups:
            backup["failed"] = True
        elif self.polls[backup["filename"]] >= self.complete_after:
            backup["complete"] = True
        return httpx.Response(200, json=backup)

    def _create_account(self, data: dict[str, Any]) -> httpx.Response:
        self.created.append(data)
        account_id = max(self.accounts, default=0) + 1
        app = next((a for a in self.apps if a["id"] == data.get("app_id")), {})
        cloud = next((c for c in self.clouds if c["id"] == data.get("cloud_id")), {})
        account = {
            "id": account_id,
            "domain": data.get("domain"),
            "state": "pending",
            "temp_domain": f"{data.get('domain')}.nxcli.net",
            "app": {"id": app.get("id"), "identity": app.get("name")},
            "location": {"id": cloud.get("id"), "identity": cloud.get("location")},
            "service": {"description": "Cloud Standard", "status": "pending"},
        }
        self.accounts[account_id] = account
        return httpx.Response(201, json=account)


class FakePrompter:
    """Prompter that answers from canned values and records the questions."""

    def __init__(self, choice: Any = None, answer: str = "") -> None:
        self.choice = choice
        self.answer = answer
        self.menus: list[tuple[str, dict[Any, str]]] = []
        self.questions: list[str] = []

    def choose(self, question: str, choices: dict[Any, str]) -> Any:
        self.menus.append((question, dict(choices)))
        return self.choice if self.choice is not None else next(iter(choices))

    def ask(self, question: str) -> str:
        self.questions.append(question)
        return self.answer


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def api() -> FakeHostingApi:
    """A hosting API with one cloud account and the lookup domains populated."""
    return FakeHostingApi(
        accounts=[
            {"id": 42, "domain": "example.com", "state": "enabled", "location": {"identity": "Southfield, MI"}},
        ],
        apps=[
            {"id": 7, "name": "WordPress"},
            {"id": 3, "name": "Flexible PHP"},
            {"id": 9, "name": "Magento"},
        ],
        clouds=[
            {"id": 1, "location": "Southfield, MI", "location_code": "us-midwest-1", "status": "active"},
            {"id": 2, "location": "London", "location_code": "uk-south-1", "status": "retired"},
        ],
        packages=[
            {"id": 11, "name": "Cloud Standard", "monthly_fee": "49.00", "type": "virt-guest-cloud"},
            {"id": 12, "name": "Dedicated", "monthly_fee": "249.00", "type": "dedicated"},
        ],
    )


@pytest.fixture
def client(api: FakeHostingApi) -> Generator[APIClient, None, None]:
    client = APIClient(base_url="https://api.test", timeout=5, token="test-token", transport=api.transport)
    yield client
    client.close()


@pytest.fixture
def sleeps() -> list[float]:
    """Every poll interval slept, in order."""
    return []


@pytest.fixture
def prompter() -> FakePrompter:
    return FakePrompter()


@pytest.fixture
def translator() -> Translator:
    return Translator.from_locale("en_US")


@pytest.fixture
def make_application(
    client: APIClient,
    translator: Translator,
    prompter: FakePrompter,
    sleeps: list[float],
) -> Callable[..., Application]:
    """Build an Application on the fake API; consoles default to in-memory buffers."""

    def _make(**overrides: Any) -> Application:
        options: dict[str, Any] = {
            "config": get_app_config(),
            "translator": translator,
            "console": Console(file=io.StringIO(), width=200),
            "err_console": Console(file=io.StringIO(), width=200),
            "prompter": prompter,
            "client": client,
            "sleep": sleeps.append,
        }
        options.update(overrides)
        return Application(**options)

    return _make


@pytest.fixture
def application(make_application: Callable[..., Application]) -> Application:
    return make_application()

