"""
CLI Application.

The Application is the per-process service object every command is built
with. It owns the output consoles, the translator, the prompt
collaborator and the API client, and hands out endpoints.

Usage:
    application = Application.from_config()
    endpoint = application.get_endpoint("cloud-account")
    application.say("Backup started")
"""

import time
from collections.abc import Callable, Mapping
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hostctl.cli.choices import ConsolePrompter, Prompter
from hostctl.core.config import AppConfig, get_app_config
from hostctl.core.i18n import Translator, get_translator
from hostctl.core.logging import get_logger
from hostctl.sdk.client import APIClient
from hostctl.sdk.endpoints import Endpoint, get_endpoint

logger = get_logger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class Application:
    """
    Shared services for all commands of one process.

    Args:
        config: Loaded application configuration
        translator: Phrase lookup
        console: Rich console for results (stdout)
        err_console: Rich console for errors and prompts (stderr)
        prompter: Interactive prompt collaborator
        client: API client; built lazily from config when omitted
        endpoints: Pre-built endpoints by name (overrides the registry)
        sleep: Sleep function used between completion polls
    """

    NAME = "hostctl"

    def __init__(
        self,
        config: AppConfig,
        translator: Translator,
        console: Console | None = None,
        err_console: Console | None = None,
        prompter: Prompter | None = None,
        client: APIClient | None = None,
        endpoints: Mapping[str, Endpoint] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.translator = translator
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)
        self.prompter = prompter or ConsolePrompter(self.err_console)
        self.sleep = sleep
        self._client = client
        self._endpoints: dict[str, Endpoint] = dict(endpoints or {})

    @classmethod
    def from_config(cls) -> "Application":
        """Build the application from config/settings and config/lang."""
        return cls(config=get_app_config(), translator=get_translator())

    @property
    def version(self) -> str:
        return self.config.application.version

    @property
    def company(self) -> str:
        return self.config.application.company

    @property
    def poll_interval(self) -> float:
        return self.config.application.polling.interval

    @property
    def poll_timeout(self) -> float:
        return self.config.application.polling.timeout

    @property
    def client(self) -> APIClient:
        if self._client is None:
            self._client = APIClient()
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def get_endpoint(self, name: str) -> Endpoint:
        """Get (and cache) the endpoint for a resource domain."""
        if name not in self._endpoints:
            self._endpoints[name] = get_endpoint(self.client, name)
        return self._endpoints[name]

    def translate(self, key: str, context: Mapping[str, Any] | None = None) -> str:
        return self.translator.translate(key, context)

    def say(self, text: str) -> None:
        """Print plain text (no markup interpretation) to stdout."""
        self.console.print(escape(text), soft_wrap=True)

    def say_markup(self, text: str) -> None:
        self.console.print(text, soft_wrap=True)

    def say_json(self, text: str) -> None:
        self.console.print_json(text)

    def say_table(self, table: Table) -> None:
        self.console.print(table)

    def say_error(self, text: str) -> None:
        self.err_console.print(f"[red]Error: {escape(text)}[/red]", soft_wrap=True)

    def say_warning(self, text: str) -> None:
        self.err_console.print(f"[yellow]{escape(text)}[/yellow]", soft_wrap=True)
