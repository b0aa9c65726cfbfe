"""
Integration Test Fixtures.

Commands run through the real CLI parser (the typer root group plus the
click commands built from the declarations) with click's CliRunner. Output
goes through default Rich consoles, so it lands in the runner's streams.
"""

from collections.abc import Callable
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner, Result
from rich.console import Console

from cli import build_cli
from hostctl.cli.application import Application


@pytest.fixture
def cli_application(make_application: Callable[..., Application]) -> Application:
    return make_application(console=Console(), err_console=Console(stderr=True))


@pytest.fixture
def cli_group(cli_application: Application) -> click.Group:
    return build_cli(cli_application)


@pytest.fixture
def invoke(cli_group: click.Group) -> Callable[..., Result]:
    """
    Invoke the CLI with arguments.

    Usage:
        result = invoke("cloud-account:backup:create", "-c", "42", "--wait")
    """
    runner = CliRunner()

    def _invoke(*args: str) -> Result:
        with patch("cli.setup_logging"):
            return runner.invoke(cli_group, list(args))

    return _invoke
