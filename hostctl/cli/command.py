"""
Command Executor.

A command is a CommandDefinition (static declarations plus an operation
strategy) bound to the Application. Executing it runs, in order:

1. validate every declared input against its filter
2. resolve missing (or looked-up) inputs through their choice domains
3. run the operation against the endpoint
4. wait for asynchronous results according to --wait / --download
5. summarize the result as text, a table, or JSON

The first failure propagates. Notices already printed stay printed.

Translation keys are namespaced per command: cloud-account:backup:create
looks its phrases up under console.cloud_account.backup.create.*
"""

import sys
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import click
import structlog

from hostctl.cli.application import EXIT_FAILURE, EXIT_SUCCESS, Application
from hostctl.cli.choices import ChoiceProvider, ChoiceResolver
from hostctl.cli.inputs import FilterKind, InputValidator
from hostctl.cli.polling import Completable, when_complete
from hostctl.cli.specs import (
    ValueMode,
    describe_arguments,
    resolve_arguments,
    resolve_options,
    to_click_argument,
    to_click_option,
)
from hostctl.cli.summary import SummaryFormatter, to_plain
from hostctl.core.exceptions import (
    ApplicationError,
    ChoiceErrorKind,
    ConfigurationError,
    InvalidInputError,
    OperationTimeoutError,
)
from hostctl.core.logging import get_logger, log_with_source
from hostctl.sdk.endpoints import Endpoint

logger = get_logger(__name__)

UNIVERSAL_OPTIONS = resolve_options({
    "json": (ValueMode.NONE,),
    "wait": (ValueMode.NONE,),
    "no-interaction|n": (ValueMode.NONE,),
})


class WaitPolicy(str, Enum):
    NO_WAIT = "no_wait"
    WAIT = "wait"
    WAIT_THEN_DOWNLOAD = "wait_then_download"


@dataclass(frozen=True)
class CommandDefinition:
    """
    Static declaration of one command.

    Attributes:
        name: Colon-segmented command name (cloud-account:backup:create)
        endpoint: Name of the default endpoint
        operation: Strategy run with the Invocation; returns the result
        arguments: Positional argument declarations, name → (mode, default)
        options: Option declarations, "long|s" → (value_mode, default)
        inputs: Filter per input name; undeclared inputs are RAW
        choices: Choice domain per input name, resolved in this order
        lookups: Input whose value is looked up in another input's choices
        required: Non-choice inputs that must be present
        summary_keys: Keys kept in the summary (and table header fallback)
        summarize: Reshapes one result item before summary_keys are applied
        completion_context: Phrase context for wait notices
        listing: Results are lists rendered as tables
        restrict_to: Companies this command is available for (empty = all)
    """

    name: str
    endpoint: str
    operation: Callable[["Invocation"], Any]
    arguments: Mapping[str, Any] = field(default_factory=dict)
    options: Mapping[str, Any] = field(default_factory=dict)
    inputs: Mapping[str, FilterKind | None] = field(default_factory=dict)
    choices: Mapping[str, ChoiceProvider] = field(default_factory=dict)
    lookups: Mapping[str, str] = field(default_factory=dict)
    required: frozenset[str] = frozenset()
    summary_keys: tuple[str, ...] = ()
    summarize: Callable[[dict[str, Any]], dict[str, Any]] | None = None
    completion_context: Callable[["Invocation", Any], Mapping[str, Any]] | None = None
    listing: bool = False
    restrict_to: tuple[str, ...] = ()


class Invocation:
    """
    State of one command execution: validated inputs, output mode, and the
    choice resolver (whose candidate cache dies with the invocation).
    """

    def __init__(
        self,
        command: "Command",
        inputs: Mapping[str, Any],
        as_json: bool = False,
        interactive: bool = False,
    ) -> None:
        self.command = command
        self.application = command.application
        self.inputs = dict(inputs)
        self.as_json = as_json
        self.interactive = interactive
        self.choices = ChoiceResolver(
            command.definition.choices,
            context=self,
            prompter=self.application.prompter,
            describe=command.describe_choice_error,
            question=command.choice_question,
        )

    def get(self, name: str, default: Any = None) -> Any:
        value = self.inputs.get(name)
        return default if value is None else value

    def endpoint(self, name: str | None = None) -> Endpoint:
        return self.application.get_endpoint(name or self.command.definition.endpoint)

    def notice(self, key: str, **context: Any) -> None:
        """Tell the user about progress. Suppressed in JSON mode."""
        text = self.command.get_phrase(key, context)
        log_with_source(logger, "cli", "info", text, command=self.command.name)
        if not self.as_json:
            self.application.say(text)


class Command:
    """
    Executable command built from a CommandDefinition.

    Declarations are resolved at construction, so an invalid definition
    fails while commands are being registered.

    Usage:
        command = Command(definition, application)
        group.add_command(command.to_click())
    """

    def __init__(self, definition: CommandDefinition, application: Application) -> None:
        self.definition = definition
        self.application = application
        self._tr_base = "console." + definition.name.replace(":", ".").replace("-", "_")

        self.arguments = resolve_arguments(definition.arguments)
        self.options = resolve_options(definition.options, reserved=UNIVERSAL_OPTIONS)
        self._check_inputs()

        self.validator = InputValidator(definition.inputs)
        self.formatter = SummaryFormatter(
            label=self.summary_label,
            no_data=application.translate("console.no_data"),
        )

    @property
    def name(self) -> str:
        return self.definition.name

    def _check_inputs(self) -> None:
        declared = [spec.input_name for spec in self.arguments] + [
            spec.input_name for spec in self.options
        ]
        duplicates = {name for name in declared if declared.count(name) > 1}
        if duplicates:
            raise ConfigurationError(
                f"{self.name}: inputs declared more than once: {', '.join(sorted(duplicates))}"
            )
        reserved = {spec.input_name for spec in UNIVERSAL_OPTIONS}
        clashing = reserved.intersection(spec.input_name for spec in self.arguments)
        if clashing:
            raise ConfigurationError(
                f"{self.name}: arguments clash with universal options: {', '.join(sorted(clashing))}"
            )

        known = set(declared)
        for name in (*self.definition.inputs, *self.definition.lookups):
            if name not in known:
                raise ConfigurationError(f"{self.name}: '{name}' is not a declared argument or option")

    def is_enabled(self) -> bool:
        """Some commands are restricted to one company or another."""
        restrict_to = self.definition.restrict_to
        return not restrict_to or self.application.company in restrict_to

    # =========================================================================
    # Phrases
    # =========================================================================

    def get_phrase(self, key: str, context: Mapping[str, Any] | None = None) -> str:
        """
        Get a translated phrase for this command.

        Returns:
            Translated phrase on success; the untranslated key otherwise
        """
        tr_key = key if key.startswith("console.") else f"{self._tr_base}.{key}"
        translated = self.application.translate(tr_key, context)
        return key if translated == tr_key else translated

    def summary_label(self, key: str) -> str:
        phrase = self.get_phrase(f"summary_key.{key}")
        return key if phrase == f"summary_key.{key}" else phrase

    def describe_choice_error(self, kind: ChoiceErrorKind, name: str) -> str | None:
        key = f"console.exception.choice.{kind.value}"
        phrase = self.application.translate(key, {"name": name})
        return None if phrase == key else phrase

    def choice_question(self, name: str) -> str:
        return self.application.translate("console.choices.choose", {"name": name})

    # =========================================================================
    # Registration
    # =========================================================================

    def to_click(self) -> click.Command:
        """Build the click command (the outer CLI-parsing collaborator)."""
        params: list[click.Parameter] = [to_click_argument(spec) for spec in self.arguments]
        params += [
            to_click_option(spec, self.get_phrase(f"opt_{spec.input_name}"))
            for spec in self.options
        ]
        params += [
            to_click_option(spec, self.application.translate(f"console.opt_{spec.input_name}"))
            for spec in UNIVERSAL_OPTIONS
        ]

        description = self.get_phrase("desc")
        help_phrase = self.get_phrase("help")
        arguments_help = describe_arguments(
            self.arguments, lambda name: self.get_phrase(f"arg_{name}"),
        )
        help_text = "\n\n".join(
            part for part in (help_phrase if help_phrase != "help" else description, arguments_help)
            if part
        )

        return click.Command(
            name=self.name,
            callback=self._run,
            params=params,
            help=help_text,
            short_help=description,
        )

    def _run(self, **params: Any) -> None:
        """click callback: the process boundary that turns errors into exit codes."""
        interactive = not params.get("no_interaction") and sys.stdin.isatty()
        try:
            code = self.execute(params, interactive=interactive)
        except OperationTimeoutError as e:
            self.application.say_error(e.message)
            self.application.say_warning(
                self.application.translate("console.exception.still_in_progress")
            )
            raise click.exceptions.Exit(EXIT_FAILURE) from e
        except ApplicationError as e:
            log_with_source(
                logger, "cli", "debug", "Command failed",
                command=self.name, code=e.code, error=e.message,
            )
            self.application.say_error(e.message)
            raise click.exceptions.Exit(EXIT_FAILURE) from e

        if code != EXIT_SUCCESS:
            raise click.exceptions.Exit(code)

    # =========================================================================
    # Execution
    # =========================================================================

    def execute(self, params: Mapping[str, Any], interactive: bool = False) -> int:
        """
        Execute the command with parsed CLI parameters.

        Returns:
            EXIT_SUCCESS

        Raises:
            ApplicationError: The first failure encountered
        """
        raw = dict(params)
        as_json = bool(raw.pop("json", False))
        wait = bool(raw.pop("wait", False))
        raw.pop("no_interaction", None)

        with structlog.contextvars.bound_contextvars(command=self.name):
            log_with_source(logger, "cli", "debug", "Command invoked", interactive=interactive)

            invocation = Invocation(
                self,
                self.validator.validate_all(raw),
                as_json=as_json,
                interactive=interactive,
            )
            self._resolve_inputs(invocation)

            result = self.definition.operation(invocation)

            policy = self._wait_policy(invocation, wait)
            if isinstance(result, Completable):
                if as_json and policy is not WaitPolicy.NO_WAIT:
                    self._await(invocation, result, policy)
                    self.say_summary(invocation, result)
                else:
                    self.say_summary(invocation, result)
                    if policy is WaitPolicy.NO_WAIT:
                        invocation.notice("started", **self._completion_context(invocation, result))
                    else:
                        self._await(invocation, result, policy)
            else:
                self.say_summary(invocation, result)

        return EXIT_SUCCESS

    def _resolve_inputs(self, invocation: Invocation) -> None:
        definition = self.definition
        resolver = invocation.choices

        for source, target in definition.lookups.items():
            provided = invocation.inputs.get(source)
            if provided is not None and invocation.inputs.get(target) is None:
                invocation.inputs[target] = resolver.resolve(target, provided, invocation.interactive)

        for name in definition.choices:
            if invocation.inputs.get(name) is None:
                invocation.inputs[name] = resolver.resolve(name, None, invocation.interactive)

        for name in definition.required:
            if invocation.inputs.get(name) is not None:
                continue
            if not invocation.interactive:
                raise InvalidInputError(f"Missing required input '{name}'", name=name)
            answer = self.application.prompter.ask(
                self.application.translate("console.choices.ask", {"name": name})
            )
            invocation.inputs[name] = self.validator.validate(name, answer or None)
            if invocation.inputs[name] is None:
                raise InvalidInputError(f"Missing required input '{name}'", name=name)

    def _wait_policy(self, invocation: Invocation, wait: bool) -> WaitPolicy:
        if invocation.get("download") is not None:
            return WaitPolicy.WAIT_THEN_DOWNLOAD
        if wait:
            return WaitPolicy.WAIT
        return WaitPolicy.NO_WAIT

    def _completion_context(self, invocation: Invocation, resource: Any) -> dict[str, Any]:
        if self.definition.completion_context is not None:
            return dict(self.definition.completion_context(invocation, resource))
        return {"id": getattr(resource, "id", None)}

    def _await(self, invocation: Invocation, resource: Completable, policy: WaitPolicy) -> None:
        application = self.application
        operation = when_complete(
            resource,
            timeout=application.poll_timeout,
            interval=application.poll_interval,
            sleep=application.sleep,
        )

        if policy is WaitPolicy.WAIT_THEN_DOWNLOAD:
            directory = invocation.get("download")
            invocation.notice("downloading")
            path = operation.then(lambda complete: complete.download(directory)).wait()
            invocation.notice(
                "download_complete",
                **{**self._completion_context(invocation, resource), "path": str(path)},
            )
            invocation.notice("done")
            return

        invocation.notice("waiting")
        operation.wait()
        invocation.notice("complete", **self._completion_context(invocation, resource))

    # =========================================================================
    # Summary
    # =========================================================================

    def _summarize_item(self, item: Any) -> Any:
        if not isinstance(item, Mapping):
            return item
        item = dict(item)
        if self.definition.summarize is not None:
            item = self.definition.summarize(item)
        if self.definition.summary_keys:
            item = {key: item.get(key) for key in self.definition.summary_keys}
        return item

    def get_summary(self, details: Any) -> Any:
        """Reshape raw result details into the summary that gets rendered."""
        details = to_plain(details)
        if self.definition.listing and isinstance(details, list):
            return [self._summarize_item(item) for item in details]
        return self._summarize_item(details)

    def say_summary(self, invocation: Invocation, details: Any) -> None:
        """Output a summary of the command results."""
        summary = self.get_summary(details)
        application = self.application

        if invocation.as_json:
            application.say_json(self.formatter.to_json(summary))
            return

        if isinstance(summary, list):
            title = self.get_phrase("summary_title")
            if title != "summary_title":
                application.say(title)
            application.say_table(self.formatter.format_table(summary, self.definition.summary_keys))
            return

        if isinstance(summary, Mapping):
            phrase = self.get_phrase("summary", summary)
            if phrase != "summary":
                application.say(phrase)
                return
        application.say_markup(self.formatter.format(summary))


def build_commands(
    definitions: Iterable[CommandDefinition],
    application: Application,
) -> list[Command]:
    """
    Build every enabled command.

    Raises:
        ConfigurationError: If any definition is invalid
    """
    commands = []
    for definition in definitions:
        command = Command(definition, application)
        if command.is_enabled():
            commands.append(command)
        else:
            log_with_source(
                logger, "cli", "debug", "Command not available for company",
                command=definition.name, company=application.company,
            )
    return commands
