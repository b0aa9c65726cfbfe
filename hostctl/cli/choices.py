"""
Choice Resolution.

Some inputs name a remote resource: a cloud account id, a package id, a
backup filename. When such an input is missing, or given as text that has
to be looked up, the resolver fetches the candidates for that input's
choice domain and picks one:

1. A provided value is matched against the candidates: exact key, then a
   case-insensitive raw value or label, then a case-insensitive substring
   of exactly one label.
2. Otherwise (nothing provided, or no match while interactive): an empty
   domain fails, a single candidate is auto-selected when not interactive,
   an interactive session gets a menu, and anything else is ambiguous.

A provided value that matches nothing is never replaced by a lone
candidate; it fails unless the user is there to pick again.

Candidates are fetched at most once per resolver. A resolver lives for
one command invocation and is discarded with it.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from hostctl.core.exceptions import ChoiceError, ChoiceErrorKind
from hostctl.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

Records = Mapping[Any, Mapping[str, Any]]


class Prompter(Protocol):
    """Blocking prompt collaborator."""

    def choose(self, question: str, choices: Mapping[Any, str]) -> Any:
        """Show a menu of key → label and return the chosen key."""
        ...

    def ask(self, question: str) -> str:
        """Ask for free text."""
        ...


class ConsolePrompter:
    """Prompter that renders menus with Rich and reads from stdin."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def choose(self, question: str, choices: Mapping[Any, str]) -> Any:
        by_text = {str(key): key for key in choices}
        for key, label in choices.items():
            self.console.print(f"  [cyan]\\[{escape(str(key))}][/cyan] {escape(label)}")
        answer = Prompt.ask(
            escape(question),
            choices=list(by_text),
            show_choices=False,
            console=self.console,
        )
        return by_text[answer]

    def ask(self, question: str) -> str:
        return Prompt.ask(escape(question), console=self.console)


@dataclass(frozen=True)
class ChoiceProvider:
    """
    How to build the candidate set for one choice domain.

    fetch returns key → record for the current invocation; value gives the
    raw (unformatted) value of a record; formatter, when set, turns all the
    records into display labels. Keys never change between the two views.
    """

    fetch: Callable[[Any], Records]
    value: Callable[[Mapping[str, Any]], Any]
    formatter: Callable[[Records], Mapping[Any, str]] | None = None
    empty: ChoiceErrorKind = ChoiceErrorKind.NO_CHOICES


def pad(records: Records, field: str) -> dict[Any, str]:
    """Pad one field of every record to the widest value, for aligned menus."""
    values = {key: str(record.get(field, "")) for key, record in records.items()}
    width = max((len(value) for value in values.values()), default=0)
    return {key: value.ljust(width) for key, value in values.items()}


class ChoiceResolver:
    """
    Resolves inputs against their choice domains for one invocation.

    Usage:
        resolver = ChoiceResolver(providers, context=invocation, prompter=prompter)
        cloud_account_id = resolver.resolve("cloud_account_id", None, interactive=False)
    """

    def __init__(
        self,
        providers: Mapping[str, ChoiceProvider],
        context: Any = None,
        prompter: Prompter | None = None,
        describe: Callable[[ChoiceErrorKind, str], str] | None = None,
        question: Callable[[str], str] | None = None,
    ) -> None:
        self._providers = dict(providers)
        self._context = context
        self._prompter = prompter
        self._describe = describe
        self._question = question or (lambda name: f"Choose {name}")
        self._records: dict[str, dict[Any, Mapping[str, Any]]] = {}

    def has_choices(self, name: str) -> bool:
        return name in self._providers

    def _provider(self, name: str) -> ChoiceProvider:
        try:
            return self._providers[name]
        except KeyError:
            raise ChoiceError(ChoiceErrorKind.NO_CHOICES, name) from None

    def _fetch(self, name: str) -> dict[Any, Mapping[str, Any]]:
        if name not in self._records:
            self._records[name] = dict(self._provider(name).fetch(self._context))
            log_with_source(
                logger, "cli", "debug", "Fetched choices",
                input=name, count=len(self._records[name]),
            )
        return self._records[name]

    def get_choices(self, name: str, formatted: bool = True) -> dict[Any, Any]:
        """
        Get the candidate set for an input.

        Args:
            name: Input name
            formatted: Display labels if True, raw values otherwise
        """
        provider = self._provider(name)
        records = self._fetch(name)
        if formatted and provider.formatter is not None:
            labels = provider.formatter(records)
            return {key: labels[key] for key in records}
        return {key: provider.value(record) for key, record in records.items()}

    def _fail(self, kind: ChoiceErrorKind, name: str) -> ChoiceError:
        message = self._describe(kind, name) if self._describe else None
        return ChoiceError(kind, name, message)

    def match(self, name: str, provided: Any) -> Any | None:
        """Match a provided value against the candidates. Returns the key or None."""
        raw = self.get_choices(name, formatted=False)
        text = str(provided).strip()

        for key in raw:
            if str(key) == text:
                return key

        folded = text.casefold()
        labels = self.get_choices(name, formatted=True)
        for key in raw:
            if str(raw[key]).strip().casefold() == folded or labels[key].strip().casefold() == folded:
                return key

        partial = [key for key, label in labels.items() if folded and folded in label.casefold()]
        if len(partial) == 1:
            return partial[0]
        return None

    def resolve(self, name: str, provided_value: Any = None, interactive: bool = False) -> Any:
        """
        Resolve an input to one of its candidate keys.

        Raises:
            ChoiceError: Empty domain, no match (non-interactive), or ambiguous
        """
        if provided_value is not None:
            key = self.match(name, provided_value)
            if key is not None:
                return key
            if not interactive:
                raise self._fail(ChoiceErrorKind.NO_MATCHING_CHOICE, name)
            log_with_source(
                logger, "cli", "info", "No matching choice, asking",
                input=name, value=provided_value,
            )

        records = self._fetch(name)
        if not records:
            raise self._fail(self._provider(name).empty, name)

        if len(records) == 1 and not interactive:
            (key,) = records
            log_with_source(logger, "cli", "debug", "Auto-selected only choice", input=name, key=key)
            return key

        if interactive and self._prompter is not None:
            return self._prompter.choose(self._question(name), self.get_choices(name, formatted=True))

        raise self._fail(ChoiceErrorKind.AMBIGUOUS_CHOICE, name)
