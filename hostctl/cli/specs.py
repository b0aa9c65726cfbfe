"""
Argument and Option Specifications.

Commands declare their positional arguments and options as static maps:

    arguments = {"app": (ArgumentMode.OPTIONAL,)}
    options = {
        "cloud-account-id|c": (ValueMode.REQUIRED,),
        "filter": (ValueMode.ARRAY, []),
    }

Each value is (mode, default); both elements are optional. The resolvers
below normalize those maps into immutable specs, enforce the ordering and
uniqueness rules, and turn the specs into click parameters.

Positional ordering is always required → optional → variadic, stable
within each group so declaration order breaks ties.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import click

from hostctl.core.exceptions import ConfigurationError


class ArgumentMode(int, Enum):
    """Positional argument modes. Values give the sort order."""

    REQUIRED = 0
    OPTIONAL = 1
    VARIADIC = 2


class ValueMode(str, Enum):
    """How an option takes its value."""

    NONE = "none"
    REQUIRED = "required"
    OPTIONAL = "optional"
    ARRAY = "array"


@dataclass(frozen=True)
class ArgumentSpec:
    name: str
    mode: ArgumentMode = ArgumentMode.OPTIONAL
    default: Any = None

    @property
    def input_name(self) -> str:
        return input_name(self.name)


@dataclass(frozen=True)
class OptionSpec:
    long_name: str
    short_name: str | None = None
    value_mode: ValueMode = ValueMode.OPTIONAL
    default: Any = None

    @property
    def input_name(self) -> str:
        return input_name(self.long_name)


def input_name(name: str) -> str:
    """Normalize an argument or option name to its input name (dashes → underscores)."""
    return name.replace("-", "_")


def _unpack(declaration: Any, default_mode: Any) -> tuple[Any, Any]:
    """Split a (mode, default) declaration; either element may be missing."""
    if declaration is None:
        return default_mode, None
    if not isinstance(declaration, (tuple, list)):
        return declaration, None
    values = list(declaration) + [None, None]
    mode = values[0] if values[0] is not None else default_mode
    return mode, values[1]


def resolve_arguments(declarations: Mapping[str, Any]) -> tuple[ArgumentSpec, ...]:
    """
    Normalize positional argument declarations into ordered specs.

    Args:
        declarations: Map of name → (mode, default)

    Returns:
        Specs ordered required → optional → variadic, stable within a mode

    Raises:
        ConfigurationError: More than one variadic argument, or an unknown mode
    """
    specs = []
    for name, declaration in declarations.items():
        mode, default = _unpack(declaration, ArgumentMode.OPTIONAL)
        if not isinstance(mode, ArgumentMode):
            raise ConfigurationError(f"Argument '{name}' has an invalid mode: {mode!r}")
        specs.append(ArgumentSpec(name=name, mode=mode, default=default))

    variadic = [spec.name for spec in specs if spec.mode is ArgumentMode.VARIADIC]
    if len(variadic) > 1:
        raise ConfigurationError(
            f"Only one variadic argument is allowed, got: {', '.join(variadic)}"
        )

    # sorted() is stable, so declaration order survives within each mode
    return tuple(sorted(specs, key=lambda spec: spec.mode.value))


def _parse_option_key(key: str) -> tuple[str, str | None]:
    parts = key.split("|")
    if len(parts) > 2 or not parts[0]:
        raise ConfigurationError(f"Invalid option declaration: '{key}'")
    long_name = parts[0]
    short_name = parts[1] if len(parts) == 2 and parts[1] else None
    if short_name is not None and len(short_name) != 1:
        raise ConfigurationError(
            f"Short name for option '{long_name}' must be a single character, got '{short_name}'"
        )
    return long_name, short_name


def resolve_options(
    declarations: Mapping[str, Any],
    reserved: Iterable[OptionSpec] = (),
) -> tuple[OptionSpec, ...]:
    """
    Normalize option declarations ("long|s" keys) into specs.

    Args:
        declarations: Map of "long|s" → (value_mode, default)
        reserved: Already registered options the declarations must not collide with

    Raises:
        ConfigurationError: Duplicate long/short name, malformed key, or unknown mode
    """
    registered = list(reserved)
    long_names = {spec.long_name for spec in registered}
    short_names = {spec.short_name for spec in registered if spec.short_name}

    specs = []
    for key, declaration in declarations.items():
        long_name, short_name = _parse_option_key(key)
        mode, default = _unpack(declaration, ValueMode.OPTIONAL)
        if not isinstance(mode, ValueMode):
            raise ConfigurationError(f"Option '{long_name}' has an invalid value mode: {mode!r}")

        if long_name in long_names:
            raise ConfigurationError(f"Option '--{long_name}' is declared more than once")
        if short_name is not None and short_name in short_names:
            raise ConfigurationError(
                f"Short option '-{short_name}' of '--{long_name}' is already in use"
            )

        long_names.add(long_name)
        if short_name is not None:
            short_names.add(short_name)
        specs.append(
            OptionSpec(long_name=long_name, short_name=short_name, value_mode=mode, default=default)
        )

    return tuple(specs)


# =============================================================================
# click registration
# =============================================================================


def to_click_argument(spec: ArgumentSpec) -> click.Argument:
    """Build the click parameter for a positional argument."""
    if spec.mode is ArgumentMode.VARIADIC:
        return click.Argument([spec.input_name], nargs=-1, required=False)
    return click.Argument(
        [spec.input_name],
        required=spec.mode is ArgumentMode.REQUIRED,
        default=spec.default,
    )


def to_click_option(spec: OptionSpec, description: str) -> click.Option:
    """Build the click parameter for an option."""
    decls = [spec.input_name, f"--{spec.long_name}"]
    if spec.short_name:
        decls.append(f"-{spec.short_name}")

    if spec.value_mode is ValueMode.NONE:
        return click.Option(decls, is_flag=True, default=bool(spec.default), help=description)
    if spec.value_mode is ValueMode.ARRAY:
        return click.Option(decls, multiple=True, default=spec.default or (), help=description)
    if spec.value_mode is ValueMode.OPTIONAL:
        # "--opt" alone yields an empty string, "--opt VALUE" the value
        return click.Option(
            decls, is_flag=False, flag_value="", default=spec.default, help=description,
        )
    return click.Option(decls, default=spec.default, help=description)


def describe_arguments(
    specs: Iterable[ArgumentSpec],
    describe: Callable[[str], str],
) -> str:
    """Render an "Arguments:" help block (click arguments carry no help text)."""
    lines = []
    for spec in specs:
        label = spec.name.upper() + ("..." if spec.mode is ArgumentMode.VARIADIC else "")
        lines.append(f"  {label:<20} {describe(spec.name)}")
    if not lines:
        return ""
    return "\b\nArguments:\n" + "\n".join(lines)
