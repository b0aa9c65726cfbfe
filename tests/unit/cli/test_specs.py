"""Unit tests for argument and option declarations."""

import click
import pytest

from hostctl.cli.specs import (
    ArgumentMode,
    OptionSpec,
    ValueMode,
    describe_arguments,
    resolve_arguments,
    resolve_options,
    to_click_argument,
    to_click_option,
)
from hostctl.core.exceptions import ConfigurationError


class TestResolveArguments:
    """Tests for positional argument ordering and validation."""

    def test_orders_required_optional_variadic(self) -> None:
        specs = resolve_arguments({
            "rest": (ArgumentMode.VARIADIC,),
            "b": (ArgumentMode.OPTIONAL,),
            "a": (ArgumentMode.REQUIRED,),
            "c": (ArgumentMode.OPTIONAL,),
            "d": (ArgumentMode.REQUIRED,),
        })
        assert [spec.name for spec in specs] == ["a", "d", "b", "c", "rest"]

    def test_missing_mode_defaults_to_optional(self) -> None:
        (spec,) = resolve_arguments({"app": None})
        assert spec.mode is ArgumentMode.OPTIONAL
        assert spec.default is None

    def test_default_is_kept(self) -> None:
        (spec,) = resolve_arguments({"path": (ArgumentMode.OPTIONAL, ".")})
        assert spec.default == "."

    def test_two_variadic_arguments_fail(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_arguments({
                "first": (ArgumentMode.VARIADIC,),
                "second": (ArgumentMode.VARIADIC,),
            })
        assert exc_info.value.code == "CFG_INVALID_DECLARATION"
        assert "first" in exc_info.value.message

    def test_invalid_mode_fails(self) -> None:
        with pytest.raises(ConfigurationError):
            resolve_arguments({"app": ("sometimes",)})

    def test_input_name_uses_underscores(self) -> None:
        (spec,) = resolve_arguments({"cloud-account": None})
        assert spec.input_name == "cloud_account"


class TestResolveOptions:
    """Tests for option key parsing and collision detection."""

    def test_parses_long_and_short_names(self) -> None:
        (spec,) = resolve_options({"cloud-account-id|c": (ValueMode.REQUIRED,)})
        assert spec.long_name == "cloud-account-id"
        assert spec.short_name == "c"
        assert spec.value_mode is ValueMode.REQUIRED
        assert spec.input_name == "cloud_account_id"

    def test_value_mode_defaults_to_optional(self) -> None:
        (spec,) = resolve_options({"domain": None})
        assert spec.short_name is None
        assert spec.value_mode is ValueMode.OPTIONAL

    def test_duplicate_short_name_fails(self) -> None:
        with pytest.raises(ConfigurationError, match="-d"):
            resolve_options({
                "download|d": (ValueMode.REQUIRED,),
                "domain|d": (ValueMode.REQUIRED,),
            })

    def test_collision_with_reserved_option_fails(self) -> None:
        reserved = [OptionSpec("no-interaction", "n", ValueMode.NONE)]
        with pytest.raises(ConfigurationError):
            resolve_options({"name|n": (ValueMode.REQUIRED,)}, reserved=reserved)
        with pytest.raises(ConfigurationError):
            resolve_options({"no-interaction": (ValueMode.NONE,)}, reserved=reserved)

    def test_multi_character_short_name_fails(self) -> None:
        with pytest.raises(ConfigurationError, match="single character"):
            resolve_options({"download|dl": (ValueMode.REQUIRED,)})

    def test_malformed_key_fails(self) -> None:
        with pytest.raises(ConfigurationError):
            resolve_options({"|d": (ValueMode.REQUIRED,)})
        with pytest.raises(ConfigurationError):
            resolve_options({"a|b|c": (ValueMode.REQUIRED,)})

    def test_invalid_value_mode_fails(self) -> None:
        with pytest.raises(ConfigurationError):
            resolve_options({"domain": ("maybe",)})


class TestClickParameters:
    """Tests for conversion into click parameters."""

    def test_flag_option(self) -> None:
        (spec,) = resolve_options({"wait": (ValueMode.NONE,)})
        option = to_click_option(spec, "Wait for it")
        assert option.is_flag
        assert option.name == "wait"
        assert option.help == "Wait for it"

    def test_array_option(self) -> None:
        (spec,) = resolve_options({"filter": (ValueMode.ARRAY,)})
        option = to_click_option(spec, "")
        assert option.multiple

    def test_short_name_is_registered(self) -> None:
        (spec,) = resolve_options({"cloud-account-id|c": (ValueMode.REQUIRED,)})
        option = to_click_option(spec, "")
        assert option.name == "cloud_account_id"
        assert "--cloud-account-id" in option.opts
        assert "-c" in option.opts

    def test_variadic_argument_takes_many(self) -> None:
        (spec,) = resolve_arguments({"names": (ArgumentMode.VARIADIC,)})
        argument = to_click_argument(spec)
        assert argument.nargs == -1

    def test_options_parse_through_click(self) -> None:
        specs = resolve_options({
            "cloud-account-id|c": (ValueMode.REQUIRED,),
            "filter": (ValueMode.ARRAY,),
            "wait": (ValueMode.NONE,),
        })
        command = click.Command("probe", params=[to_click_option(spec, "") for spec in specs])
        ctx = command.make_context("probe", ["-c", "42", "--filter", "a:1", "--filter", "b:2", "--wait"])
        assert ctx.params == {"cloud_account_id": "42", "filter": ("a:1", "b:2"), "wait": True}


class TestDescribeArguments:
    """Tests for the argument help block."""

    def test_lists_each_argument(self) -> None:
        specs = resolve_arguments({"app": None, "rest": (ArgumentMode.VARIADIC,)})
        text = describe_arguments(specs, lambda name: f"about {name}")
        assert text.startswith("\b\nArguments:")
        assert "APP" in text
        assert "about app" in text
        assert "REST..." in text

    def test_no_arguments_is_empty(self) -> None:
        assert describe_arguments((), lambda name: name) == ""
