"""Unit tests for choice resolution."""

import io
from unittest.mock import patch

import pytest
from rich.console import Console

from hostctl.cli.choices import ChoiceProvider, ChoiceResolver, ConsolePrompter, pad
from hostctl.core.exceptions import ChoiceError, ChoiceErrorKind


class CountingFetch:
    """Fetch callable returning fixed records and counting calls."""

    def __init__(self, records: dict) -> None:
        self.records = records
        self.calls = 0

    def __call__(self, context) -> dict:
        self.calls += 1
        return self.records


def accounts_provider(records: dict) -> ChoiceProvider:
    return ChoiceProvider(
        fetch=CountingFetch(records),
        value=lambda record: record["domain"],
        formatter=lambda records: {
            key: f"{label} ({records[key]['location']})" for key, label in pad(records, "domain").items()
        },
        empty=ChoiceErrorKind.NO_CLOUD_ACCOUNT_CHOICES,
    )


ACCOUNTS = {
    42: {"domain": "example.com", "location": "Southfield"},
    43: {"domain": "shop.example.org", "location": "London"},
}


class TestPad:
    """Tests for label padding."""

    def test_pads_to_widest(self) -> None:
        assert pad({1: {"name": "a"}, 2: {"name": "abc"}}, "name") == {1: "a  ", 2: "abc"}

    def test_missing_field_pads_empty(self) -> None:
        assert pad({1: {}, 2: {"name": "ab"}}, "name") == {1: "  ", 2: "ab"}


class TestGetChoices:
    """Tests for candidate sets."""

    def test_formatted_and_raw_share_keys(self) -> None:
        resolver = ChoiceResolver({"cloud_account_id": accounts_provider(ACCOUNTS)})
        raw = resolver.get_choices("cloud_account_id", formatted=False)
        labels = resolver.get_choices("cloud_account_id")
        assert raw == {42: "example.com", 43: "shop.example.org"}
        assert list(labels) == [42, 43]
        assert labels[42] == "example.com      (Southfield)"

    def test_fetched_once_per_resolver(self) -> None:
        provider = accounts_provider(ACCOUNTS)
        resolver = ChoiceResolver({"cloud_account_id": provider})
        resolver.get_choices("cloud_account_id")
        resolver.get_choices("cloud_account_id", formatted=False)
        resolver.resolve("cloud_account_id", "42")
        assert provider.fetch.calls == 1

    def test_unknown_input_has_no_choices(self) -> None:
        resolver = ChoiceResolver({})
        assert not resolver.has_choices("package_id")
        with pytest.raises(ChoiceError) as exc_info:
            resolver.resolve("package_id")
        assert exc_info.value.kind is ChoiceErrorKind.NO_CHOICES


class TestMatch:
    """Tests for matching provided values."""

    @pytest.fixture
    def resolver(self) -> ChoiceResolver:
        return ChoiceResolver({"cloud_account_id": accounts_provider(ACCOUNTS)})

    def test_exact_key_as_text(self, resolver) -> None:
        assert resolver.match("cloud_account_id", "43") == 43

    def test_raw_value_case_insensitive(self, resolver) -> None:
        assert resolver.match("cloud_account_id", "EXAMPLE.COM") == 42

    def test_unique_label_substring(self, resolver) -> None:
        assert resolver.match("cloud_account_id", "london") == 43

    def test_ambiguous_substring_does_not_match(self, resolver) -> None:
        assert resolver.match("cloud_account_id", "example") is None


class TestResolve:
    """Tests for the resolution policy."""

    def test_empty_domain_fails_with_domain_kind(self) -> None:
        resolver = ChoiceResolver({"cloud_account_id": accounts_provider({})})
        with pytest.raises(ChoiceError) as exc_info:
            resolver.resolve("cloud_account_id", None, interactive=False)
        assert exc_info.value.kind is ChoiceErrorKind.NO_CLOUD_ACCOUNT_CHOICES
        assert exc_info.value.code == "CHOICE_NO_CLOUD_ACCOUNT_CHOICES"

    def test_empty_domain_fails_even_when_interactive(self, prompter) -> None:
        resolver = ChoiceResolver({"cloud_account_id": accounts_provider({})}, prompter=prompter)
        with pytest.raises(ChoiceError):
            resolver.resolve("cloud_account_id", None, interactive=True)
        assert prompter.menus == []

    def test_single_candidate_auto_selected(self) -> None:
        resolver = ChoiceResolver({"cloud_account_id": accounts_provider({42: ACCOUNTS[42]})})
        assert resolver.resolve("cloud_account_id", None, interactive=False) == 42

    def test_mismatch_never_replaced_by_single_candidate(self) -> None:
        resolver = ChoiceResolver({"cloud_account_id": accounts_provider({42: ACCOUNTS[42]})})
        with pytest.raises(ChoiceError) as exc_info:
            resolver.resolve("cloud_account_id", "nowhere.net", interactive=False)
        assert exc_info.value.kind is ChoiceErrorKind.NO_MATCHING_CHOICE

    def test_many_candidates_without_prompt_is_ambiguous(self) -> None:
        resolver = ChoiceResolver({"cloud_account_id": accounts_provider(ACCOUNTS)})
        with pytest.raises(ChoiceError) as exc_info:
            resolver.resolve("cloud_account_id", None, interactive=False)
        assert exc_info.value.kind is ChoiceErrorKind.AMBIGUOUS_CHOICE

    def test_interactive_shows_formatted_menu(self, prompter) -> None:
        prompter.choice = 43
        resolver = ChoiceResolver(
            {"cloud_account_id": accounts_provider(ACCOUNTS)},
            prompter=prompter,
            question=lambda name: f"Pick {name}",
        )
        assert resolver.resolve("cloud_account_id", None, interactive=True) == 43
        ((question, menu),) = prompter.menus
        assert question == "Pick cloud_account_id"
        assert menu[43] == "shop.example.org (London)"

    def test_interactive_mismatch_falls_back_to_menu(self, prompter) -> None:
        resolver = ChoiceResolver({"cloud_account_id": accounts_provider(ACCOUNTS)}, prompter=prompter)
        assert resolver.resolve("cloud_account_id", "nowhere.net", interactive=True) == 42
        assert len(prompter.menus) == 1

    def test_describe_hook_sets_message(self) -> None:
        resolver = ChoiceResolver(
            {"cloud_account_id": accounts_provider({})},
            describe=lambda kind, name: f"{kind.value}/{name}",
        )
        with pytest.raises(ChoiceError, match="no_cloud_account_choices/cloud_account_id"):
            resolver.resolve("cloud_account_id")


class TestConsolePrompter:
    """Tests for the Rich prompt collaborator."""

    def test_choose_maps_answer_back_to_key(self) -> None:
        console = Console(file=io.StringIO(), width=120)
        prompter = ConsolePrompter(console)

        with patch("hostctl.cli.choices.Prompt.ask", return_value="43") as ask:
            assert prompter.choose("Choose cloud_account_id", {42: "example.com", 43: "shop.example.org"}) == 43

        assert ask.call_args.kwargs["choices"] == ["42", "43"]
        menu = console.file.getvalue()
        assert "[42] example.com" in menu
        assert "[43] shop.example.org" in menu

    def test_ask(self) -> None:
        with patch("hostctl.cli.choices.Prompt.ask", return_value="example.com"):
            assert ConsolePrompter(Console(file=io.StringIO())).ask("Enter domain") == "example.com"
