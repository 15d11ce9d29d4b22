"""Error code extraction and classification."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from stackspay.error_codes import (
    DEFAULT_ERROR_TABLE,
    ErrorAction,
    ErrorClassifier,
    ErrorCode,
    ErrorDescriptor,
    ErrorTable,
    extract_code,
)
from stackspay.errors import ConfigError


@pytest.mark.parametrize(
    "raw",
    [
        {"error": {"error": "u301"}},
        {"error": "transaction aborted: u301"},
        {"message": "contract call failed with (err u301)"},
        Exception("broadcast rejected: (err u301)"),
        SimpleNamespace(message="u301"),
        301,
        "u301",
    ],
)
def test_extraction_formats(raw) -> None:
    assert extract_code(raw) == 301


def test_first_matching_format_wins() -> None:
    raw = {"error": {"error": "u303"}, "message": "u305"}
    assert extract_code(raw) == 303
    raw = {"error": "aborted u304", "message": "u305"}
    assert extract_code(raw) == 304


def test_u_must_start_a_token() -> None:
    assert extract_code("menu123") is None
    assert extract_code("status u42") == 42


@pytest.mark.parametrize("raw", [None, True, {}, [], "nothing here", {"error": {"error": 5}}])
def test_unextractable_codes(raw) -> None:
    assert extract_code(raw) is None


def test_classify_known_code() -> None:
    descriptor = ErrorClassifier().classify({"error": "u305"})
    assert descriptor.code == ErrorCode.INSUFFICIENT_FUNDS
    assert descriptor.short_label == "Insufficient Funds"
    assert descriptor.user_message == "The company vault has insufficient balance for this payment."
    assert descriptor.action == ErrorAction.ADD_FUNDS
    assert descriptor.action_label == "Get Faucet"
    assert descriptor.action_url.startswith("https://explorer.hiro.so/sandbox/faucet")


@pytest.mark.parametrize("raw", ["u12345", 77, None, object(), {"error": None}])
def test_unknown_codes_fall_back_to_999(raw) -> None:
    descriptor = ErrorClassifier().classify(raw)
    assert descriptor.code == ErrorCode.UNKNOWN
    assert descriptor.user_message == "An unexpected blockchain error occurred. Please try again."
    assert descriptor.action == ErrorAction.RETRY


def test_classify_never_raises_on_hostile_payload() -> None:
    class Exploding:
        def __getattr__(self, name):
            raise RuntimeError("boom")

    assert ErrorClassifier().classify(Exploding()).code == ErrorCode.UNKNOWN


GROUP_FULL = ErrorDescriptor(501, "Group Full", "Group {group_id} is full ({members} members).")


def test_placeholders_render_from_context() -> None:
    table = DEFAULT_ERROR_TABLE.extended([GROUP_FULL])
    descriptor = ErrorClassifier(table).classify("u501", {"group_id": "savers", "members": 5})
    assert descriptor.user_message == "Group savers is full (5 members)."


def test_unmatched_placeholders_stay_verbatim() -> None:
    assert GROUP_FULL.render({"group_id": "savers"}) == "Group savers is full ({members} members)."
    assert GROUP_FULL.render({}) == GROUP_FULL.user_message


@pytest.mark.parametrize("code", list(ErrorCode))
def test_default_messages_need_no_context(code) -> None:
    assert "{" not in DEFAULT_ERROR_TABLE.lookup(code).user_message


def test_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        DEFAULT_ERROR_TABLE.entries[301] = None  # type: ignore[index]


def test_table_from_yaml_extends_defaults(tmp_path) -> None:
    path = tmp_path / "errors.yaml"
    path.write_text(
        "501:\n"
        "  label: Group Full\n"
        "  message: Group {group} is full.\n"
        "  action: browse_groups\n"
    )
    table = ErrorTable.from_yaml(path)
    assert 301 in table
    descriptor = ErrorClassifier(table).classify("u501", {"group": "savers"})
    assert descriptor.short_label == "Group Full"
    assert descriptor.user_message == "Group savers is full."
    assert descriptor.action_label == "Browse Groups"


def test_table_from_yaml_rejects_bad_entries(tmp_path) -> None:
    path = tmp_path / "errors.yaml"
    path.write_text("501:\n  label: Missing message\n")
    with pytest.raises(ConfigError):
        ErrorTable.from_yaml(path)
