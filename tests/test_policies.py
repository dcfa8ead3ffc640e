from __future__ import annotations

import pytest

from rpc_versus.errors import ConfigError
from rpc_versus.policies import (
    POLICY_ALIASES,
    exact_match,
    json_match,
    register_policy,
    resolve_policy,
)


def test_exact_match_compares_bytes_and_text() -> None:
    assert exact_match("abc", "abc")
    assert exact_match("héllo", "héllo".encode("utf-8"))
    assert not exact_match('{"a":1}', '{"a": 1}')


def test_json_match_ignores_key_order_and_whitespace() -> None:
    assert json_match('{"a": 1, "b": [1, 2]}', '{"b":[1,2],"a":1}')
    assert not json_match('{"a": [1, 2]}', '{"a": [2, 1]}')


def test_json_match_falls_back_to_exact_for_non_json() -> None:
    assert json_match("not json", "not json")
    assert not json_match("not json", '{"a": 1}')


@pytest.mark.parametrize(
    "name, expected",
    [
        ("exact", exact_match),
        ("EXACT", exact_match),
        ("bytes", exact_match),
        ("json", json_match),
        ("json-match", json_match),
        ("structural", json_match),
    ],
)
def test_resolve_policy_aliases(name: str, expected: object) -> None:
    assert resolve_policy(name) is expected


def test_resolve_policy_passes_callables_through() -> None:
    def always(a: object, b: object) -> bool:
        return True

    assert resolve_policy(always) is always


def test_resolve_policy_rejects_unknown_names() -> None:
    with pytest.raises(ConfigError):
        resolve_policy("fuzzy")


def test_register_policy_makes_name_resolvable() -> None:
    def casefold_match(a: object, b: object) -> bool:
        return str(a).casefold() == str(b).casefold()

    register_policy("casefold", casefold_match)
    try:
        assert resolve_policy("casefold") is casefold_match
    finally:
        POLICY_ALIASES.pop("casefold", None)
