"""Tests for shared error helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from pb_common.errors import (
    LedgerError,
    LoadError,
    PBError,
    SolverTimeoutError,
    error_to_payload,
)


pytestmark = pytest.mark.unit_common


def test_error_to_payload_normalizes_context() -> None:
    err = LoadError(
        "boom",
        context={
            "path": Path("/tmp/cases"),
            "count": 3,
            "nested": {"value": Path("nested")},
            "items": [Path("a"), "b"],
        },
    )
    payload = error_to_payload(err)
    assert payload["error_type"] == "LoadError"
    assert payload["error"] == "boom"
    assert payload["error_context"]["path"].endswith("cases")
    assert payload["error_context"]["count"] == 3
    assert payload["error_context"]["nested"]["value"] == "nested"
    assert payload["error_context"]["items"] == ["a", "b"]


def test_cause_and_dict_form() -> None:
    cause = OSError("disk full")
    err = LedgerError("cannot append", context={"ledger": Path("out.csv")}, cause=cause)
    assert isinstance(err, LedgerError)
    assert isinstance(err, PBError)
    assert err.__cause__ is cause
    assert err.to_dict() == {
        "type": "LedgerError",
        "message": "cannot append",
        "context": {"ledger": "out.csv"},
    }


def test_timeout_error_does_not_shadow_builtin() -> None:
    err = SolverTimeoutError("too slow")
    assert not isinstance(err, TimeoutError)
    assert err.context == {}


def test_with_context_keeps_existing_keys() -> None:
    err = LoadError("bad header", context={"case": "a.txt"})
    assert err.with_context(case="b.txt", line=2) is err
    assert err.context == {"case": "a.txt", "line": 2}
    assert err.describe() == "LoadError: bad header"
