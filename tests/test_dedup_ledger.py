from __future__ import annotations

import json

from adapters.json_ledger import JsonLedgerStore
from core.dedup import DedupLedger, message_key
from core.models import RawMessage


def _message(message_id, uid: str = "42") -> RawMessage:
    return RawMessage(
        uid=uid,
        message_id=message_id,
        subject="OfferUp inquiry",
        text_body="hi",
        html_body=None,
        from_name="",
        from_email="",
    )


def test_message_key_prefers_message_id() -> None:
    assert message_key(_message("abc@mail.example")) == "abc@mail.example"


def test_message_key_falls_back_to_uid() -> None:
    assert message_key(_message(None, uid="17")) == "17"
    assert message_key(_message("", uid="18")) == "18"


def test_ledger_copy_is_independent() -> None:
    ledger = DedupLedger(["a"])
    clone = ledger.copy()
    clone.add("b")
    assert ledger.contains("a")
    assert not ledger.contains("b")
    assert clone.ids == frozenset({"a", "b"})
    assert len(clone) == 2
    assert "b" in clone


def test_load_missing_file_returns_empty(tmp_path) -> None:
    store = JsonLedgerStore(str(tmp_path / "processed.json"))
    assert store.load() == set()


def test_load_corrupt_file_returns_empty(tmp_path) -> None:
    path = tmp_path / "processed.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonLedgerStore(str(path)).load() == set()


def test_load_wrong_shape_returns_empty(tmp_path) -> None:
    path = tmp_path / "processed.json"
    path.write_text(json.dumps({"ids": ["a"]}), encoding="utf-8")
    assert JsonLedgerStore(str(path)).load() == set()


def test_save_overwrites_whole_file(tmp_path) -> None:
    path = tmp_path / "state" / "processed.json"
    store = JsonLedgerStore(str(path))
    store.save({"a", "b"})
    store.save({"c"})
    assert json.loads(path.read_text(encoding="utf-8")) == ["c"]
    assert store.load() == {"c"}
    # No temp files are left behind.
    assert [p.name for p in path.parent.iterdir()] == ["processed.json"]
