"""Tests for the read-modify-write entry/settings operations, export and CLI."""

import io
import json
from datetime import datetime

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from openpyxl import load_workbook

import revenue_manager
from conftest import MemoryStore
from revenue_manager import (
    add_entry,
    build_workbook,
    delete_entry,
    export_workbook,
    format_summary,
    get_dashboard_data,
    import_entries,
    update_settings,
)

NOW = datetime(2026, 1, 5, 10, 0, 0)


def _seeded_store():
    return MemoryStore({
        "entries": [
            {"id": "e1", "amount": 1000.0, "date": "2026-01-02", "note": "ACME"},
            {"id": "e2", "amount": 500.0, "date": "2026-01-03"},
        ],
        "settings": {"targetRevenue": 25000.0, "demoDay": "2026-01-19"},
    })


class TestAddEntry:

    def test_appends_with_fresh_id_and_saves(self, memory_store):
        doc, saved = add_entry(memory_store, {"amount": 250, "date": "2026-01-05", "note": "first"})
        assert saved is True
        assert len(doc["entries"]) == 1
        entry = doc["entries"][0]
        assert entry["id"]
        assert entry == {"id": entry["id"], "amount": 250.0, "date": "2026-01-05", "note": "first"}
        assert memory_store.doc == doc

    def test_failed_save_rolls_back_returned_doc_only(self):
        store = _seeded_store()
        before = store.load()
        store.fail_saves = True

        doc, saved = add_entry(store, {"amount": 99, "date": "2026-01-05"})

        assert saved is False
        assert doc["entries"] == before["entries"]
        assert store.load() == before

    def test_invalid_input_never_touches_store(self, memory_store):
        with pytest.raises(ValueError):
            add_entry(memory_store, {"amount": "x", "date": "2026-01-05"})
        assert memory_store.load_calls == 0
        assert memory_store.save_calls == 0

    @given(amount=st.floats(min_value=-1e6, max_value=1e6, allow_nan=False), note=st.text(max_size=20))
    @settings(max_examples=30)
    def test_delete_then_readd_never_reuses_id(self, amount, note):
        store = MemoryStore()
        partial = {"amount": amount, "date": "2026-01-05", "note": note}
        doc, _ = add_entry(store, partial)
        old_id = doc["entries"][0]["id"]
        delete_entry(store, old_id)
        doc, _ = add_entry(store, partial)
        assert [e["id"] for e in doc["entries"]] != [old_id]
        assert len(doc["entries"]) == 1


class TestDeleteEntry:

    def test_removes_matching_entry(self):
        store = _seeded_store()
        doc, saved = delete_entry(store, "e1")
        assert saved is True
        assert [e["id"] for e in doc["entries"]] == ["e2"]
        assert [e["id"] for e in store.doc["entries"]] == ["e2"]

    def test_failed_save_restores_entry_in_place(self):
        store = _seeded_store()
        store.fail_saves = True
        doc, saved = delete_entry(store, "e1")
        assert saved is False
        assert [e["id"] for e in doc["entries"]] == ["e1", "e2"]

    def test_unknown_id_raises_without_saving(self):
        store = _seeded_store()
        with pytest.raises(KeyError):
            delete_entry(store, "nope")
        assert store.save_calls == 0
        assert len(store.doc["entries"]) == 2

    def test_entry_without_stored_id_can_be_deleted(self, local_store):
        local_store.path.write_text(json.dumps({
            "rev-tracker-entries": [{"amount": 5, "date": "2026-01-02"}],
            "rev-tracker-settings": {"targetRevenue": 25000, "demoDay": ""},
        }))
        shown_id = local_store.load()["entries"][0]["id"]
        assert local_store.load()["entries"][0]["id"] == shown_id
        doc, saved = delete_entry(local_store, shown_id)
        assert saved is True
        assert doc["entries"] == []
        assert local_store.load()["entries"] == []


class TestUpdateSettings:

    def test_shallow_merge(self):
        store = _seeded_store()
        doc, saved = update_settings(store, {"targetRevenue": 40000})
        assert saved is True
        assert doc["settings"] == {"targetRevenue": 40000.0, "demoDay": "2026-01-19"}
        assert store.doc["settings"]["targetRevenue"] == 40000.0

    def test_failed_save_restores_prior_settings(self):
        store = _seeded_store()
        store.fail_saves = True
        doc, saved = update_settings(store, {"demoDay": ""})
        assert saved is False
        assert doc["settings"] == {"targetRevenue": 25000.0, "demoDay": "2026-01-19"}

    def test_invalid_patch_raises(self, memory_store):
        with pytest.raises(ValueError):
            update_settings(memory_store, {"targetRevenue": -5})
        assert memory_store.save_calls == 0


class TestImportEntries:

    def test_skips_duplicates_in_one_save(self):
        store = _seeded_store()
        rows = [
            {"date": "2026-01-02", "amount": 1000.0, "note": "acme"},
            {"date": "2026-01-06", "amount": 75.0},
            {"date": "2026-01-06", "amount": 75.0},
            {"date": "bad", "amount": 1.0},
        ]
        doc, added, saved = import_entries(store, rows)
        assert (added, saved) == (1, True)
        assert len(doc["entries"]) == 3
        assert store.save_calls == 1

    def test_nothing_new_skips_save(self):
        store = _seeded_store()
        _, added, saved = import_entries(store, [{"date": "2026-01-03", "amount": 500.0}])
        assert (added, saved) == (0, True)
        assert store.save_calls == 0

    def test_failed_save_drops_new_entries(self):
        store = _seeded_store()
        store.fail_saves = True
        doc, added, saved = import_entries(store, [{"date": "2026-01-07", "amount": 10.0}])
        assert (added, saved) == (0, False)
        assert [e["id"] for e in doc["entries"]] == ["e1", "e2"]


def test_get_dashboard_data():
    data = get_dashboard_data(_seeded_store(), NOW)
    m = data["metrics"]
    assert m["total_revenue"] == 1500
    assert m["weeks_remaining"] == 2
    assert m["weekly_target"] == pytest.approx(11750)
    assert len(data["entries"]) == 2


def test_format_summary_handles_unset_values():
    store = MemoryStore({"entries": [], "settings": {"targetRevenue": 0, "demoDay": ""}})
    text = format_summary(get_dashboard_data(store, NOW))
    assert "Progress:       -" in text
    assert "Demo Day:       -" in text


def test_workbook_has_entries_and_summary():
    doc = _seeded_store().load()
    buf = io.BytesIO()
    export_workbook(doc, buf, NOW)
    buf.seek(0)
    wb = load_workbook(buf)
    assert wb.sheetnames == ["Entries", "Cumulative", "Summary"]
    rows = list(wb["Entries"].iter_rows(min_row=2, values_only=True))
    assert [r[0] for r in rows] == ["2026-01-02", "2026-01-03"]
    cumulative = [r[2] for r in wb["Cumulative"].iter_rows(min_row=2, values_only=True)]
    assert cumulative == [1000, 1500]
    summary = {r[0]: r[1] for r in wb["Summary"].iter_rows(min_row=2, values_only=True)}
    assert summary["Total Revenue"] == 1500


def test_build_workbook_with_zero_target():
    wb = build_workbook({"entries": [], "settings": {"targetRevenue": 0.0, "demoDay": ""}}, NOW)
    summary = {r[0]: r[1] for r in wb["Summary"].iter_rows(min_row=2, values_only=True)}
    assert summary["Progress %"] is None


class TestCli:

    @pytest.fixture
    def store(self, monkeypatch):
        store = _seeded_store()
        monkeypatch.setattr("server.make_store", lambda config: store)
        return store

    def test_add(self, store, capsys):
        assert revenue_manager.main(["add", "125.5", "--date", "2026-01-08", "--note", "Beta"]) == 0
        assert store.doc["entries"][-1]["amount"] == 125.5
        assert "Saved." in capsys.readouterr().out

    def test_invalid_amount_exits_nonzero(self, store, capsys):
        assert revenue_manager.main(["add", "lots"]) == 1
        assert "Error" in capsys.readouterr().out

    def test_delete_unknown_id_exits_nonzero(self, store, capsys):
        assert revenue_manager.main(["delete", "nope"]) == 1
        assert "no entry with id nope" in capsys.readouterr().out
        assert store.save_calls == 0

    def test_failed_save_exits_nonzero(self, store):
        store.fail_saves = True
        assert revenue_manager.main(["set-target", "1000"]) == 1

    def test_set_demo_day_and_summary(self, store, capsys):
        assert revenue_manager.main(["set-demo-day", "2026-04-01"]) == 0
        assert store.doc["settings"]["demoDay"] == "2026-04-01"
        assert revenue_manager.main(["summary"]) == 0
        assert "$1,500.00" in capsys.readouterr().out

    def test_import_csv(self, store, tmp_path):
        path = tmp_path / "payouts.csv"
        path.write_text("Date,Amount,Description\n01/10/2026,\"$2,000.00\",Gamma\n", encoding="utf-8")
        assert revenue_manager.main(["import-csv", str(path)]) == 0
        assert store.doc["entries"][-1] == {
            "id": store.doc["entries"][-1]["id"], "amount": 2000.0, "date": "2026-01-10", "note": "Gamma",
        }

    def test_export(self, store, tmp_path):
        path = tmp_path / "out.xlsx"
        assert revenue_manager.main(["export", str(path)]) == 0
        assert load_workbook(path)["Summary"]["A2"].value == "Total Revenue"
