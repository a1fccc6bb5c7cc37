"""
Tests for the JSON session store.
"""

import json

import pytest

from sbs.session_store import (
    SessionRecord,
    SessionStore,
    filter_for_repository,
    resolve_sandbox_name,
)


class TestSessionRecord:
    def test_to_dict_roundtrip(self, make_record):
        record = make_record()
        assert SessionRecord.from_dict(record.to_dict()) == record

    def test_from_dict_ignores_unknown_keys(self):
        record = SessionRecord.from_dict({"namespaced_id": "repo-1", "color": "blue"})
        assert record.namespaced_id == "repo-1"
        assert record.issue_title == ""

    def test_legacy_entry_uses_issue_number(self):
        record = SessionRecord.from_dict({"issue_number": 7, "issue_title": "Old"})
        assert record.namespaced_id == "7"
        assert record.issue_number == 7

    def test_entry_without_any_id_rejected(self):
        with pytest.raises(ValueError):
            SessionRecord.from_dict({"issue_title": "Nothing"})

    def test_mistyped_fields_default(self):
        record = SessionRecord.from_dict({
            "namespaced_id": "repo-1",
            "issue_number": "12",
            "branch": 5,
        })
        assert record.issue_number == 0
        assert record.branch == ""

    def test_display_id(self, make_record):
        assert make_record("test:quick").display_id == "Work Item test:quick"


class TestResolveSandboxName:
    def test_stored_name_wins(self, make_record):
        assert resolve_sandbox_name(make_record(sandbox_name="custom")) == "custom"

    def test_repository_aware_default(self, make_record):
        record = make_record("repo-42", sandbox_name="")
        assert resolve_sandbox_name(record) == "sbs-repo-42"

    def test_legacy_default(self, make_record):
        record = make_record("42", sandbox_name="", repository_name="")
        assert resolve_sandbox_name(record) == "work-issue-42"


class TestFilterForRepository:
    def test_filters_by_root(self, make_record):
        mine = make_record("repo-1")
        other = make_record("other-1", repository_root="/elsewhere")
        assert filter_for_repository([mine, other], mine.repository_root) == [mine]

    def test_no_root_returns_everything(self, make_record):
        records = [make_record("a"), make_record("b", repository_root="/x")]
        assert filter_for_repository(records, None) == records


class TestSessionStore:
    def test_missing_file_is_empty(self, store):
        assert store.load_all_sessions() == []

    def test_upsert_and_get(self, store, make_record):
        store.upsert_session(make_record("repo-1"))
        store.upsert_session(make_record("repo-2"))

        assert [r.namespaced_id for r in store.load_all_sessions()] == ["repo-1", "repo-2"]
        assert store.get_session("repo-2").issue_title == "Fix issue repo-2"
        assert store.get_session("missing") is None

    def test_upsert_replaces_existing(self, store, make_record):
        store.upsert_session(make_record("repo-1"))
        store.upsert_session(make_record("repo-1", issue_title="Renamed"))

        records = store.load_all_sessions()
        assert len(records) == 1
        assert records[0].issue_title == "Renamed"

    def test_upsert_sets_created_at_for_new_records(self, store, make_record):
        store.upsert_session(make_record("repo-1", created_at=""))
        assert store.get_session("repo-1").created_at.endswith("Z")

    def test_remove_session(self, store, make_record):
        store.upsert_session(make_record("repo-1"))
        assert store.remove_session("repo-1") is True
        assert store.remove_session("repo-1") is False
        assert store.load_all_sessions() == []

    def test_touch_session(self, store, make_record):
        store.upsert_session(make_record("repo-1"))
        assert store.touch_session("repo-1", when="2026-10-18T12:00:00Z") is True
        assert store.get_session("repo-1").last_activity == "2026-10-18T12:00:00Z"
        assert store.touch_session("missing") is False

    def test_file_is_snake_case_json_list(self, store, make_record):
        store.upsert_session(make_record("repo-1"))
        data = json.loads(store.path.read_text())
        assert isinstance(data, list)
        assert data[0]["namespaced_id"] == "repo-1"
        assert "worktree_path" in data[0]

    def test_no_temp_file_left_behind(self, store, make_record):
        store.upsert_session(make_record("repo-1"))
        assert not store.path.with_suffix(".tmp").exists()

    def test_invalid_json_raises(self, store):
        store.path.write_text("{not json")
        with pytest.raises(ValueError, match="invalid sessions file"):
            store.load_all_sessions()

    def test_non_list_raises(self, store):
        store.path.write_text('{"namespaced_id": "x"}')
        with pytest.raises(ValueError):
            store.load_all_sessions()

    def test_malformed_entries_skipped(self, store):
        store.path.write_text(json.dumps([
            "garbage",
            {"issue_title": "no id"},
            {"namespaced_id": "repo-1"},
        ]))
        assert [r.namespaced_id for r in store.load_all_sessions()] == ["repo-1"]

    def test_reads_return_fresh_copies(self, store, make_record):
        store.upsert_session(make_record("repo-1"))
        first = store.get_session("repo-1")
        first.issue_title = "mutated"
        assert store.get_session("repo-1").issue_title == "Fix issue repo-1"
