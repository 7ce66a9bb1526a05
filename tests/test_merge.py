"""
Tests for merging duplicate jobs.
"""

import pytest

from jobboard.errors import NotFoundError, StoreError, ValidationError
from jobboard.importer import import_jobs
from jobboard.merge import MergeResult, merge_jobs, merge_tags


class TestMergeTags:
    """Test the order-preserving tag union."""

    def test_union_keeps_first_seen_order(self):
        assert merge_tags(["a", "b"], ["b", "c"], ["a", "d"]) == ["a", "b", "c", "d"]

    def test_readding_existing_tag_is_noop(self):
        assert merge_tags(["solidity"], ["solidity"]) == ["solidity"]

    def test_empty_lists(self):
        assert merge_tags([], []) == []


class TestMergeJobs:
    """Test merge_jobs against a real store."""

    def test_merge_unions_tags_and_deletes(self, populated_store):
        result = merge_jobs(populated_store, "a1", ["a2"])

        assert result.kept_id == "a1"
        assert result.deleted_count == 1
        assert result.deleted_ids == ["a2"]
        assert populated_store.get_job("a2") is None
        assert populated_store.get_job("a1").tags == ["solidity", "defi", "remote"]

    def test_survivor_other_fields_unchanged(self, populated_store):
        before = populated_store.get_job("a1")
        merge_jobs(populated_store, "a1", ["a2"])
        after = populated_store.get_job("a1")

        assert after.title == before.title
        assert after.company == before.company
        assert after.source == before.source
        assert after.posted_date == before.posted_date
        assert after.is_active == before.is_active

    def test_result_payload(self, populated_store):
        payload = merge_jobs(populated_store, "a1", ["a2"]).to_dict()
        assert payload == {
            "success": True,
            "kept": "a1",
            "deleted": 1,
            "tags": ["solidity", "defi", "remote"],
        }

    def test_missing_delete_ids_are_ignored(self, populated_store):
        result = merge_jobs(populated_store, "a1", ["a2", "ghost"])
        assert result.deleted_count == 1
        assert result.deleted_ids == ["a2"]

    def test_duplicate_delete_ids_collapse(self, populated_store):
        result = merge_jobs(populated_store, "a1", ["a2", "a2"])
        assert result.deleted_count == 1

    def test_tag_order_follows_delete_ids(self, store, make_job):
        store.add_jobs([
            make_job(id="keep", tags=["base"]),
            make_job(id="first-row", tags=["from-first-row"]),
            make_job(id="second-row", tags=["from-second-row"]),
        ])
        result = merge_jobs(store, "keep", ["second-row", "first-row"])
        assert result.tags == ["base", "from-second-row", "from-first-row"]

    def test_merged_away_id_never_returns_on_import(self, populated_store):
        merge_jobs(populated_store, "a1", ["a2"])

        result = import_jobs(populated_store, [
            {"id": "a2", "title": "Senior Solidity Engineer (Remote)", "company": "ACME"},
        ])

        assert result.imported == 0
        assert result.skipped == 1
        assert populated_store.get_job("a2") is None

    def test_merged_away_id_never_returns_on_add(self, populated_store, make_job):
        merge_jobs(populated_store, "a1", ["a2"])

        assert populated_store.add_jobs([make_job(id="a2")]) == 0
        assert populated_store.get_job("a2") is None
        assert populated_store.deleted_ids(["a1", "a2"]) == {"a2"}

    def test_failed_merge_leaves_no_tombstone(self, populated_store, monkeypatch):
        original_delete = populated_store.delete_records

        def delete_then_fail(ids):
            original_delete(ids)
            raise StoreError("delete_records failed")

        monkeypatch.setattr(populated_store, "delete_records", delete_then_fail)

        with pytest.raises(StoreError):
            merge_jobs(populated_store, "a1", ["a2"])

        assert populated_store.deleted_ids(["a2"]) == set()
        assert populated_store.get_job("a2") is not None

    def test_merge_records_metrics(self, populated_store, quiet_logger):
        before = quiet_logger.get_metrics()
        merge_jobs(populated_store, "a1", ["a2"])
        after = quiet_logger.get_metrics()

        assert after["merges"] == before["merges"] + 1
        assert after["jobs_deleted"] == before["jobs_deleted"] + 1


class TestMergeErrors:
    """Test merge failure modes."""

    def test_missing_keep_id_raises_not_found(self, populated_store):
        with pytest.raises(NotFoundError) as exc_info:
            merge_jobs(populated_store, "ghost", ["a2"])

        assert exc_info.value.record_id == "ghost"
        # Nothing was deleted
        assert populated_store.get_job("a2") is not None
        assert populated_store.count_jobs() == 3

    @pytest.mark.parametrize("keep_id, delete_ids", [
        ("", ["a2"]),
        (None, ["a2"]),
        ("a1", []),
        ("a1", None),
        ("a1", ["a1", "a2"]),
        ("a1", [""]),
    ])
    def test_invalid_request_raises_validation(self, populated_store, keep_id, delete_ids):
        with pytest.raises(ValidationError):
            merge_jobs(populated_store, keep_id, delete_ids)
        assert populated_store.count_jobs() == 3

    def test_failed_delete_rolls_back_tag_update(self, populated_store, monkeypatch):
        def broken_delete(ids):
            raise StoreError("delete_records failed: database is locked")

        monkeypatch.setattr(populated_store, "delete_records", broken_delete)

        with pytest.raises(StoreError):
            merge_jobs(populated_store, "a1", ["a2"])

        assert populated_store.get_job("a1").tags == ["solidity", "defi"]
        assert populated_store.get_job("a2") is not None

    def test_store_error_is_counted(self, populated_store, monkeypatch, quiet_logger):
        def broken_update(job_id, tags):
            raise StoreError("update_tags failed")

        monkeypatch.setattr(populated_store, "update_tags", broken_update)
        before = quiet_logger.get_metrics()["errors_by_type"].get("StoreError", 0)

        with pytest.raises(StoreError):
            merge_jobs(populated_store, "a1", ["a2"])

        assert quiet_logger.get_metrics()["errors_by_type"]["StoreError"] == before + 1


class TestMergeResult:
    """Test MergeResult defaults."""

    def test_defaults(self):
        result = MergeResult(kept_id="k", deleted_count=0)
        assert result.deleted_ids == []
        assert result.tags == []
