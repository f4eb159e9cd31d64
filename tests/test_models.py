"""
Tests for the visit record.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from visit_analytics.models import PATH_MAX, VisitRecord, as_utc_naive


class TestVisitRecord:

    @pytest.mark.parametrize("path", [None, "", "   "])
    def test_path_required(self, path):
        with pytest.raises(ValueError):
            VisitRecord.build({"path": path})

    def test_timestamp_defaults_to_now(self):
        before = datetime.now(timezone.utc).replace(tzinfo=None)
        record = VisitRecord(path="/")

        assert record.timestamp.tzinfo is None
        assert before - timedelta(seconds=1) <= record.timestamp <= before + timedelta(seconds=5)

    def test_build_clips_long_values(self):
        record = VisitRecord.build({"path": "/" + "a" * 2000, "language": "x" * 300})

        assert len(record.path) == PATH_MAX
        assert len(record.language) == 100

    def test_valid_user_id_becomes_object_id(self):
        uid = "65f1c0ffee0000000000abcd"
        record = VisitRecord.build({"path": "/", "userId": uid})

        assert record.userId == ObjectId(uid)

    @pytest.mark.parametrize("uid", [None, "", "not-an-id", 42])
    def test_other_user_ids_are_anonymous(self, uid):
        assert VisitRecord.build({"path": "/", "userId": uid}).userId is None

    def test_records_are_immutable(self):
        record = VisitRecord(path="/")
        with pytest.raises(AttributeError):
            record.path = "/other"

    def test_to_document(self):
        ts = datetime(2024, 5, 10, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        record = VisitRecord.build({"path": "/sessions", "sessionId": "s1"}, browser="Chrome", country="Germany")
        record = replace(record, timestamp=ts)
        created = datetime(2024, 5, 10, 12, 0, 1)

        doc = record.to_document(created_at=created)

        assert doc["path"] == "/sessions"
        assert doc["timestamp"] == datetime(2024, 5, 10, 12, 0)
        assert doc["createdAt"] == created
        assert doc["sessionId"] == "s1"
        assert doc["browser"] == "Chrome"
        assert doc["country"] == "Germany"
        assert doc["userId"] is None
        assert "_id" not in doc


def test_as_utc_naive_leaves_naive_values_alone():
    naive = datetime(2024, 1, 1, 8, 30)
    assert as_utc_naive(naive) is naive
