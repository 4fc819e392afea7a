"""Tests for boundary records: field aliases, normalization, flat documents."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from donor_rewards.errors import InvalidArgumentError
from donor_rewards.schemas import (
    DonationRecord,
    DonationStatus,
    DonorHistory,
    DonorProfile,
    coerce_donations,
    coerce_profile,
    completed_in_time_order,
)


class TestDonationRecord:
    def test_stored_document_spellings(self):
        record = DonationRecord.model_validate(
            {
                "status": "Completed",
                "date": "2026-02-20T02:00:00",
                "urgency": " High ",
                "distance": 4.5,
                "bloodType": "ab+",
                "responseTime": 61.7,
                "isFirstDonation": None,
                "hospitalName": "General",
            }
        )
        assert record.status == DonationStatus.COMPLETED
        assert record.timestamp == datetime(2026, 2, 20, 2, 0)
        assert record.urgency == "high"
        assert record.distance_km == 4.5
        assert record.blood_type == "AB+"
        assert record.response_time_seconds == 61
        assert record.is_first_donation is False

    def test_python_names(self):
        record = DonationRecord(status="pending", timestamp=datetime(2026, 1, 1), distance_km=3)
        assert not record.is_completed
        assert record.distance_km == 3

    def test_timestamp_required(self):
        with pytest.raises(ValidationError):
            DonationRecord.model_validate({"status": "completed"})

    def test_negative_response_time_rejected(self):
        with pytest.raises(ValidationError):
            DonationRecord.model_validate({"status": "completed", "date": "2026-01-01T00:00:00", "responseTime": -1})

    def test_immutable(self):
        record = DonationRecord(status="completed", timestamp=datetime(2026, 1, 1))
        with pytest.raises(ValidationError):
            record.status = DonationStatus.CANCELLED


class TestDonorProfile:
    def test_defaults(self):
        profile = DonorProfile.model_validate({"uid": 42, "displayName": "  "})
        assert profile.donor_id == "42"
        assert profile.display_name == "Anonymous"
        assert profile.blood_type is None

    def test_coerce_profile(self):
        assert coerce_profile({"donorId": "a"}).donor_id == "a"
        with pytest.raises(InvalidArgumentError):
            coerce_profile(None)


class TestDonorHistory:
    def test_flat_document_split(self):
        history = DonorHistory.model_validate(
            {"id": "u1", "bloodType": "O-", "donations": [{"status": "completed", "date": "2026-01-01T00:00:00"}]}
        )
        assert history.profile.donor_id == "u1"
        assert history.profile.blood_type == "O-"
        assert len(history.donations) == 1

    def test_no_donations(self):
        assert DonorHistory.model_validate({"id": "u1"}).donations == []


class TestHelpers:
    def test_coerce_donations_mixes_models_and_dicts(self):
        model = DonationRecord(status="completed", timestamp=datetime(2026, 1, 2))
        records = coerce_donations([model, {"status": "pending", "date": "2026-01-01T00:00:00"}])
        assert records[0] is model
        assert records[1].status == DonationStatus.PENDING

    def test_completed_in_time_order(self):
        records = coerce_donations(
            [
                {"status": "completed", "date": "2026-03-01T00:00:00"},
                {"status": "cancelled", "date": "2026-01-15T00:00:00"},
                {"status": "completed", "date": "2026-01-01T00:00:00+00:00"},
            ]
        )
        ordered = completed_in_time_order(records)
        assert [r.timestamp.month for r in ordered] == [1, 3]
