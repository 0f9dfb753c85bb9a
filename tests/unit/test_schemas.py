"""
Unit tests for request schemas
"""
import pytest
from pydantic import ValidationError

from commute_match.schemas import (
    CommuteWindowSchema,
    MatchingPreferencesCreateSchema,
    MatchingPreferencesUpdateSchema,
)
from commute_match.services.commute_time import calculate_commute_segments
from commute_match.services.similarity import time_overlap_ratio


@pytest.mark.unit
class TestCommuteWindowSchema:

    def test_single_digit_hours_are_padded(self):
        window = CommuteWindowSchema(start="7:05", end="8:30")
        assert (window.start, window.end) == ("07:05", "08:30")

    def test_overnight_window_accepted(self):
        window = CommuteWindowSchema(start="22:00", end="02:00")
        assert (window.start, window.end) == ("22:00", "02:00")

    @pytest.mark.parametrize("start,end", [("08:00", "08:00"), ("8:00", "08:00")])
    def test_zero_length_window_rejected(self, start, end):
        with pytest.raises(ValidationError):
            CommuteWindowSchema(start=start, end=end)

    @pytest.mark.parametrize("start,end", [("08:00", "09:00"), ("22:00", "02:00"), ("23:30", "00:00")])
    def test_accepted_windows_fully_overlap_themselves(self, start, end):
        window = CommuteWindowSchema(start=start, end=end)
        segments = calculate_commute_segments(window.start, window.end)
        assert time_overlap_ratio(segments, segments) == 1.0

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "8"])
    def test_malformed_times_rejected(self, value):
        with pytest.raises(ValidationError):
            CommuteWindowSchema(start=value, end="09:00")


@pytest.mark.unit
class TestPreferencesSchemas:

    def test_create_maps_window_to_columns(self):
        fields = MatchingPreferencesCreateSchema(
            commute_window={"start": "08:00", "end": "09:00"},
            commute_days=["monday", "Monday", "friday"],
        ).to_fields()

        assert fields["commute_start"] == "08:00"
        assert fields["commute_end"] == "09:00"
        assert fields["commute_days"] == ["MONDAY", "FRIDAY"]
        assert fields["languages"] == []
        assert fields["profession"] == ""

    def test_update_only_includes_sent_fields(self):
        fields = MatchingPreferencesUpdateSchema(languages=["English"]).to_fields()
        assert fields == {"languages": ["English"]}

    def test_update_clearing_window(self):
        fields = MatchingPreferencesUpdateSchema(commute_window=None).to_fields()
        assert fields == {"commute_start": None, "commute_end": None}

    def test_update_requires_a_field(self):
        with pytest.raises(ValidationError):
            MatchingPreferencesUpdateSchema()
