import pytest

from app.models.packing import Activity, PackingList, TripDetails, calculate_duration


@pytest.mark.parametrize("start, end, expected", [
    ("2025-07-01", "2025-07-05", 5),
    ("2025-07-01", "2025-07-01", 1),
    ("2025-02-27", "2025-03-02", 4),
    ("2024-12-30", "2025-01-02", 4),
    ("2025-07-05", "2025-07-01", 0),
    ("", "2025-07-01", 0),
    ("2025-07-01", "not a date", 0),
    (None, None, 0),
])
def test_calculate_duration(start, end, expected):
    assert calculate_duration(start, end) == expected


def test_trip_details_duration_follows_dates():
    details = TripDetails(destination="Dubrovnik", startDate="2025-07-01", endDate="2025-07-05")
    assert details.duration == 5
    assert details.model_dump()["duration"] == 5

    inverted = details.model_copy(update={"startDate": "2025-07-05", "endDate": "2025-07-01"})
    assert inverted.duration == 0


def test_activity_defaults_to_blank_day_activity():
    activity = Activity()
    assert activity.description == ""
    assert activity.time == "day"


def test_packing_list_groups_default_to_empty():
    packing_list = PackingList.model_validate({"footwear": ["Sneakers"]})
    assert packing_list.outfitSuggestions == []
    assert packing_list.baseClothing == []
    assert packing_list.footwear == ["Sneakers"]
    assert packing_list.documentsMoney == []
