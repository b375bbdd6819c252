from datetime import datetime, timezone

from form_builder_service.logic.schedule import (
    CLOSED,
    DEFAULT_CLOSED_MESSAGE,
    DEFAULT_NOT_OPEN_MESSAGE,
    MANUALLY_CLOSED,
    NOT_YET_OPEN,
    OPEN,
    availability,
    form_status,
    is_accepting,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_open_without_schedule():
    assert form_status({}, NOW) == OPEN
    assert is_accepting({}, NOW) is True


def test_manual_close_wins():
    form = {"isClosed": True, "opensAt": "2024-01-01T00:00:00Z"}
    assert form_status(form, NOW) == MANUALLY_CLOSED


def test_window_boundaries():
    assert form_status({"opensAt": "2024-06-02T00:00:00Z"}, NOW) == NOT_YET_OPEN
    assert form_status({"closesAt": "2024-06-01T12:00:00Z"}, NOW) == CLOSED
    assert form_status({"opensAt": "2024-06-01T12:00:00Z", "closesAt": "2024-06-01T12:00:01Z"}, NOW) == OPEN


def test_availability_messages():
    assert availability({}, NOW)["closedMessage"] is None
    assert availability({"opensAt": "2024-07-01T00:00:00Z"}, NOW)["closedMessage"] == DEFAULT_NOT_OPEN_MESSAGE
    closed = availability({"closesAt": "2024-05-01T00:00:00Z"}, NOW)
    assert closed["acceptingSubmissions"] is False
    assert closed["closedMessage"] == DEFAULT_CLOSED_MESSAGE
    custom = availability({"isClosed": True, "closedMessage": "See you next year"}, NOW)
    assert custom["status"] == MANUALLY_CLOSED
    assert custom["closedMessage"] == "See you next year"
