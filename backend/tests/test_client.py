"""
Tests for the HTTP client with a mocked requests session
"""

from unittest.mock import MagicMock

import pytest

from tripplanner.client.api import ApiError, TripPlannerClient


def _response(status_code, body):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = "Error"
    response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock()


def test_save_trip_returns_trip_id(session):
    session.request.return_value = _response(201, {"message": "ok", "trip_id": 7})
    client = TripPlannerClient("http://api.local/", session=session)

    assert client.save_trip({"trip": {}}) == 7
    session.request.assert_called_once_with(
        "POST", "http://api.local/api/trips/test-save", json={"trip": {}}, timeout=client.timeout
    )


def test_patch_helpers_wrap_fields(session):
    session.request.return_value = _response(200, {"message": "ok"})
    client = TripPlannerClient(session=session)

    client.update_hotel(3, {"city": "Nice"})
    method, url = session.request.call_args.args
    assert (method, url) == ("PATCH", "http://localhost:5000/api/trips/hotels/3")
    assert session.request.call_args.kwargs["json"] == {"hotel": {"city": "Nice"}}


def test_error_response_raises_api_error(session):
    session.request.return_value = _response(403, {"detail": "Forbidden."})
    client = TripPlannerClient(session=session)

    with pytest.raises(ApiError) as exc_info:
        client.toggle_activity(9)
    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == "Forbidden."


def test_error_without_json_body(session):
    response = _response(500, None)
    response.json.side_effect = ValueError("no json")
    session.request.return_value = response
    client = TripPlannerClient(session=session)

    with pytest.raises(ApiError) as exc_info:
        client.me()
    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "Error"
