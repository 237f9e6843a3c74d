from unittest import mock

import pytest
import requests

from signupdesk.config import SignupDeskConfig
from signupdesk.errors import ActivitiesApiError
from signupdesk.services.activities_api import ActivitiesApi, ApiResponse


def make_response(status: int, content: bytes = b"", payload=None):
    response = mock.Mock(spec=requests.Response)
    response.status_code = status
    response.content = content
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def http():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def activities_api(http):
    return ActivitiesApi(SignupDeskConfig(api_url="https://api.test/", timeout=4.0), session=http)


def test_login_sends_credentials_as_query(http, activities_api):
    http.request.return_value = make_response(200, b"{}", {"token": "abc", "username": "rick"})

    response = activities_api.login("rick", "validpw")

    http.request.assert_called_once_with(
        "POST",
        "https://api.test/auth/login",
        params={"username": "rick", "password": "validpw"},
        headers={},
        timeout=4.0,
    )
    assert response == ApiResponse(200, {"token": "abc", "username": "rick"})


def test_check_forwards_token_verbatim(http, activities_api):
    http.request.return_value = make_response(200, b"{}", {"authenticated": True})

    activities_api.check("opaque token")

    _, kwargs = http.request.call_args
    assert kwargs["headers"] == {"Authorization": "opaque token"}


def test_activity_names_are_percent_encoded(http, activities_api):
    http.request.return_value = make_response(200, b"{}", {"message": "Removed"})

    activities_api.unregister("Chess Club", "a@b.com", "abc")

    args, kwargs = http.request.call_args
    assert args == ("DELETE", "https://api.test/activities/Chess%20Club/unregister")
    assert kwargs["params"] == {"email": "a@b.com"}


def test_error_status_is_returned_not_raised(http, activities_api):
    http.request.return_value = make_response(400, b"{}", {"detail": "Activity is full"})

    response = activities_api.signup("Chess Club", "a@b.com", "abc")

    assert not response.ok
    assert response.text("detail", "fallback") == "Activity is full"


def test_empty_body_gives_empty_payload(http, activities_api):
    http.request.return_value = make_response(204)

    response = activities_api.logout("abc")

    assert response.ok
    assert response.payload == {}


def test_transport_failure_raises_api_error(http, activities_api):
    http.request.side_effect = requests.ConnectionError("refused")

    with pytest.raises(ActivitiesApiError):
        activities_api.list_activities()


@pytest.mark.parametrize("payload", [ValueError("not json"), ["a", "b"]])
def test_unusable_body_raises_api_error(http, activities_api, payload):
    http.request.return_value = make_response(200, b"x", payload)

    with pytest.raises(ActivitiesApiError):
        activities_api.list_activities()


def test_text_falls_back_on_missing_or_blank_values():
    response = ApiResponse(400, {"detail": ""})
    assert response.text("detail", "An error occurred") == "An error occurred"
    assert response.text("message", "x") == "x"
