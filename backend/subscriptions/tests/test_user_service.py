from unittest.mock import Mock, patch

import pytest
import requests

from subscriptions.config import RelayConfig
from subscriptions.services.user_service import UserServiceClient, UserServiceError


def _response(status_code=200, payload=None):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    return UserServiceClient("http://users.test/api/", timeout=3, session=session)


def test_from_config_uses_base_url_and_timeout():
    client = UserServiceClient.from_config(
        RelayConfig(user_service_base_url="http://bdd:3004/api", user_service_timeout=7)
    )

    assert client.base_url == "http://bdd:3004/api"
    assert client.timeout == 7


def test_set_premium_puts_flag_to_user_resource(client, session):
    session.request.return_value = _response(200)

    assert client.set_premium("user_1", True) is True

    session.request.assert_called_once_with(
        "PUT",
        "http://users.test/api/users/user_1",
        json={"isPremium": True},
        headers={"Content-Type": "application/json"},
        timeout=3,
    )


def test_set_premium_reports_non_2xx_without_raising(client, session):
    session.request.return_value = _response(503)

    assert client.set_premium("user_1", False) is False
    assert session.request.call_count == 1


def test_network_failure_is_wrapped(client, session):
    session.request.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(UserServiceError):
        client.set_premium("user_1", True)

    assert session.request.call_count == 1


def test_timeout_is_wrapped(client, session):
    session.request.side_effect = requests.exceptions.Timeout()

    with pytest.raises(UserServiceError, match="timed out"):
        client.get_user("user_1")


def test_get_user_sends_bearer_token(client, session):
    session.request.return_value = _response(200, {"user": {"id": "user_1"}})

    data = client.get_user("user_1", token="jwt-token")

    assert data == {"user": {"id": "user_1"}}
    _, kwargs = session.request.call_args
    assert kwargs["headers"]["Authorization"] == "Bearer jwt-token"


def test_grant_premium_tops_up_usage_counter(client, session):
    session.request.side_effect = [
        _response(200, {"user": {"id": "user_1", "aiUsageCount": 3}}),
        _response(200, {"user": {"id": "user_1", "isPremium": True, "aiUsageCount": 23}}),
    ]

    result = client.grant_premium("user_1", token="jwt-token")

    assert result["user"]["aiUsageCount"] == 23
    put_call = session.request.call_args_list[1]
    assert put_call.args == ("PUT", "http://users.test/api/users/user_1")
    assert put_call.kwargs["json"] == {"isPremium": True, "aiUsageCount": 23}


def test_grant_premium_treats_missing_counter_as_zero(client, session):
    session.request.side_effect = [_response(200, {"user": {}}), _response(200, {})]

    client.grant_premium("user_1", usage_bonus=5)

    assert session.request.call_args_list[1].kwargs["json"] == {"isPremium": True, "aiUsageCount": 5}


def test_revoke_premium_raises_on_rejection(client, session):
    session.request.return_value = _response(404)

    with pytest.raises(UserServiceError, match="HTTP 404"):
        client.revoke_premium("user_1", token="jwt-token")

    assert session.request.call_args.kwargs["json"] == {"isPremium": False}


def test_context_exit_closes_own_session():
    with patch.object(requests.Session, "close") as close:
        with UserServiceClient("http://users.test/api") as client:
            assert isinstance(client.session, requests.Session)

    close.assert_called_once_with()


def test_close_leaves_injected_session_open(client, session):
    client.close()

    session.close.assert_not_called()
