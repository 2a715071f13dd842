from unittest.mock import MagicMock

import pytest
import requests

from api.services.google_auth import GoogleAuthClient, MOCK_SUBJECT_ID, TokenValidator

from conftest import CLIENT_ID, FakeAuthClient

NOW = 1_700_000_000
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
DRIVE_FILE_SCOPE = "https://www.googleapis.com/auth/drive.file"


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload if payload is not None else {}
    return response


def _token_info(**overrides):
    data = {
        "aud": CLIENT_ID,
        "azp": CLIENT_ID,
        "sub": "110169484474386276334",
        "scope": f"openid {SHEETS_SCOPE}",
        "exp": str(NOW + 3600),
        "email": "user@example.com",
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


def _client(response=None, client_id=CLIENT_ID, client_secret="secret", side_effect=None):
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    client = GoogleAuthClient(
        client_id=client_id,
        client_secret=client_secret,
        session=session,
        clock=lambda: NOW
    )
    return client, session


def test_valid_token_returns_token_info():
    client, session = _client(_response(payload=_token_info()))

    info = client.validate_access_token("ya29.token")

    assert info is not None
    assert info.subject_id == "110169484474386276334"
    assert info.audience == CLIENT_ID
    assert info.expiry == NOW + 3600
    assert SHEETS_SCOPE in info.scopes
    assert info.email == "user@example.com"


def test_token_is_sent_in_post_body_not_url():
    client, session = _client(_response(payload=_token_info()))

    client.validate_access_token("ya29.token")

    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args[0] == GoogleAuthClient.TOKENINFO_URL
    assert "ya29.token" not in args[0]
    assert kwargs["data"] == {"access_token": "ya29.token"}
    assert "params" not in kwargs


@pytest.mark.parametrize("exp", [str(NOW - 1), str(NOW), None, "not-a-number"])
def test_expired_or_missing_expiry_is_rejected(exp):
    client, _ = _client(_response(payload=_token_info(exp=exp)))
    assert client.validate_access_token("ya29.token") is None


def test_audience_mismatch_is_rejected_even_with_valid_scope_and_expiry():
    client, _ = _client(_response(payload=_token_info(aud="someone-else.apps.googleusercontent.com")))
    assert client.validate_access_token("ya29.token") is None


def test_audience_not_checked_without_client_id():
    client, _ = _client(_response(payload=_token_info(aud="other", azp="other")), client_id=None)
    assert client.validate_access_token("ya29.token") is not None


@pytest.mark.parametrize("scope", ["openid email", "https://www.googleapis.com/auth/drive.readonly", "", None])
def test_token_without_accepted_scope_is_rejected(scope):
    client, _ = _client(_response(payload=_token_info(scope=scope)))
    assert client.validate_access_token("ya29.token") is None


def test_drive_file_scope_is_accepted():
    client, _ = _client(_response(payload=_token_info(scope=DRIVE_FILE_SCOPE)))
    assert client.validate_access_token("ya29.token") is not None


def test_authorized_party_mismatch_is_rejected():
    client, _ = _client(_response(payload=_token_info(azp="other-app.apps.googleusercontent.com")))
    assert client.validate_access_token("ya29.token") is None


def test_absent_authorized_party_is_accepted():
    client, _ = _client(_response(payload=_token_info(azp=None)))
    assert client.validate_access_token("ya29.token") is not None


def test_missing_subject_is_rejected():
    client, _ = _client(_response(payload=_token_info(sub=None)))
    assert client.validate_access_token("ya29.token") is None


def test_provider_error_status_is_rejected():
    client, _ = _client(_response(status_code=400, payload={"error": "invalid_token"}))
    assert client.validate_access_token("ya29.token") is None


def test_transport_failure_is_rejected():
    client, _ = _client(side_effect=requests.ConnectionError("unreachable"))
    assert client.validate_access_token("ya29.token") is None


def test_non_json_body_is_rejected():
    response = _response()
    response.json.side_effect = ValueError("no json")
    client, _ = _client(response)
    assert client.validate_access_token("ya29.token") is None


def test_refresh_posts_client_credentials_as_form():
    client, session = _client(_response(payload={"access_token": "ya29.new", "expires_in": 3599}))

    assert client.refresh_access_token("1//refresh") == "ya29.new"

    args, kwargs = session.post.call_args
    assert args[0] == GoogleAuthClient.TOKEN_URL
    assert kwargs["data"] == {
        "client_id": CLIENT_ID,
        "client_secret": "secret",
        "refresh_token": "1//refresh",
        "grant_type": "refresh_token",
    }


def test_refresh_failure_returns_none():
    client, _ = _client(_response(status_code=400, payload={"error": "invalid_grant"}))
    assert client.refresh_access_token("1//refresh") is None


def test_refresh_without_access_token_in_response_returns_none():
    client, _ = _client(_response(payload={"token_type": "Bearer"}))
    assert client.refresh_access_token("1//refresh") is None


def test_refresh_without_client_secret_makes_no_call():
    client, session = _client(_response(payload={"access_token": "ya29.new"}), client_secret=None)
    assert client.refresh_access_token("1//refresh") is None
    session.post.assert_not_called()


def test_mock_mode_skips_provider():
    auth_client = FakeAuthClient(valid_tokens={})
    validator = TokenValidator(auth_client, mock_mode=True)

    info = validator.validate("anything")

    assert info.subject_id == MOCK_SUBJECT_ID
    assert auth_client.validate_calls == []


def test_validator_delegates_outside_mock_mode():
    auth_client = FakeAuthClient(valid_tokens={"ya29.ok": "user-9"}, refresh_results={"1//r": "ya29.ok"})
    validator = TokenValidator(auth_client)

    assert validator.validate("ya29.ok").subject_id == "user-9"
    assert validator.validate("ya29.bad") is None
    assert validator.refresh("1//r") == "ya29.ok"
    assert auth_client.validate_calls == ["ya29.ok", "ya29.bad"]
