import pytest

from checkin.auth import LOGIN_FAILED_MESSAGE, AuthSession
from checkin.backend.http_client import TicketingHttpClient
from checkin.backend.security import CurrentUser, decode_token_claims, user_from_token
from checkin.errors import AuthenticationError

from .fakes import make_token


@pytest.fixture
async def http_client(settings, ticketing):
    client = TicketingHttpClient(settings, transport=ticketing.transport)
    yield client
    await client.aclose()


def test_claims_are_read_from_payload_segment():
    token = make_token({"sub": "u-1", "email": "staff@example.com", "name": "Staff"})
    assert decode_token_claims(token)["email"] == "staff@example.com"
    assert user_from_token(token) == CurrentUser(id="u-1", email="staff@example.com", name="Staff")


def test_id_claim_is_used_without_sub():
    assert user_from_token(make_token({"id": 7})).id == "7"


@pytest.mark.parametrize("token", ["", "garbage", "a.%%%.c", "a.bm90LWpzb24.c"])
def test_malformed_tokens_have_no_claims(token):
    assert decode_token_claims(token) == {}
    assert user_from_token(token) is None


@pytest.mark.anyio
async def test_login_attaches_token_to_later_requests(settings, http_client, ticketing):
    token = make_token({"sub": "u-1", "email": "staff@example.com"})
    ticketing.route("POST", "/sessions", 200, {"token": token})
    ticketing.route("PUT", "/tickets/T1", 200)
    auth = AuthSession(settings, http_client)

    user = await auth.login("staff@example.com", "secret")
    await http_client.check_ticket("T1")

    assert user.email == "staff@example.com"
    assert auth.user == user
    (login_request,) = ticketing.calls("POST", "/sessions")
    assert login_request.headers["Authorization"] == "Bearer console-token"
    (checkin_request,) = ticketing.calls("PUT")
    assert checkin_request.headers["Authorization"] == f"Bearer {token}"


@pytest.mark.anyio
async def test_logout_falls_back_to_configured_token(settings, http_client, ticketing):
    ticketing.route("POST", "/sessions", 200, {"token": make_token({"sub": "u-1"})})
    auth = AuthSession(settings, http_client)
    await auth.login("a@example.com", "pw")

    auth.logout()

    assert auth.user is None
    assert auth.token == "console-token"


@pytest.mark.anyio
async def test_rejected_login_surfaces_server_message(settings, http_client, ticketing):
    ticketing.route("POST", "/sessions", 401, {"message": "Invalid credentials"})
    auth = AuthSession(settings, http_client)

    with pytest.raises(AuthenticationError) as excinfo:
        await auth.login("a@example.com", "wrong")

    assert excinfo.value.message == "Invalid credentials"
    assert auth.user is None


@pytest.mark.anyio
async def test_login_without_token_fails(settings, http_client, ticketing):
    ticketing.route("POST", "/sessions", 200, {"user": "nobody"})
    auth = AuthSession(settings, http_client)

    with pytest.raises(AuthenticationError) as excinfo:
        await auth.login("a@example.com", "pw")

    assert excinfo.value.message == LOGIN_FAILED_MESSAGE
