import json

import httpx
import pytest

from checkin.backend.checkin import CheckinClient
from checkin.backend.http_client import TicketingHttpClient
from checkin.errors import CheckinRejected


@pytest.fixture
async def http_client(settings, ticketing):
    client = TicketingHttpClient(settings, transport=ticketing.transport)
    yield client
    await client.aclose()


@pytest.fixture
def checkin_client(http_client, settings):
    return CheckinClient(http_client, settings)


@pytest.mark.anyio
async def test_success_returns_fixed_message(checkin_client, ticketing, settings):
    ticketing.route("PUT", "/tickets/AB-123", 200)

    result = await checkin_client.submit("AB-123")

    assert result.success is True
    assert result.message == settings.success_message
    (request,) = ticketing.calls("PUT", "/tickets/")
    assert json.loads(request.content) == {"check": True}
    assert request.headers["Authorization"] == "Bearer console-token"


@pytest.mark.anyio
async def test_conflict_uses_server_message_verbatim(checkin_client, ticketing):
    ticketing.route("PUT", "/tickets/AB-123", 409, {"message": "Ticket already checked in"})

    result = await checkin_client.submit("AB-123")

    assert result.success is False
    assert result.message == "Ticket already checked in"
    assert len(ticketing.calls("PUT")) == 1


@pytest.mark.anyio
async def test_error_without_message_uses_generic_text(checkin_client, ticketing, settings):
    ticketing.route("PUT", "/tickets/X1", 500, content=b"<html>oops</html>")

    result = await checkin_client.submit("X1")

    assert result.success is False
    assert result.message == settings.failure_message


@pytest.mark.anyio
async def test_transport_failure_is_not_retried(checkin_client, ticketing, settings):
    ticketing.fail("PUT", "/tickets/X1", httpx.ConnectTimeout("timed out"))

    result = await checkin_client.submit("X1")

    assert result.success is False
    assert result.message == settings.failure_message
    assert len(ticketing.calls("PUT")) == 1


@pytest.mark.anyio
async def test_check_in_raises_rejection_with_status(checkin_client, ticketing):
    ticketing.route("PUT", "/tickets/X1", 404, {"message": "Ticket not found"})

    with pytest.raises(CheckinRejected) as excinfo:
        await checkin_client.check_in("X1")

    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "Ticket not found"


@pytest.mark.anyio
async def test_event_endpoints(http_client, ticketing):
    ticketing.route("GET", "/events", 200, [{"id": "e1", "title": "Launch"}])
    ticketing.route("GET", "/events/e1", 200, {"id": "e1", "title": "Launch"})
    ticketing.route("POST", "/events", 201, {"id": "e2", "title": "New"})
    ticketing.route("PUT", "/events/e2", 200, {"id": "e2", "title": "Renamed"})
    ticketing.route("DELETE", "/events/e2", 204)
    ticketing.route("POST", "/files", 201, {"url": "https://cdn.test/banner.png"})

    assert await http_client.list_events() == [{"id": "e1", "title": "Launch"}]
    assert (await http_client.get_event("e1"))["title"] == "Launch"
    assert (await http_client.create_event({"title": "New"}))["id"] == "e2"
    assert (await http_client.update_event("e2", {"title": "Renamed"}))["title"] == "Renamed"
    await http_client.delete_event("e2")
    uploaded = await http_client.upload_file("banner.png", b"\x89PNG", "image/png")

    assert uploaded["url"] == "https://cdn.test/banner.png"
    (file_request,) = ticketing.calls("POST", "/files")
    assert b"banner.png" in file_request.content
    assert file_request.headers["content-type"].startswith("multipart/form-data")
