import pytest
import requests

from telegram_api import TelegramApiClient, TelegramApiError

TOKEN = "123456:SECRET-TOKEN"


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error for url: /bot{TOKEN}/x")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def test_send_message_posts_payload():
    session = FakeSession(FakeResponse({"ok": True, "result": {"message_id": 3}}))
    client = TelegramApiClient(TOKEN, session=session)

    result = client.send_message(42, "hallo")

    assert result == {"message_id": 3}
    url, kwargs = session.requests[0]
    assert url == f"https://api.telegram.org/bot{TOKEN}/sendMessage"
    assert kwargs["json"] == {"chat_id": 42, "text": "hallo"}
    assert kwargs["timeout"] == 10


def test_get_updates_passes_offset_and_long_poll_timeout():
    updates = [{"update_id": 5, "message": {}}, "garbage"]
    session = FakeSession(FakeResponse({"ok": True, "result": updates}))
    client = TelegramApiClient(TOKEN, session=session)

    result = client.get_updates(5, timeout=10)

    assert result == [{"update_id": 5, "message": {}}]
    _, kwargs = session.requests[0]
    assert kwargs["json"]["offset"] == 5
    assert kwargs["json"]["timeout"] == 10
    assert kwargs["timeout"] > 10


def test_api_error_description_is_reported():
    session = FakeSession(FakeResponse({"ok": False, "description": "Unauthorized"}))
    client = TelegramApiClient(TOKEN, session=session)

    with pytest.raises(TelegramApiError, match="Unauthorized"):
        client.get_me()


def test_transport_error_masks_token():
    session = FakeSession(FakeResponse({}, status_code=404))
    client = TelegramApiClient(TOKEN, session=session)

    with pytest.raises(TelegramApiError) as excinfo:
        client.get_me()

    assert TOKEN not in str(excinfo.value)


def test_connection_error_is_wrapped():
    session = FakeSession(requests.ConnectionError("unreachable"))
    client = TelegramApiClient(TOKEN, session=session)

    with pytest.raises(TelegramApiError):
        client.send_message(1, "x")


def test_invalid_json_is_wrapped():
    session = FakeSession(FakeResponse(ValueError("bad json")))
    client = TelegramApiClient(TOKEN, session=session)

    with pytest.raises(TelegramApiError):
        client.get_me()


def test_set_webhook_requires_url():
    client = TelegramApiClient(TOKEN, session=FakeSession())

    with pytest.raises(ValueError):
        client.set_webhook("")


def test_set_webhook_payload():
    session = FakeSession(FakeResponse({"ok": True, "result": True}))
    client = TelegramApiClient(TOKEN, session=session)

    assert client.set_webhook("https://bot.example/webhook", secret_token="s3cret") is True
    _, kwargs = session.requests[0]
    assert kwargs["json"]["url"] == "https://bot.example/webhook"
    assert kwargs["json"]["secret_token"] == "s3cret"


def test_empty_token_is_rejected():
    with pytest.raises(ValueError):
        TelegramApiClient("")
