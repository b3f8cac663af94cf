"""
journal_backend/tests/test_collaborators.py

External collaborators (weather, chat model, mail) in isolation, using
httpx.MockTransport and monkeypatched SDK/SMTP objects, plus the routes that
expose them with the conftest fakes.
"""

import asyncio
from types import SimpleNamespace

import anthropic
import httpx
import pytest

from journal_backend.errors import UpstreamFailure
from journal_backend.services.chat import ChatModel
from journal_backend.services.notifier import Notifier
from journal_backend.services.weather import WeatherProvider

WEATHERSTACK_OK = {
    "request": {"type": "City", "query": "Madurai, India"},
    "location": {"name": "Madurai", "country": "India"},
    "current": {
        "observation_time": "07:45 AM",
        "temperature": 31,
        "feelslike": 35,
        "humidity": 62,
        "wind_speed": 11,
        "weather_descriptions": ["Partly cloudy"],
    },
}


def _provider(handler):
    return WeatherProvider(
        api_key="test-key",
        base_url="https://weather.test/current",
        transport=httpx.MockTransport(handler),
    )


# =============================================================================
# WeatherProvider
# =============================================================================

class TestWeatherProvider:

    def test_success_maps_current_block(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=WEATHERSTACK_OK)

        snapshot = asyncio.run(_provider(handler).current("Madurai"))
        assert seen["params"] == {"access_key": "test-key", "query": "Madurai"}
        assert snapshot.city == "Madurai"
        assert snapshot.country == "India"
        assert snapshot.temperature == 31
        assert snapshot.descriptions == ["Partly cloudy"]

    def test_non_200_is_upstream_failure(self):
        provider = _provider(lambda request: httpx.Response(503, text="down"))
        with pytest.raises(UpstreamFailure):
            asyncio.run(provider.current("Madurai"))

    def test_error_payload_is_upstream_failure(self):
        payload = {"success": False, "error": {"code": 101, "info": "Invalid access key"}}
        provider = _provider(lambda request: httpx.Response(200, json=payload))
        with pytest.raises(UpstreamFailure, match="Invalid access key"):
            asyncio.run(provider.current("Madurai"))

    def test_invalid_json_is_upstream_failure(self):
        provider = _provider(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(UpstreamFailure):
            asyncio.run(provider.current("Madurai"))

    def test_transport_error_is_upstream_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamFailure):
            asyncio.run(_provider(handler).current("Madurai"))


# =============================================================================
# ChatModel
# =============================================================================

def _stub_messages(model, create):
    model.client = SimpleNamespace(messages=SimpleNamespace(create=create))


class TestChatModel:

    def test_joins_text_blocks(self):
        model = ChatModel(api_key="test-key", model="test-model", max_tokens=64)
        calls = []

        async def create(**kwargs):
            calls.append(kwargs)
            return SimpleNamespace(content=[
                SimpleNamespace(type="text", text="Hello, "),
                SimpleNamespace(type="tool_use", name="ignored"),
                SimpleNamespace(type="text", text="world"),
            ])

        _stub_messages(model, create)
        assert asyncio.run(model.complete("hi")) == "Hello, world"
        assert calls == [{
            "model": "test-model",
            "max_tokens": 64,
            "messages": [{"role": "user", "content": "hi"}],
        }]

    def test_api_error_is_upstream_failure(self):
        model = ChatModel(api_key="test-key")

        async def create(**kwargs):
            raise anthropic.APIConnectionError(
                request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
            )

        _stub_messages(model, create)
        with pytest.raises(UpstreamFailure):
            asyncio.run(model.complete("hi"))


# =============================================================================
# Notifier
# =============================================================================

class RecordingSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port = host, port
        self.started_tls = False
        self.logged_in = None
        self.messages = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def send_message(self, msg):
        self.messages.append(msg)


class TestNotifier:

    def test_no_host_skips(self):
        assert Notifier(host=None).send("a@example.com", "s", "b") is False

    def test_sends_over_smtp(self, monkeypatch):
        RecordingSMTP.instances = []
        monkeypatch.setattr("journal_backend.services.notifier.smtplib.SMTP", RecordingSMTP)

        notifier = Notifier(host="smtp.test", port=2525, username="u", password="p", sender="me@test")
        assert notifier.send("a@example.com", "Subject", "Body") is True

        smtp = RecordingSMTP.instances[0]
        assert (smtp.host, smtp.port) == ("smtp.test", 2525)
        assert smtp.started_tls is True
        assert smtp.logged_in == ("u", "p")
        msg = smtp.messages[0]
        assert msg["To"] == "a@example.com"
        assert msg["From"] == "me@test"
        assert msg["Subject"] == "Subject"

    def test_connection_failure_returns_false(self, monkeypatch):
        def refuse(*args, **kwargs):
            raise OSError("connection refused")

        monkeypatch.setattr("journal_backend.services.notifier.smtplib.SMTP", refuse)
        assert Notifier(host="smtp.test").send("a@example.com", "s", "b") is False


# =============================================================================
# Routes
# =============================================================================

class TestRoutes:

    def test_weather_greets_caller(self, client, alice):
        r = client.get("/api/weather/Madurai", headers=alice)
        assert r.status_code == 200
        body = r.json()
        assert body["message"] == "Hello alice"
        assert body["data"]["city"] == "Madurai"
        assert body["data"]["descriptions"] == ["Sunny"]

    def test_weather_upstream_failure_is_502(self, client, alice):
        from journal_backend.services.weather import get_weather_provider

        class Failing:
            async def current(self, city):
                raise UpstreamFailure("Weather service answered 503")

        client.app.dependency_overrides[get_weather_provider] = lambda: Failing()
        r = client.get("/api/weather/Madurai", headers=alice)
        assert r.status_code == 502
        assert r.json()["success"] is False

    def test_chat(self, client, alice, chat_model):
        r = client.get("/api/chat", params={"prompt": "hello?"}, headers=alice)
        assert r.status_code == 200
        assert r.json()["data"] == {"prompt": "hello?", "response": "echo: hello?"}
        assert chat_model.prompts == ["hello?"]

    def test_chat_requires_prompt(self, client, alice):
        assert client.get("/api/chat", headers=alice).status_code == 400

    def test_notify_explicit_own_address(self, client, register, login, notifier):
        register("carol", "pw", email="carol@example.com")
        headers = login("carol", "pw")
        notifier.sent.clear()

        r = client.post(
            "/api/notify",
            json={"to": "carol@example.com", "subject": "Hi", "body": "There"},
            headers=headers,
        )
        assert r.status_code == 202
        assert r.json()["data"] == {"to": "carol@example.com"}
        assert notifier.sent == [{"to": "carol@example.com", "subject": "Hi", "body": "There"}]

    def test_notify_foreign_address_needs_admin(self, client, alice, notifier):
        r = client.post(
            "/api/notify",
            json={"to": "victim@example.com", "subject": "Hi", "body": "There"},
            headers=alice,
        )
        assert r.status_code == 403
        assert r.json()["success"] is False
        assert notifier.sent == []

    def test_admin_may_mail_any_address(self, client, admin, notifier):
        r = client.post(
            "/api/notify",
            json={"to": "x@example.com", "subject": "Hi", "body": "There"},
            headers=admin,
        )
        assert r.status_code == 202
        assert notifier.sent == [{"to": "x@example.com", "subject": "Hi", "body": "There"}]

    def test_notify_falls_back_to_profile_email(self, client, register, login, notifier):
        register("carol", "pw", email="carol@example.com")
        headers = login("carol", "pw")
        notifier.sent.clear()

        r = client.post("/api/notify", json={"subject": "Hi", "body": "There"}, headers=headers)
        assert r.status_code == 202
        assert notifier.sent[0]["to"] == "carol@example.com"

    def test_notify_without_any_recipient_is_400(self, client, alice, notifier):
        r = client.post("/api/notify", json={"subject": "Hi", "body": "There"}, headers=alice)
        assert r.status_code == 400
        assert notifier.sent == []

    def test_collaborator_routes_require_auth(self, client):
        assert client.get("/api/weather/Madurai").status_code == 401
        assert client.get("/api/chat", params={"prompt": "x"}).status_code == 401
