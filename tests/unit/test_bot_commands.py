import apps.bot.app.main as bot_main
from apps.bot.app.commands import PING_TEXT, UNKNOWN_TEXT, handle_command
from apps.bot.app.telegram_client import TelegramClient

USER = 777


def test_ping_and_unknown(guard):
    assert handle_command(guard, USER, "/ping") == PING_TEXT
    assert handle_command(guard, USER, "hello") == UNKNOWN_TEXT
    assert handle_command(guard, USER, "") == UNKNOWN_TEXT


def test_start_bootstraps_user(guard):
    reply = handle_command(guard, USER, "/start")

    assert "Trade Guard activated" in reply
    assert "TRADING ON" in reply
    assert "Trades today: 0/6" in reply
    assert guard.get_state(USER).day_key == "2024-05-01"


def test_command_with_bot_suffix(guard):
    reply = handle_command(guard, USER, "/status@TradeGuardBot")
    assert "TRADING ON" in reply


def test_losses_stop_trading_in_chat(guard):
    handle_command(guard, USER, "/start")
    handle_command(guard, USER, "/loss")
    reply = handle_command(guard, USER, "/loss")

    assert "Recorded LOSS" in reply
    assert "TRADING OFF" in reply
    # local midnight in UTC+1
    assert "until 2024-05-02 00:00" in reply

    blocked = handle_command(guard, USER, "/win")
    assert blocked.startswith("⛔ Not recorded")
    assert "Max loss streak reached" in blocked
    assert guard.get_state(USER).trades_today == 2


def test_events_listing(guard, clock):
    assert handle_command(guard, USER, "/events") == "No events yet."

    handle_command(guard, USER, "/start")
    clock.advance(60)
    handle_command(guard, USER, "/win")
    lines = handle_command(guard, USER, "/events").splitlines()

    assert lines[0] == "2024-05-01 13:01 RECORD: WIN"
    assert lines[1] == "2024-05-01 13:00 DAY_RESET: Reset to 2024-05-01"


class FakeClient:
    def __init__(self):
        self.sent = []

    def send_message(self, chat_id, text):
        self.sent.append((chat_id, text))
        return True


def test_handle_update_replies_in_chat(session_factory, monkeypatch):
    monkeypatch.setattr(bot_main, "SessionLocal", session_factory)
    client = FakeClient()

    bot_main.handle_update(
        client,
        {"update_id": 1, "message": {"chat": {"id": 55}, "from": {"id": 99}, "text": "/ping"}},
    )
    bot_main.handle_update(client, {"update_id": 2, "edited_message": {}})

    assert client.sent == [(55, PING_TEXT)]


def test_handle_update_survives_unexpected_errors(session_factory, monkeypatch):
    monkeypatch.setattr(bot_main, "SessionLocal", session_factory)

    def broken(engine, user_id, text):
        raise RuntimeError("boom")

    monkeypatch.setattr(bot_main, "handle_command", broken)
    client = FakeClient()

    bot_main.handle_update(
        client,
        {"update_id": 3, "message": {"chat": {"id": 55}, "from": {"id": 99}, "text": "/status"}},
    )

    assert client.sent == [(55, "Something went wrong, try again later.")]


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload

    def raise_for_status(self):
        pass


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append(("GET", url, params))
        return self.response

    def post(self, url, json=None, timeout=None):
        self.calls.append(("POST", url, json))
        return self.response


def test_telegram_client_builds_requests():
    session = FakeSession(FakeResponse(payload={"ok": True, "result": [{"update_id": 7}]}))
    client = TelegramClient("TOKEN", "https://tg.example/", session=session)

    assert client.get_updates(offset=7, timeout=5) == [{"update_id": 7}]
    method, url, params = session.calls[0]
    assert url == "https://tg.example/botTOKEN/getUpdates"
    assert params["offset"] == 7

    assert client.send_message(55, "hi") is True
    assert session.calls[1][2]["chat_id"] == 55


def test_telegram_client_reports_failed_send():
    session = FakeSession(FakeResponse(status_code=400, text="Bad Request"))
    client = TelegramClient("TOKEN", session=session)

    assert client.send_message(55, "hi") is False
