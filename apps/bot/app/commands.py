import datetime as dt

from apps.api.app.services.errors import TradingOffError
from apps.api.app.services.guard_engine import GuardEngine, is_trading_off

EVENTS_IN_CHAT = 10

START_TEXT = (
    "🛡 Trade Guard activated.\n\n"
    "I will watch your limits and stop your trading when they are broken."
)
PING_TEXT = "✅ Trade Guard online"
UNKNOWN_TEXT = "Command not recognized. Send /start"
HELP_TEXT = "/status - limits and counters\n/win, /loss - record a trade\n/events - recent events"


def _local_time(ts: int, tz_offset_min: int) -> str:
    tz = dt.timezone(dt.timedelta(minutes=tz_offset_min))
    return dt.datetime.fromtimestamp(ts, tz).strftime("%Y-%m-%d %H:%M")


def format_status(settings, state, now: int) -> str:
    if is_trading_off(state, now):
        until = _local_time(state.trading_off_until_ts, settings.timezone_offset_min)
        head = f"⛔ TRADING OFF\n{state.off_reason} • until {until}"
    else:
        head = "🟢 TRADING ON\nTrading is allowed by your rules."
    return (
        f"{head}\n\n"
        f"Trades today: {state.trades_today}/{settings.max_trades_per_day}\n"
        f"Losses today: {state.losses_today}/{settings.max_losses_per_day}\n"
        f"Loss streak: {state.loss_streak}/{settings.max_loss_streak}"
    )


def _command_name(text: str) -> str:
    words = (text or "").split()
    if not words:
        return ""
    # "/status@SomeBot" in group chats
    return words[0].split("@", 1)[0].lower()


def handle_command(engine: GuardEngine, user_id, text: str) -> str:
    command = _command_name(text)

    if command == "/ping":
        return PING_TEXT

    if command == "/start":
        snap = engine.bootstrap(user_id)
        return f"{START_TEXT}\n\n{format_status(snap.settings, snap.state, engine.clock())}\n\n{HELP_TEXT}"

    if command == "/status":
        snap = engine.bootstrap(user_id)
        return format_status(snap.settings, snap.state, engine.clock())

    if command in ("/win", "/loss"):
        outcome = command[1:].upper()
        try:
            engine.record_outcome(user_id, outcome)
        except TradingOffError as exc:
            settings = engine.get_settings(user_id)
            until = _local_time(exc.state.trading_off_until_ts, settings.timezone_offset_min)
            return f"⛔ Not recorded, trading is off: {exc.state.off_reason} • until {until}"
        snap = engine.snapshot(user_id)
        return f"Recorded {outcome}.\n\n{format_status(snap.settings, snap.state, engine.clock())}"

    if command == "/events":
        events = engine.list_events(user_id, EVENTS_IN_CHAT)
        if not events:
            return "No events yet."
        tz_offset = engine.get_settings(user_id).timezone_offset_min
        return "\n".join(
            f"{_local_time(e.ts, tz_offset)} {e.type}: {e.detail}" for e in events
        )

    return UNKNOWN_TEXT
