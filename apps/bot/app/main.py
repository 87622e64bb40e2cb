import logging
import time

import requests

import apps.api.app.models.user
import apps.api.app.models.guard_settings
import apps.api.app.models.guard_state
import apps.api.app.models.guard_event

from apps.api.app.core.config import settings
from apps.api.app.core.logging import configure_logging
from apps.api.app.db.session import Base, SessionLocal, engine
from apps.api.app.services.guard_engine import GuardEngine
from apps.api.app.services.guard_store import GuardStore
from apps.bot.app.commands import handle_command
from apps.bot.app.telegram_client import TelegramClient

logger = logging.getLogger("bot")

RETRY_DELAY_SECONDS = 3


def handle_update(client: TelegramClient, update: dict):
    message = update.get("message") or {}
    chat_id = (message.get("chat") or {}).get("id")
    user_id = (message.get("from") or {}).get("id")
    if chat_id is None or user_id is None:
        return

    db = SessionLocal()
    try:
        reply = handle_command(GuardEngine(GuardStore(db)), user_id, message.get("text") or "")
    except Exception:
        # one bad update must not stop the polling loop
        logger.exception("Command failed for user %s", user_id)
        reply = "Something went wrong, try again later."
    finally:
        db.close()

    client.send_message(chat_id, reply)


def run():
    configure_logging(settings.LOG_LEVEL)
    if not settings.TELEGRAM_BOT_TOKEN:
        logger.error("TELEGRAM_BOT_TOKEN is not set")
        raise SystemExit(1)

    Base.metadata.create_all(bind=engine)
    client = TelegramClient(settings.TELEGRAM_BOT_TOKEN, settings.TELEGRAM_API_BASE_URL)
    logger.info("Telegram bot started")

    offset = None
    while True:
        try:
            updates = client.get_updates(offset, settings.TELEGRAM_POLL_TIMEOUT)
        except requests.RequestException as exc:
            logger.warning("getUpdates failed: %s", exc)
            time.sleep(RETRY_DELAY_SECONDS)
            continue

        for update in updates:
            offset = update["update_id"] + 1
            try:
                handle_update(client, update)
            except Exception:
                logger.exception("Failed to handle update %s", update.get("update_id"))


if __name__ == "__main__":
    run()
