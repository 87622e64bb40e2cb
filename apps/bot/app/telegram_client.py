import logging
from typing import Optional

import requests

logger = logging.getLogger("telegram")


class TelegramClient:
    def __init__(self, token: str, base_url: str = "https://api.telegram.org", session: Optional[requests.Session] = None):
        self.base_url = f"{base_url.rstrip('/')}/bot{token}"
        self.session = session or requests.Session()

    def get_updates(self, offset: Optional[int] = None, timeout: int = 30) -> list[dict]:
        params = {"timeout": timeout, "allowed_updates": '["message"]'}
        if offset is not None:
            params["offset"] = offset
        resp = self.session.get(f"{self.base_url}/getUpdates", params=params, timeout=timeout + 10)
        resp.raise_for_status()
        data = resp.json()
        if not data.get("ok"):
            raise requests.HTTPError(f"getUpdates failed: {data.get('description')}")
        return data.get("result", [])

    def send_message(self, chat_id, text: str) -> bool:
        payload = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        try:
            resp = self.session.post(f"{self.base_url}/sendMessage", json=payload, timeout=8)
        except requests.RequestException as exc:
            logger.warning("Telegram send failed: %s", exc)
            return False
        if resp.status_code != 200:
            logger.warning("Telegram HTTP %s: %s", resp.status_code, resp.text[:200])
            return False
        return True
