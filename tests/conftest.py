import os
import sys
import tempfile
from pathlib import Path

import pytest

# Ensure project root is importable in local and CI runs.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Force test config before importing app modules.
TEST_DB_PATH = Path(tempfile.gettempdir()) / "tradeguard_test.db"
if TEST_DB_PATH.exists():
    TEST_DB_PATH.unlink()

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["EVENTS_LIMIT"] = "50"
os.environ["TELEGRAM_BOT_TOKEN"] = ""

# 2024-05-01T00:00:00Z
MIDNIGHT_UTC = 1714521600
NOON_UTC = MIDNIGHT_UTC + 12 * 3600
DAY = 86400


class FakeClock:
    def __init__(self, now: int = NOON_UTC):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int):
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()
