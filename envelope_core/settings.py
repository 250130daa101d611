"""
Configuration for the envelope engine.

All values come from environment variables (optionally a local ``.env``),
never from code. The engine itself is pure; these settings only shape how a
host loads data and logs.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

from envelope_core.async_reports import trailing_windows
from envelope_core.domain import Interval
from envelope_core.window import ViewWindow


@dataclass
class Settings:
    default_interval: Interval = field(
        default_factory=lambda: Interval.parse(os.getenv("ENVELOPE_DEFAULT_INTERVAL", "month"))
    )
    seed_path: str = field(default_factory=lambda: os.getenv("ENVELOPE_SEED_PATH", "data/seed.json"))
    log_level: str = field(default_factory=lambda: os.getenv("ENVELOPE_LOG_LEVEL", "WARNING"))
    history_length: int = field(default_factory=lambda: int(os.getenv("ENVELOPE_HISTORY_LENGTH", "6")))

    def default_window(self) -> ViewWindow:
        return ViewWindow(self.default_interval)

    def history_windows(self) -> List[ViewWindow]:
        return trailing_windows(self.default_window(), self.history_length)


def load_settings() -> Settings:
    load_dotenv()
    return Settings()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
