import os
from typing import Self
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from dotenv import load_dotenv
from loguru import logger


class Config:
    """Application configuration manager.

    Loads settings from the environment (and a `.env` file, if present) and
    acts as the secret provider for the portal credentials. Secrets are not
    cached: `get()` reads them at call time so a missing secret is detected
    right before the step that needs it.
    """

    _instance: Self | None = None

    def load(self):
        """Load environment variables

        Variables already set in the environment take priority over the .env file
        See .env-example for the required variables
        """
        load_dotenv()

        self.domain = os.getenv("LICENSE_PORTAL_DOMAIN", "student.chula.ac.th")
        self.flows_file = os.getenv("FLOWS_FILE", "flows.yaml")

        timezone = os.getenv("TIMEZONE", "Asia/Bangkok")
        try:
            self.tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.error(f"Unknown TIMEZONE: {timezone}. Defaulting to Asia/Bangkok.")
            self.tz = ZoneInfo("Asia/Bangkok")

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)

            cls._instance.load()
        return cls._instance

    def get(self, name: str) -> str | None:
        """Look up a secret by name. Empty values count as missing."""
        value = os.getenv(name)
        if not value:
            return None
        return value
