from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

from loguru import logger
import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--run-manual",
        action="store_true",
        default=False,
        help="run manual tests (borrows for real on the live portal)",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "manual: mark test as manual to run")


def pytest_collection_modifyitems(config, items):
    skip_manual = pytest.mark.skip(reason="need --run-manual option to run")

    run_manual = config.getoption("--run-manual")

    for item in items:
        if "manual" in item.keywords and not run_manual:
            item.add_marker(skip_manual)


class FakeConfig:
    """Stands in for Config with an in-memory secret store."""

    def __init__(self, secrets: dict[str, str]):
        self.secrets = secrets
        self.domain = "student.chula.ac.th"
        self.tz = ZoneInfo("Asia/Bangkok")

    def get(self, name: str) -> str | None:
        return self.secrets.get(name) or None


@pytest.fixture
def secrets():
    return {
        "STUDENT_EMAIL": "6512345678@student.chula.ac.th",
        "STUDENT_PASSWORD": "hunter2",
        "AZURE_USER_ID": "0f3c2a51-9d4e-4b7a-8c1e-2b6f5d9a7e10",
    }


@pytest.fixture
def fake_config(secrets):
    return FakeConfig(secrets)


@pytest.fixture
def make_response():
    def _make(status_code: int, cookies: list[str] | None = None):
        response = MagicMock()
        response.status_code = status_code
        response.raw.headers.getlist.return_value = list(cookies or [])
        return response

    return _make


@pytest.fixture
def logs():
    """Collects loguru messages as 'LEVEL message' strings."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda m: messages.append(f"{m.record['level'].name} {m.record['message']}"),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)
