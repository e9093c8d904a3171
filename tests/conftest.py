import pytest
import structlog

from core.config import AppSettings
from tests.helpers import MIRRORS, MPK_BASE


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        mpk_base_url=MPK_BASE,
        mpk_username="user",
        mpk_password="secret",
        sims_mirrors=list(MIRRORS),
        http_timeout_seconds=5.0,
    )


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
