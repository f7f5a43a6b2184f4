# ruff: noqa: D100, D103, INP001
from pathlib import Path

import pytest
from payloads import APP_ID

from review_bot.config import BotSettings


@pytest.fixture
def settings(tmp_path: Path) -> BotSettings:
    return BotSettings(
        app_id=APP_ID,
        private_key_pem=tmp_path / "app.pem",
        webhook_secret="webhook-secret",
        bb_api_key="bb-key",
        workdir_root=tmp_path / "work",
    )
