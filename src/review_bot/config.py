"""Runtime settings of the bot, populated from the command line or environment."""

import tempfile
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_GITHUB_URL = "https://github.com"


class BotSettings(BaseModel):
    """Everything the bot needs to know about its GitHub App and its tools."""

    app_id: int
    private_key_pem: Path
    webhook_secret: SecretStr
    bb_api_key: SecretStr = SecretStr("")
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    github_api_url: str = DEFAULT_GITHUB_API_URL
    github_url: str = DEFAULT_GITHUB_URL
    workdir_root: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    buildifier_binary: str = "buildifier"
    bazel_binary: str = "bb"
    command_timeout: float = 1800.0
    request_timeout: int = 10
