# type: ignore  # noqa: PGH003
# ruff: noqa: S101, D103, D100, INP001, ANN001, S105
from pathlib import Path
from unittest.mock import patch

import pytest

from review_bot.cli import build_parser, main, settings_from_args

REQUIRED = [
    "--app-id",
    "42",
    "--pem-path",
    "app.pem",
    "--webhook-secret",
    "s3cr3t",
]


def test_settings_from_args_defaults() -> None:
    settings = settings_from_args(build_parser().parse_args(REQUIRED))
    assert settings.app_id == 42  # noqa: PLR2004
    assert settings.private_key_pem == Path("app.pem")
    assert settings.webhook_secret.get_secret_value() == "s3cr3t"
    assert settings.bb_api_key.get_secret_value() == ""
    assert settings.port == 3000  # noqa: PLR2004
    assert settings.github_api_url == "https://api.github.com"
    assert settings.bazel_binary == "bb"


def test_settings_from_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GH_APP_ID", "7")
    monkeypatch.setenv("GH_PRIVATE_KEY_PEM", "/keys/app.pem")
    monkeypatch.setenv("GH_WEBHOOK_SECRET", "env-secret")
    monkeypatch.setenv("BB_API_KEY", "bb-key")
    monkeypatch.setenv("REVIEW_BOT_PORT", "8080")
    monkeypatch.setenv("REVIEW_BOT_WORKDIR", str(tmp_path))
    monkeypatch.setenv("GH_API_URL", "https://ghe.example.com/api/v3/")
    settings = settings_from_args(build_parser().parse_args([]))
    assert settings.app_id == 7  # noqa: PLR2004
    assert settings.bb_api_key.get_secret_value() == "bb-key"
    assert settings.port == 8080  # noqa: PLR2004
    assert settings.workdir_root == tmp_path
    assert settings.github_api_url == "https://ghe.example.com/api/v3"


@pytest.mark.parametrize("missing", ["--app-id", "--pem-path", "--webhook-secret"])
def test_settings_from_args_missing_required(missing) -> None:
    index = REQUIRED.index(missing)
    argv = REQUIRED[:index] + REQUIRED[index + 2 :]
    with pytest.raises(SystemExit):
        settings_from_args(build_parser().parse_args(argv))


def test_settings_are_not_leaked_in_repr() -> None:
    settings = settings_from_args(
        build_parser().parse_args([*REQUIRED, "--bb-api-key", "bb-key"]),
    )
    assert "s3cr3t" not in repr(settings)
    assert "bb-key" not in repr(settings)


def test_main_serves_app() -> None:
    with patch("review_bot.cli.uvicorn.run") as mock_run:
        main([*REQUIRED, "--port", "4000", "--log-level", "debug"])
    kwargs = mock_run.call_args.kwargs
    assert kwargs["port"] == 4000  # noqa: PLR2004
    assert kwargs["log_level"] == "debug"
