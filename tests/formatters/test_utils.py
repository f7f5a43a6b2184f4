# type: ignore  # noqa: PGH003
# ruff: noqa: S101, D103, D100, INP001

from pathlib import Path
from unittest.mock import patch

import pytest

from review_bot.formatters.utils import get_conclusion, to_repo_relative_path
from review_bot.models import Annotation, AnnotationLevel, CheckRunConclusion


@pytest.fixture
def annotations() -> list[Annotation]:
    return [
        Annotation(
            path="file1/BUILD",
            line=1,
            severity=AnnotationLevel.FAILURE,
            message="file file1/BUILD needs reformat",
        ),
        Annotation(
            path="file2.go",
            line=2,
            severity=AnnotationLevel.FAILURE,
            message="undefined: foo",
        ),
    ]


def test_get_conclusion_success() -> None:
    assert get_conclusion([]) == CheckRunConclusion.SUCCESS


def test_get_conclusion_failure(annotations: list[Annotation]) -> None:
    assert get_conclusion(annotations) == CheckRunConclusion.FAILURE


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/fake/repo/BUILD", "BUILD"),
        ("/fake/repo/pkg/sub/BUILD.bazel ", "pkg/sub/BUILD.bazel"),
        ("pkg/BUILD", "pkg/BUILD"),
        ("./pkg/BUILD", "pkg/BUILD"),
        ("", None),
        ("   ", None),
    ],
)
def test_to_repo_relative_path(path, expected) -> None:
    assert to_repo_relative_path(path, Path("/fake/repo")) == expected


def test_to_repo_relative_path_outside_of_root() -> None:
    with patch("review_bot.formatters.utils.logger") as mock_logger:
        result = to_repo_relative_path("/other/BUILD", Path("/fake/repo"))
    assert result == "../../other/BUILD"
    mock_logger.warning.assert_called_once()


def test_to_repo_relative_path_symlinked_root(tmp_path: Path) -> None:
    real_root = tmp_path / "real"
    (real_root / "pkg").mkdir(parents=True)
    link_root = tmp_path / "link"
    link_root.symlink_to(real_root)
    assert to_repo_relative_path(str(real_root / "pkg" / "BUILD"), link_root) == (
        "pkg/BUILD"
    )
