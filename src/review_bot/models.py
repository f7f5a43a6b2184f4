"""Model representation of check results and GitHub checks json structures."""

from enum import Enum, StrEnum

from pydantic import BaseModel, Field, model_validator


class CheckName(StrEnum):
    """The fixed set of checks this bot runs against every head commit."""

    BUILDIFIER = "buildifier"
    BAZEL = "bazel"


CHECK_NAMES: tuple[CheckName, ...] = (CheckName.BUILDIFIER, CheckName.BAZEL)

# identifier of the one-click remediation offered by the buildifier check
BUILDIFIER_FIX = "buildifier-fix"


class CheckRunStatus(Enum):
    """The states a check run moves through, strictly in this order."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CheckRunConclusion(Enum):
    """The valid conclusion states of a check run produced by this bot."""

    SUCCESS = "success"
    FAILURE = "failure"


class AnnotationLevel(Enum):
    """The severity levels permitted by GitHub checks for each individual annotation."""

    NOTICE = "notice"
    WARNING = "warning"
    FAILURE = "failure"


class GitRef(BaseModel):
    """Checkout target of a repository, either a commit hash or a branch name."""

    hash: str = ""
    branch: str = ""

    @model_validator(mode="after")
    def _require_target(self) -> "GitRef":
        if not self.hash and not self.branch:
            msg = "a git ref needs either a commit hash or a branch name"
            raise ValueError(msg)
        return self


class Annotation(BaseModel):
    """One diagnostic location, relative to the provisioned repository root."""

    path: str = Field(min_length=1)
    line: int = Field(default=1, ge=1)
    severity: AnnotationLevel = AnnotationLevel.FAILURE
    message: str


class CheckAction(BaseModel):
    """A follow-up action offered to the user on a completed check run."""

    label: str = Field(max_length=20)
    description: str = Field(max_length=40)
    identifier: str = Field(max_length=20)


class CheckResult(BaseModel):
    """The outcome of exactly one execution of a check."""

    title: str
    summary: str
    conclusion: CheckRunConclusion
    annotations: list[Annotation] = Field(default_factory=list)
    url: str | None = None
    action: CheckAction | None = None

    @model_validator(mode="after")
    def _success_has_no_annotations(self) -> "CheckResult":
        if self.conclusion == CheckRunConclusion.SUCCESS and self.annotations:
            msg = "a successful check result cannot carry annotations"
            raise ValueError(msg)
        return self


class CheckAnnotation(BaseModel):
    """Models the json expected by GitHub checks for each individual annotation."""

    path: str
    start_line: int
    end_line: int
    annotation_level: AnnotationLevel
    message: str
    title: str | None = None
    raw_details: str | None = None

    @classmethod
    def from_annotation(cls, annotation: Annotation) -> "CheckAnnotation":
        """Translate a single-line diagnostic into the GitHub annotation shape."""
        return cls(
            path=annotation.path,
            start_line=annotation.line,
            end_line=annotation.line,
            annotation_level=annotation.severity,
            message=annotation.message,
        )


class CheckRunOutput(BaseModel):
    """The json format expected for the output of a Checks run."""

    title: str
    summary: str
    annotations: list[CheckAnnotation] | None = None


class CheckRunUpdate(BaseModel):
    """Body of a check run update, unset fields are left untouched by GitHub."""

    name: str | None = None
    status: CheckRunStatus | None = None
    conclusion: CheckRunConclusion | None = None
    started_at: str | None = None
    completed_at: str | None = None
    output: CheckRunOutput | None = None
    details_url: str | None = None
    actions: list[CheckAction] | None = None

    def to_payload(self) -> dict:
        """Render the json payload for the GitHub checks API."""
        return self.model_dump(mode="json", exclude_none=True)
