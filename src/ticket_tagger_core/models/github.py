"""GitHub webhook payload fragments the service relies on."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Installation(BaseModel):
    """App installation a delivery belongs to."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(description="Installation id")


class Repository(BaseModel):
    """Repository a delivery belongs to."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(description="Repository id")
    url: str = Field(description="REST API URL, e.g. https://api.github.com/repos/o/r")
    full_name: str | None = Field(default=None, description="owner/name")


class IssueLabel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class Issue(BaseModel):
    """The issue an `issues.*` delivery is about."""

    model_config = ConfigDict(extra="ignore")

    number: int
    title: str = ""
    body: str | None = None
    labels: list[IssueLabel] = Field(default_factory=list)

    @property
    def text(self) -> str:
        """Text handed to the classifier."""
        return f"{self.title} {self.body or ''}"

    @property
    def label_names(self) -> list[str]:
        """Names of the labels already on the issue."""
        return [label.name for label in self.labels]


class Prediction(BaseModel):
    """Classifier output."""

    label: str | None = Field(default=None, description="Predicted label key")
    confidence: float = Field(default=0.0, description="Similarity score of the prediction")
