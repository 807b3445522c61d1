"""Data models for Autoneg Controller."""

from typing import Dict, List, Literal, Mapping, Optional
from pydantic import BaseModel, Field


LabelOperator = Literal["=", "!=", "exists", "!exists"]


class LabelRequirement(BaseModel):
    """A single clause of a label selector."""

    key: str = Field(description="Label key the clause applies to")
    operator: LabelOperator = Field(description="Comparison applied to the label")
    value: Optional[str] = Field(
        default=None,
        description="Expected value for '=' and '!=' clauses"
    )

    def matches(self, labels: Mapping[str, str]) -> bool:
        """Check a set of labels against this clause."""
        if self.operator == "exists":
            return self.key in labels
        if self.operator == "!exists":
            return self.key not in labels
        if self.operator == "=":
            return labels.get(self.key) == self.value
        # '!=' also holds when the label is absent
        return labels.get(self.key) != self.value

    def __str__(self) -> str:
        if self.operator == "exists":
            return self.key
        if self.operator == "!exists":
            return f"!{self.key}"
        return f"{self.key}{self.operator}{self.value}"


class LabelSelector(BaseModel):
    """Equality-based label selector, e.g. ``env=prod,tier!=cache,!legacy``.

    All requirements must hold for a set of labels to match. An empty
    selector matches everything.
    """

    requirements: List[LabelRequirement] = Field(
        default_factory=list,
        description="Clauses that must all hold"
    )

    @classmethod
    def parse(cls, selector: str) -> "LabelSelector":
        """Parse a selector string, raising ValueError when it is malformed."""
        requirements = []
        if not selector or not selector.strip():
            return cls(requirements=requirements)

        for raw in selector.split(","):
            clause = raw.strip()
            if not clause:
                raise ValueError(f"empty clause in label selector {selector!r}")

            if "!=" in clause:
                key, value = clause.split("!=", 1)
                operator = "!="
            elif "==" in clause:
                key, value = clause.split("==", 1)
                operator = "="
            elif "=" in clause:
                key, value = clause.split("=", 1)
                operator = "="
            elif clause.startswith("!"):
                key, value = clause[1:], None
                operator = "!exists"
            else:
                key, value = clause, None
                operator = "exists"

            key = key.strip()
            if value is not None:
                value = value.strip()
            if not key or any(ch.isspace() or ch in "=!" for ch in key):
                raise ValueError(f"invalid label key in clause {clause!r}")
            if value is not None and any(ch.isspace() or ch in "=!" for ch in value):
                raise ValueError(f"invalid label value in clause {clause!r}")

            requirements.append(LabelRequirement(key=key, operator=operator, value=value))

        return cls(requirements=requirements)

    @property
    def is_empty(self) -> bool:
        return not self.requirements

    def matches(self, labels: Optional[Mapping[str, str]]) -> bool:
        """Check whether all requirements hold for the given labels."""
        labels = dict(labels or {})
        return all(requirement.matches(labels) for requirement in self.requirements)

    def __str__(self) -> str:
        return ",".join(str(requirement) for requirement in self.requirements)


class ServiceSummary(BaseModel):
    """Read-only projection of a Cloud Run service, used for logging."""

    name: str = Field(description="Short service name")
    region: Optional[str] = Field(default=None, description="Region the service runs in")
    labels: Dict[str, str] = Field(default_factory=dict, description="Service labels")
    status: str = Field(default="STATE_UNSPECIFIED", description="Terminal condition state")
    uri: Optional[str] = Field(default=None, description="Main URI serving the service")

    @classmethod
    def from_service(cls, service) -> "ServiceSummary":
        """Build a summary from a ``run_v2.Service``.

        Resource names look like ``projects/{project}/locations/{region}/services/{name}``.
        """
        parts = service.name.split("/")
        region = parts[3] if len(parts) >= 6 and parts[2] == "locations" else None

        status = "STATE_UNSPECIFIED"
        condition = getattr(service, "terminal_condition", None)
        if condition is not None and getattr(condition, "state", None) is not None:
            state = condition.state
            status = getattr(state, "name", str(state))

        return cls(
            name=parts[-1],
            region=region,
            labels=dict(service.labels or {}),
            status=status,
            uri=service.uri or None,
        )
