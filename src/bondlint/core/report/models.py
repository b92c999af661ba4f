"""Finding models: the immutable records every validation stage emits."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Severity(str, Enum):
    """How serious a finding is.  Only errors fail a run by default."""

    ERROR = "error"
    WARNING = "warning"


class Category(str, Enum):
    """What kind of defect a finding describes.

    Declaration order is the secondary sort key of a report.
    """

    SCHEMA_ERROR = "SchemaError"
    IO_ERROR = "IOError"
    DUPLICATE_NAME = "DuplicateName"
    ORPHAN_SKILL = "OrphanSkill"
    BROKEN_BOND = "BrokenBond"
    CIRCULAR_DEPENDENCY = "CircularDependency"
    INVALID_RETRY_CONFIG = "InvalidRetryConfig"
    INVALID_PARAMETER_RULE = "InvalidParameterRule"


CATEGORY_ORDER: dict[Category, int] = {category: i for i, category in enumerate(Category)}


class Finding(BaseModel):
    """A single defect tied to the manifest file it was found in.

    Findings are value records: two findings with equal fields are still two
    findings, nothing deduplicates them.
    """

    model_config = ConfigDict(frozen=True)

    severity: Severity
    category: Category
    subject_path: str
    message: str

    @classmethod
    def error(cls, category: Category, subject_path: str, message: str) -> Finding:
        return cls(
            severity=Severity.ERROR,
            category=category,
            subject_path=subject_path,
            message=message,
        )

    @classmethod
    def warning(cls, category: Category, subject_path: str, message: str) -> Finding:
        return cls(
            severity=Severity.WARNING,
            category=category,
            subject_path=subject_path,
            message=message,
        )

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def format_line(self) -> str:
        """``severity | category | path | message``"""
        return " | ".join(
            (self.severity.value, self.category.value, self.subject_path, self.message)
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "severity": self.severity.value,
            "category": self.category.value,
            "subjectPath": self.subject_path,
            "message": self.message,
        }
