"""Generated commit drafts and conventional commit checks."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .exceptions import DraftExtractionError, ValidationWarning

COMMIT_TYPES: tuple[str, ...] = (
    "feat",
    "fix",
    "docs",
    "style",
    "refactor",
    "test",
    "chore",
    "perf",
    "ci",
    "build",
    "revert",
)

MAX_TITLE_LENGTH = 72

# JSON Schema for the {title, description} payload every provider must
# return. The "$schema" and "title" keys are metadata; backends that reject
# them get a stripped copy via ``draft_schema(strip_metadata=True)``.
DRAFT_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Commit",
    "type": "object",
    "required": ["description", "title"],
    "properties": {
        "title": {
            "description": "The title of the commit message (max 50 chars).",
            "type": "string",
        },
        "description": {
            "description": "A detailed, exhaustive description of the changes.",
            "type": "string",
        },
    },
}

_SCHEMA_METADATA_KEYS = ("$schema", "title")


def draft_schema(strip_metadata: bool = False) -> dict[str, Any]:
    """Return a fresh copy of the draft JSON Schema."""
    schema = copy.deepcopy(DRAFT_SCHEMA)
    if strip_metadata:
        for key in _SCHEMA_METADATA_KEYS:
            schema.pop(key, None)
    return schema


class ValidationRule(str, Enum):
    """First conventional commit rule a title breaks."""

    TOO_LONG = "too_long"
    MISSING_SEPARATOR = "missing_separator"
    INVALID_TYPE = "invalid_type"
    EMPTY_DESCRIPTION = "empty_description"
    DESCRIPTION_SHOULD_BE_LOWERCASE = "description_should_be_lowercase"


_RULE_MESSAGES = {
    ValidationRule.TOO_LONG: (
        f"Commit title is too long (max {MAX_TITLE_LENGTH} characters)"
    ),
    ValidationRule.MISSING_SEPARATOR: (
        "Commit title must follow format: type(scope): description"
    ),
    ValidationRule.INVALID_TYPE: (
        "Invalid commit type '{detail}'. Valid types: " + ", ".join(COMMIT_TYPES)
    ),
    ValidationRule.EMPTY_DESCRIPTION: (
        "Commit description after colon cannot be empty"
    ),
    ValidationRule.DESCRIPTION_SHOULD_BE_LOWERCASE: (
        "Commit description should start with lowercase letter"
    ),
}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a draft title; truthy when valid."""

    rule: Optional[ValidationRule] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.rule is None

    def __bool__(self) -> bool:
        return self.ok

    @property
    def message(self) -> str:
        if self.rule is None:
            return ""
        return _RULE_MESSAGES[self.rule].format(detail=self.detail)

    def raise_for_rule(self) -> None:
        """Raise ``ValidationWarning`` if a rule was broken."""
        if self.rule is not None:
            raise ValidationWarning(self.message)


def _type_token(prefix: str) -> str:
    type_part = prefix.split("(", 1)[0]
    return type_part.rstrip("!")


def validate_title(title: str) -> ValidationResult:
    """Check ``title`` against the conventional commit header grammar."""
    if len(title) > MAX_TITLE_LENGTH:
        return ValidationResult(ValidationRule.TOO_LONG)
    if ":" not in title:
        return ValidationResult(ValidationRule.MISSING_SEPARATOR)
    prefix, rest = title.split(":", 1)
    commit_type = _type_token(prefix)
    if commit_type not in COMMIT_TYPES:
        return ValidationResult(ValidationRule.INVALID_TYPE, commit_type)
    description = rest.strip()
    if not description:
        return ValidationResult(ValidationRule.EMPTY_DESCRIPTION)
    if description[0].isupper():
        return ValidationResult(ValidationRule.DESCRIPTION_SHOULD_BE_LOWERCASE)
    return ValidationResult()


def get_type(title: str) -> str:
    """Return the commit type token of ``title`` or ``"unknown"``."""
    if ":" not in title:
        return "unknown"
    return _type_token(title.split(":", 1)[0])


@dataclass(frozen=True)
class Draft:
    """A generated commit message split into title and description."""

    title: str
    description: str

    @classmethod
    def from_payload(cls, payload: Any) -> "Draft":
        """Build a draft from a decoded JSON payload.

        Raises:
            DraftExtractionError: if the payload does not match the schema.
        """
        if not isinstance(payload, dict):
            raise DraftExtractionError(
                f"Expected a JSON object, got {type(payload).__name__}"
            )
        missing = [key for key in ("title", "description") if key not in payload]
        if missing:
            raise DraftExtractionError(
                "Payload is missing required field(s): " + ", ".join(missing)
            )
        title = payload["title"]
        description = payload["description"]
        if not isinstance(title, str) or not isinstance(description, str):
            raise DraftExtractionError("Fields 'title' and 'description' must be strings")
        return cls(title=title, description=description)

    @property
    def message(self) -> str:
        """Full commit message: title, blank line, description."""
        return f"{self.title}\n\n{self.description}"

    def __str__(self) -> str:
        return self.message

    def validate(self) -> ValidationResult:
        return validate_title(self.title)

    def get_type(self) -> str:
        return get_type(self.title)

    def summary(self) -> str:
        return "Type: {}, Files: {}".format(
            self.get_type(), len(self.description.splitlines())
        )


def validate(draft: Draft) -> ValidationResult:
    """Validate ``draft``; advisory only, never blocks a commit."""
    return draft.validate()
