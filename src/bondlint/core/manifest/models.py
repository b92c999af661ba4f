"""Manifest models: typed headers for agent, skill, and command documents.

Every manifest document starts with a YAML header block.  The header is
validated into exactly one of :class:`AgentHeader`, :class:`SkillHeader` or
:class:`CommandHeader`, selected by the ``kind`` discriminator.  The prose
that follows the header is never parsed; it is referenced by
:class:`BodyRef` only.

Example skill header::

    ---
    name: query-builder
    description: Builds parameterised SQL queries.
    bonded_agent: database-architect
    bond_type: PRIMARY_BOND
    atomic_operations: [parse, plan, emit]
    parameter_validation:
      query:
        type: string
        required: true
        min_length: 1
    retry_logic:
      max_attempts: 3
      backoff: exponential
      initial_delay_ms: 500
    exit_codes:
      success: 0
      invalid_input: 2
    ---
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class EntityKind(str, Enum):
    """The three kinds of manifest a plugin declares."""

    AGENT = "agent"
    SKILL = "skill"
    COMMAND = "command"

    @property
    def plural(self) -> str:
        return f"{self.value}s"


BondType = Literal["PRIMARY_BOND", "SECONDARY_BOND"]
ParameterType = Literal["string", "number", "integer", "boolean", "object", "array"]

ExitCode = Annotated[int, Field(ge=0, le=255)]


def _split_tokens(value: Any) -> Any:
    """Accept ``"Read, Write, Bash"`` as well as ``[Read, Write, Bash]``."""
    if isinstance(value, str):
        return [token.strip() for token in value.split(",") if token.strip()]
    return value


class _StrictModel(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)


class ParameterRule(_StrictModel):
    """Validation rule for one named parameter of a skill or command."""

    type: ParameterType
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    allowed_values: list[Any] | None = None


class RetryConfig(_StrictModel):
    """Retry policy declared by an agent (``retry_config``) or skill (``retry_logic``)."""

    max_attempts: int
    backoff: str
    initial_delay_ms: int
    multiplier: int | float | None = None
    max_delay_ms: int | None = None


class ErrorHandling(_StrictModel):
    """Error kinds an agent declares it handles, plus its fallback strategy."""

    errors: list[str] = []
    fallback: str | None = None


class _HeaderBase(_StrictModel):
    name: str = Field(min_length=1)
    description: str


class AgentHeader(_HeaderBase):
    kind: Literal["agent"] = "agent"
    model: str | None = None
    tools: list[str] = []
    skills: list[str] = []
    input_schema: dict[str, Any] | None = None
    output_schema: dict[str, Any] | None = None
    retry_config: RetryConfig | None = None
    error_handling: ErrorHandling | None = None

    @field_validator("tools", mode="before")
    @classmethod
    def _split_tools(cls, value: Any) -> Any:
        return _split_tokens(value)


class SkillHeader(_HeaderBase):
    kind: Literal["skill"] = "skill"
    bonded_agent: str | None = None
    bond_type: BondType | None = None
    atomic_operations: list[str] = []
    parameter_validation: dict[str, ParameterRule] = {}
    retry_logic: RetryConfig | None = None
    exit_codes: dict[str, ExitCode] = {}


class CommandHeader(_HeaderBase):
    kind: Literal["command"] = "command"
    allowed_tools: list[str] = []
    parameter_validation: dict[str, ParameterRule] = {}
    exit_codes: dict[str, ExitCode] = {}
    agents: list[str] = []
    skills: list[str] = []

    @field_validator("allowed_tools", mode="before")
    @classmethod
    def _split_allowed_tools(cls, value: Any) -> Any:
        return _split_tokens(value)


ManifestHeader = Annotated[
    AgentHeader | SkillHeader | CommandHeader,
    Field(discriminator="kind"),
]

HEADER_ADAPTER: TypeAdapter[AgentHeader | SkillHeader | CommandHeader] = TypeAdapter(
    ManifestHeader
)


class BodyRef(BaseModel):
    """Opaque pointer to the prose that follows a header block."""

    model_config = ConfigDict(frozen=True)

    path: str
    offset: int
    length: int


class BondLinks(BaseModel):
    """The cross-reference fields the bond graph is built from.

    Taken from the typed header when it validates, otherwise salvaged from
    whichever raw fields are well typed.
    """

    model_config = ConfigDict(frozen=True)

    skills: list[str] = []
    bonded_agent: str | None = None
    bond_type: str | None = None
    agents: list[str] = []


class EntityManifest(BaseModel):
    """One discovered manifest document for the duration of a validation run."""

    kind: EntityKind
    name: str
    source_path: str
    raw_header: dict[str, Any]
    body_ref: BodyRef
    header: ManifestHeader | None = None
    links: BondLinks = Field(default_factory=BondLinks)
    schema_valid: bool = True

    @property
    def subject(self) -> str:
        """``<kind>s/<name>`` prefix used for field paths in findings."""
        return f"{self.kind.plural}/{self.name or '?'}"
