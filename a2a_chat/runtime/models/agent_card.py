from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _clean_non_empty_str(value: str, *, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string.")
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{field_name} must be a non-empty string.")
    return cleaned


class _CardModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AgentProvider(_CardModel):
    organization: str | None = None
    url: str | None = None


class AgentCapabilities(_CardModel):
    streaming: bool = False
    push_notifications: bool = False
    state_transition_history: bool = False


class AgentAuthentication(_CardModel):
    schemes: list[str] = Field(default_factory=list)
    credentials: str | None = None


class AgentSkill(_CardModel):
    id: str | None = None
    name: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return _clean_non_empty_str(v, field_name="skill.name")


class AgentCard(_CardModel):
    """
    Descriptive metadata an agent publishes about itself.

    Read-only on this side: the client only fetches and displays it.
    """

    name: str
    url: str
    version: str = ""
    description: str | None = None
    documentation_url: str | None = None
    provider: AgentProvider | None = None
    capabilities: AgentCapabilities = Field(default_factory=AgentCapabilities)
    authentication: AgentAuthentication | None = None
    default_input_modes: list[str] = Field(default_factory=list)
    default_output_modes: list[str] = Field(default_factory=list)
    skills: list[AgentSkill] = Field(default_factory=list)

    @field_validator("name", "url")
    @classmethod
    def _validate_required(cls, v: str, info) -> str:
        return _clean_non_empty_str(v, field_name=str(info.field_name))
