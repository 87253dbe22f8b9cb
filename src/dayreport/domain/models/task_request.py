from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.dayreport.domain.validation import validate_api_url


class RequestType(str, Enum):
    GET = "get"
    POST = "post"


class TaskRequest(BaseModel):
    """Immutable snapshot of what the caller asked us to fetch."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    api_url: str = Field(
        validation_alias=AliasChoices("apiUrl", "api_url"),
        description="Endpoint exposing the paginated records.",
    )
    request_type: RequestType = Field(
        default=RequestType.POST,
        validation_alias=AliasChoices("requestType", "request_type"),
        description="HTTP method used for every page request.",
    )
    request_body: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("requestBody", "request_body", "data"),
        description="Body template merged with the pagination fields.",
    )
    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra HTTP headers sent with each page."
    )

    @field_validator("api_url", mode="before")
    @classmethod
    def _check_url(cls, value: Any) -> str:
        return validate_api_url(value)

    @field_validator("request_type", mode="before")
    @classmethod
    def _normalize_method(cls, value: Any) -> Any:
        if value is None:
            return RequestType.POST
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("request_body", "headers", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value
