"""Shared schema types used across the application."""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AuthMode(str, enum.Enum):
    OAUTH = "oauth"
    SERVICE_ACCOUNT = "service_account"


class CamelModel(BaseModel):
    """Base model exchanged with the web client as camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Body returned with every 4xx/5xx response."""
    error: str
