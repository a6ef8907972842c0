"""Credential models stored per provider id."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, SecretStr, TypeAdapter


class ApiCredential(BaseModel):
    """A plain API key entered by the user."""

    type: Literal["api"] = "api"
    key: SecretStr


class WellKnownCredential(BaseModel):
    """A token obtained through a provider's well-known auth command."""

    type: Literal["wellknown"] = "wellknown"
    key: str = Field(description="Environment variable name the token is exposed as")
    token: SecretStr


Credential = Annotated[
    ApiCredential | WellKnownCredential,
    Field(discriminator="type"),
]

credential_adapter: TypeAdapter[ApiCredential | WellKnownCredential] = TypeAdapter(
    Credential
)
