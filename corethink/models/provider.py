"""Pydantic models describing providers and the models they serve."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


Modality = Literal["text", "audio", "image", "video", "pdf"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ModelApi(_Frozen):
    """Where and how a model is reached upstream."""

    id: Annotated[str, Field(description="Model id sent in the request payload")]
    url: Annotated[str, Field(description="Default endpoint base URL")]
    library: Annotated[
        str, Field(description="Upstream client implementation tag, e.g. 'openai-compatible'")
    ]


class Modalities(_Frozen):
    """Per-modality support flags."""

    text: bool = True
    audio: bool = False
    image: bool = False
    video: bool = False
    pdf: bool = False

    def supports(self, modality: Modality) -> bool:
        return bool(getattr(self, modality))


class InterleavedField(_Frozen):
    """Name of the delta field carrying interleaved reasoning."""

    field: Literal["reasoning_content", "reasoning_details"]


class ModelCapabilities(_Frozen):
    """Feature flags a model declares."""

    temperature: bool = True
    reasoning: bool = False
    attachment: bool = False
    toolcall: bool = True
    input: Modalities = Field(default_factory=Modalities)
    output: Modalities = Field(default_factory=Modalities)
    interleaved: bool | InterleavedField = False


class TokenCost(_Frozen):
    read: float = 0.0
    write: float = 0.0


class ModelCost(_Frozen):
    """Price per million tokens."""

    input: float = 0.0
    output: float = 0.0
    cache: TokenCost = Field(default_factory=TokenCost)


class ModelLimit(_Frozen):
    context: int
    output: int


class ModelDescriptor(_Frozen):
    """Identifies one model of one provider. Immutable once constructed."""

    id: str
    provider_id: str
    api: ModelApi
    name: str
    family: str | None = None
    capabilities: ModelCapabilities = Field(default_factory=ModelCapabilities)
    cost: ModelCost = Field(default_factory=ModelCost)
    limit: ModelLimit
    status: Literal["alpha", "beta", "deprecated", "active"] = "active"
    options: dict[str, Any] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    release_date: str = ""
    variants: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @property
    def qualified_id(self) -> str:
        return f"{self.provider_id}/{self.id}"


class ProviderInfo(BaseModel):
    """Effective provider record after credential and config resolution."""

    id: str
    name: str
    source: Literal["env", "config", "custom", "api"]
    env: list[str] = Field(default_factory=list)
    key: str | None = Field(default=None, repr=False)
    options: dict[str, Any] = Field(default_factory=dict)
    models: dict[str, ModelDescriptor] = Field(default_factory=dict)
