"""Built-in provider and model records."""

from corethink.models.provider import (
    ModelApi,
    ModelCapabilities,
    ModelCost,
    ModelDescriptor,
    ModelLimit,
    Modalities,
    ProviderInfo,
)


CORETHINK_PROVIDER_ID = "corethink"
CORETHINK_API_URL = "https://api.corethink.ai/v1/code"
CORETHINK_ENV_KEY = "CORETHINK_API_KEY"
OPENAI_COMPATIBLE = "openai-compatible"


def corethink_model() -> ModelDescriptor:
    return ModelDescriptor(
        id="corethink",
        provider_id=CORETHINK_PROVIDER_ID,
        name="CoreThink",
        api=ModelApi(id="corethink", url=CORETHINK_API_URL, library=OPENAI_COMPATIBLE),
        status="active",
        cost=ModelCost(input=1.5, output=2.0),
        limit=ModelLimit(context=200_000, output=8_000),
        capabilities=ModelCapabilities(
            temperature=True,
            reasoning=False,
            attachment=True,
            toolcall=True,
            input=Modalities(text=True, image=True, pdf=True),
            output=Modalities(text=True),
        ),
        release_date="2025-01-01",
    )


def corethink_provider(api_key: str | None = None) -> ProviderInfo:
    """Build the CoreThink provider record.

    ``source`` starts as "env" when a key is supplied here; the provider
    state adjusts it when the key came from elsewhere.
    """
    model = corethink_model()
    return ProviderInfo(
        id=CORETHINK_PROVIDER_ID,
        name="CoreThink",
        source="env" if api_key else "config",
        env=[CORETHINK_ENV_KEY],
        key=api_key,
        options={"base_url": CORETHINK_API_URL},
        models={model.id: model},
    )
