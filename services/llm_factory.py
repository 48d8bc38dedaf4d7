#File: services/llm_factory.py
import os
import logging
from dataclasses import dataclass, astuple
from typing import Optional, Dict, Union
from openai import OpenAI, AzureOpenAI

from services.llm_service import OpenAIGenerationClient, env_flag

logger = logging.getLogger(__name__)

ProviderClient = Union[OpenAI, AzureOpenAI]


class LLMProvider:
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    AZURE = "azure"
    LOCAL = "local"

    ALL = (OPENAI, OPENROUTER, AZURE, LOCAL)


DEFAULT_MODELS = {
    LLMProvider.OPENAI: ("OPENAI_MODEL", "gpt-4o-mini"),
    LLMProvider.OPENROUTER: ("OPENROUTER_MODEL", "google/gemini-2.0-flash-exp:free"),
    LLMProvider.LOCAL: ("LOCAL_MODEL", "llama3"),
    LLMProvider.AZURE: ("AZURE_OPENAI_DEPLOYMENT", "gpt-4o-mini"),
}


@dataclass(frozen=True)
class ProviderSettings:
    provider: str
    api_key: str = ""
    base_url: str = ""
    azure_endpoint: str = ""
    api_version: str = ""
    timeout: float = 45.0
    max_retries: int = 2


def resolve_settings(provider: str, **overrides) -> ProviderSettings:
    """Explicit overrides win over environment variables. Raises ValueError on missing credentials."""
    if provider not in LLMProvider.ALL:
        raise ValueError(f"Unknown LLM provider: {provider}")

    api_key = overrides.get("api_key")
    base_url = overrides.get("base_url")
    azure_endpoint = overrides.get("azure_endpoint")
    api_version = overrides.get("api_version")

    if provider == LLMProvider.OPENAI:
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY not set")

    elif provider == LLMProvider.OPENROUTER:
        api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        base_url = base_url or "https://openrouter.ai/api/v1"
        if not api_key:
            raise ValueError("OPENROUTER_API_KEY not set")

    elif provider == LLMProvider.LOCAL:
        base_url = base_url or os.getenv("LOCAL_LLM_URL", "http://localhost:11434/v1")
        api_key = "ollama"  # Ollama ignores the key but the client requires one

    else:
        api_key = api_key or os.getenv("AZURE_OPENAI_API_KEY")
        azure_endpoint = azure_endpoint or os.getenv("AZURE_OPENAI_ENDPOINT")
        api_version = api_version or os.getenv("AZURE_OPENAI_API_VERSION", "2023-05-15")
        if not api_key or not azure_endpoint:
            raise ValueError("AZURE_OPENAI_API_KEY and AZURE_OPENAI_ENDPOINT must be set")

    return ProviderSettings(
        provider=provider,
        api_key=api_key or "",
        base_url=base_url or "",
        azure_endpoint=azure_endpoint or "",
        api_version=api_version or "",
        timeout=float(overrides.get("timeout", 45.0)),
        max_retries=int(overrides.get("max_retries", 2)),
    )


class LLMFactory:
    """
    Builds provider clients and the generation collaborator on top of them.
    Provider clients are cached per effective configuration.
    """

    _instances: Dict[tuple, ProviderClient] = {}

    @staticmethod
    def get_client(provider: str = LLMProvider.OPENAI, **kwargs) -> ProviderClient:
        settings = resolve_settings(provider, **kwargs)
        cache_key = astuple(settings)

        if cache_key in LLMFactory._instances:
            return LLMFactory._instances[cache_key]

        logger.info(f"Initializing LLM Client for provider: {provider}")

        if provider == LLMProvider.AZURE:
            client = AzureOpenAI(
                api_key=settings.api_key,
                azure_endpoint=settings.azure_endpoint,
                api_version=settings.api_version,
                timeout=settings.timeout,
                max_retries=settings.max_retries,
            )
        else:
            client = OpenAI(
                api_key=settings.api_key,
                base_url=settings.base_url or None,
                timeout=settings.timeout,
                max_retries=settings.max_retries,
            )

        LLMFactory._instances[cache_key] = client
        return client

    @staticmethod
    def get_default_model(provider: str) -> str:
        env_name, default = DEFAULT_MODELS.get(provider, DEFAULT_MODELS[LLMProvider.OPENAI])
        return os.getenv(env_name, default)

    @staticmethod
    def create_generation_client(provider: Optional[str] = None, model: Optional[str] = None) -> OpenAIGenerationClient:
        provider = (provider or os.getenv("LLM_PROVIDER", LLMProvider.OPENAI)).strip().lower()
        client = LLMFactory.get_client(provider)
        generation_client = OpenAIGenerationClient(
            client,
            model=model or LLMFactory.get_default_model(provider),
            enable_reasoning=env_flag("ENABLE_REASONING", True),
            summary_length=os.getenv("SUMMARY_LENGTH", "medium"),
        )
        logger.info(
            f"🤖 Generation client ready ({provider}/{generation_client.model}, "
            f"capabilities={generation_client.capabilities})"
        )
        return generation_client
