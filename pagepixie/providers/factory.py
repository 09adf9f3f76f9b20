"""
Model service factory
"""

from .base import BaseModelService
from .openai import OpenAIModelService
from .anthropic import AnthropicModelService
from ..core.config import PagePixieConfig


def create_model_service(config: PagePixieConfig) -> BaseModelService:
    """
    Create the host model service based on configuration

    Args:
        config: PagePixie configuration

    Returns:
        Configured model service instance

    Raises:
        ValueError: If provider is not supported
    """
    if config.provider in ("openai", "openrouter"):
        return OpenAIModelService(config)
    elif config.provider == "anthropic":
        return AnthropicModelService(config)
    else:
        raise ValueError(f"Unsupported provider: {config.provider}")


def get_available_providers() -> list[str]:
    """Get list of available provider names"""
    return ["openai", "anthropic", "openrouter"]
