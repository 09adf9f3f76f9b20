"""Host model services for PagePixie"""

from .base import BaseModelService, BaseModelSession, ProviderError
from .openai import OpenAIModelService
from .anthropic import AnthropicModelService
from .factory import create_model_service

__all__ = [
    "BaseModelService",
    "BaseModelSession",
    "ProviderError",
    "OpenAIModelService",
    "AnthropicModelService",
    "create_model_service"
]
