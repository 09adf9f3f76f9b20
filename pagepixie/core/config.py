"""
PagePixie Configuration
Model service, session pool and capture pipeline settings
"""

import os
from dataclasses import dataclass
from typing import Tuple, Optional, Dict, Any


@dataclass
class PagePixieConfig:
    """PagePixie configuration with sensible defaults"""

    # AI Provider Settings (Provider-agnostic)
    provider: str = "openai"  # openai, anthropic, openrouter
    model: str = "gpt-4o-mini"

    # API keys loaded from environment variables only
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None

    # Session defaults
    temperature: float = 0.3
    top_k: int = 3
    system_prompt: Optional[str] = None
    context_window_tokens: int = 128000  # Input quota reported by sessions
    max_output_tokens: int = 2048

    # Session pool
    pool_size: int = 3
    session_reuse_threshold: float = 80.0  # Percent of quota; above it a pooled session is discarded

    # Model readiness polling
    ready_poll_interval_ms: int = 1000
    ready_timeout_ms: int = 60000

    # Language normalization
    language_sample_chars: int = 8000
    translation_min_confidence: float = 0.3
    translation_target_language: str = "en"
    english_language_codes: Tuple[str, ...] = ("en",)

    # Classification
    classification_preview_chars: int = 1000

    # Condensation (characters)
    condense_chunk_size: int = 6000
    condense_target_length: int = 8000

    # Multimodal context
    max_images: int = 5
    image_fetch_timeout: float = 10.0
    image_max_size: Tuple[int, int] = (1024, 1024)
    optimize_images: bool = True
    jpeg_quality: int = 90

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        """Initialize and validate configuration"""
        # Load API keys from environment if not provided
        if not self.openai_api_key:
            self.openai_api_key = os.getenv("OPENAI_API_KEY")

        if not self.anthropic_api_key:
            self.anthropic_api_key = os.getenv("ANTHROPIC_API_KEY")

        if not self.openrouter_api_key:
            self.openrouter_api_key = os.getenv("OPENROUTER_API_KEY")

        self._set_provider_defaults()

        if self.provider not in ("openai", "anthropic", "openrouter"):
            raise ValueError(f"Unsupported provider: {self.provider}")

        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError("Temperature must be between 0 and 1")

        if self.top_k < 1:
            raise ValueError("top_k must be a positive integer")

        if self.pool_size < 1:
            raise ValueError("Pool size must be at least 1")

        if not 0.0 < self.session_reuse_threshold <= 100.0:
            raise ValueError("Session reuse threshold must be a percentage in (0, 100]")

        if not 0.0 <= self.translation_min_confidence <= 1.0:
            raise ValueError("Translation confidence threshold must be between 0 and 1")

        if self.condense_chunk_size <= 0 or self.condense_target_length <= 0:
            raise ValueError("Condense sizes must be positive")

        if self.max_images < 0:
            raise ValueError("max_images cannot be negative")

        if self.jpeg_quality < 1 or self.jpeg_quality > 100:
            raise ValueError("JPEG quality must be between 1 and 100")

        # Tuples may arrive as lists from JSON or env parsing
        self.english_language_codes = tuple(code.lower() for code in self.english_language_codes)
        self.image_max_size = tuple(self.image_max_size)

    def _set_provider_defaults(self):
        """Set appropriate default model based on provider"""
        provider_defaults = {
            "openai": "gpt-4o-mini",
            "anthropic": "claude-3-5-haiku-latest",
            "openrouter": "openai/gpt-4o-mini",
        }

        # Only update if still using the OpenAI default (means user didn't specify a custom model)
        if self.provider in provider_defaults and self.model == "gpt-4o-mini":
            self.model = provider_defaults[self.provider]

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'PagePixieConfig':
        """Create config from dictionary"""
        return cls(**config_dict)

    @classmethod
    def from_env(cls, **overrides: Any) -> 'PagePixieConfig':
        """Create config from environment variables; keyword overrides take precedence"""
        config_dict = {}

        # Map environment variables to config fields
        env_mapping = {
            'PAGEPIXIE_PROVIDER': 'provider',
            'PAGEPIXIE_MODEL': 'model',
            'PAGEPIXIE_TEMPERATURE': 'temperature',
            'PAGEPIXIE_TOP_K': 'top_k',
            'PAGEPIXIE_POOL_SIZE': 'pool_size',
            'PAGEPIXIE_SESSION_REUSE_THRESHOLD': 'session_reuse_threshold',
            'PAGEPIXIE_TRANSLATION_MIN_CONFIDENCE': 'translation_min_confidence',
            'PAGEPIXIE_MAX_IMAGES': 'max_images',
            'PAGEPIXIE_OPTIMIZE_IMAGES': 'optimize_images',
            'PAGEPIXIE_LOG_LEVEL': 'log_level',
        }

        for env_var, config_field in env_mapping.items():
            value = os.getenv(env_var)
            if value is not None:
                # Convert string values to appropriate types
                if config_field in ['top_k', 'pool_size', 'max_images']:
                    config_dict[config_field] = int(value)
                elif config_field in ['temperature', 'session_reuse_threshold', 'translation_min_confidence']:
                    config_dict[config_field] = float(value)
                elif config_field in ['optimize_images']:
                    config_dict[config_field] = value.lower() in ('true', '1', 'yes')
                else:
                    config_dict[config_field] = value

        config_dict.update(overrides)
        return cls(**config_dict)

    def get_api_key(self) -> Optional[str]:
        """Get the API key for the configured provider"""
        return {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "openrouter": self.openrouter_api_key,
        }.get(self.provider)

    def validate_provider_config(self) -> None:
        """Validate provider-specific configuration"""
        if self.provider == "openai":
            if not self.openai_api_key:
                raise ValueError("OpenAI API key is required")
        elif self.provider == "anthropic":
            if not self.anthropic_api_key:
                raise ValueError("Anthropic API key is required")
        elif self.provider == "openrouter":
            if not self.openrouter_api_key:
                raise ValueError("OpenRouter API key is required")
        else:
            raise ValueError(f"Unsupported provider: {self.provider}")
