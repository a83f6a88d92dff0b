"""
Configuration for PromptLoom
"""
import os
from typing import Any, Dict, List
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Configuration class for PromptLoom"""

    # Debug mode (set PROMPTLOOM_DEBUG=true to enable)
    DEBUG: bool = _env_flag("PROMPTLOOM_DEBUG")

    # Explicit log level name; empty means INFO (or DEBUG when DEBUG is set)
    LOG_LEVEL: str = os.getenv("PROMPTLOOM_LOG_LEVEL", "").upper()

    # LLM the rendered prompt is aimed at
    LLM_PROVIDER: str = os.getenv("PROMPTLOOM_LLM_PROVIDER", "anthropic").lower()
    LLM_MODEL: str = os.getenv("PROMPTLOOM_LLM_MODEL", "claude-3-sonnet")

    # Output formatting
    OUTPUT_FORMAT: str = os.getenv("PROMPTLOOM_OUTPUT_FORMAT", "xml").lower()
    OUTPUT_INDENT: str = os.getenv("PROMPTLOOM_OUTPUT_INDENT", "  ")
    CODE_LANGUAGE: str = os.getenv("PROMPTLOOM_CODE_LANGUAGE", "python")

    # Whether input validation may touch the local filesystem (mustExist checks).
    # Disable in sandboxed environments; the checks then degrade to warnings.
    FILESYSTEM_CHECKS: bool = _env_flag("PROMPTLOOM_FILESYSTEM_CHECKS", "true")

    KNOWN_PROVIDERS: List[str] = [
        "anthropic", "openai", "google", "meta", "mistral",
        "deepseek", "xai", "cohere", "unspecified",
    ]
    KNOWN_FORMATS: List[str] = ["xml", "markdown", "json", "text"]

    @classmethod
    def validate(cls) -> bool:
        """Validate configuration"""
        from .utils.logger import get_logger
        logger = get_logger(__name__)

        if cls.LLM_PROVIDER not in cls.KNOWN_PROVIDERS:
            logger.error(f"Unknown LLM provider '{cls.LLM_PROVIDER}'. Known: {', '.join(cls.KNOWN_PROVIDERS)}")
            return False
        if cls.OUTPUT_FORMAT not in cls.KNOWN_FORMATS:
            logger.error(f"Unknown output format '{cls.OUTPUT_FORMAT}'. Known: {', '.join(cls.KNOWN_FORMATS)}")
            return False
        return True

    @classmethod
    def environment_defaults(cls) -> Dict[str, Any]:
        """Default environment as a plain dict (merged with caller overrides)"""
        return {
            "llm": {"provider": cls.LLM_PROVIDER, "model": cls.LLM_MODEL},
            "output": {"format": cls.OUTPUT_FORMAT, "trim": True, "indent": cls.OUTPUT_INDENT},
            "code": {"language": cls.CODE_LANGUAGE},
            "runtime": {},
        }

    @classmethod
    def default_environment(cls):
        """Get the default EnvironmentConfig"""
        from .core.types import EnvironmentConfig
        return EnvironmentConfig.model_validate(cls.environment_defaults())
