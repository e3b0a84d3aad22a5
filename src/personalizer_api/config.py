"""Configuration management for the Personalizer API."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file if it exists
load_dotenv()

_PACKAGE_DIR = Path(__file__).resolve().parent


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


class Settings(BaseModel):
    """Application settings with environment variable support."""

    # OpenAI Configuration
    openai_api_key: str = Field(default="", description="OpenAI API key (empty disables the LLM)")
    model: str = Field(default="gpt-4o-mini", description="OpenAI model to use")
    max_tokens: int = Field(default=4000, description="Upper bound for LLM response tokens")
    temperature: float = Field(default=0.3, description="LLM temperature setting")
    llm_timeout_seconds: float = Field(default=120.0, description="Timeout for a single completion call")
    llm_max_attempts: int = Field(default=1, description="Completion attempts before giving up (1 = no retry)")

    # Template and storage
    template_path: Path = Field(
        default=_PACKAGE_DIR / "templates" / "proposal.html",
        description="HTML template personalized for every client",
    )
    data_dir: Path = Field(default=Path("data"), description="Directory holding clients.json")
    public_dir: Path = Field(default=Path("public"), description="Directory for rendered pages and uploads")
    public_base_url: Optional[str] = Field(
        default=None, description="Base URL used in shareable links (defaults to the request host)"
    )
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, description="Upload size limit in bytes")

    # GitHub mirror
    github_token: str = Field(default="", description="GitHub token for the contents API mirror")
    github_repo: str = Field(default="", description="owner/name of the mirror repository")
    github_branch: str = Field(default="main", description="Branch the mirror commits to")
    github_path_prefix: str = Field(default="public", description="Path prefix inside the mirror repository")

    # Shopify
    shopify_api_version: str = Field(default="2024-10", description="Admin GraphQL API version")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        data = {
            "openai_api_key": os.getenv("OPENAI_API_KEY", ""),
            "model": os.getenv("OPENAI_MODEL", ""),
            "max_tokens": _env_int("OPENAI_MAX_TOKENS", 4000),
            "temperature": _env_float("OPENAI_TEMPERATURE", 0.3),
            "llm_timeout_seconds": _env_float("LLM_TIMEOUT_SECONDS", 120.0),
            "llm_max_attempts": _env_int("LLM_MAX_ATTEMPTS", 1),
            "data_dir": Path(os.getenv("DATA_DIR", "data")),
            "public_dir": Path(os.getenv("PUBLIC_DIR", "public")),
            "public_base_url": os.getenv("PUBLIC_BASE_URL") or None,
            "max_upload_bytes": _env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024),
            "github_token": os.getenv("GITHUB_TOKEN", ""),
            "github_repo": os.getenv("GITHUB_REPO", ""),
            "github_branch": os.getenv("GITHUB_BRANCH", "main"),
            "github_path_prefix": os.getenv("GITHUB_PATH_PREFIX", "public"),
            "shopify_api_version": os.getenv("SHOPIFY_API_VERSION", "2024-10"),
        }
        template_path = os.getenv("TEMPLATE_PATH")
        if template_path:
            data["template_path"] = Path(template_path)
        return cls(**data)

    @property
    def llm_enabled(self) -> bool:
        return bool(self.openai_api_key) and self.openai_api_key != "sk-your-api-key-here"

    @property
    def github_enabled(self) -> bool:
        return bool(self.github_token and self.github_repo)

    @property
    def clients_file(self) -> Path:
        return self.data_dir / "clients.json"

    @field_validator("model", mode="before")
    @classmethod
    def validate_model(cls, v):
        """Fall back to the default model when none is provided."""
        if not v:
            return "gpt-4o-mini"
        return v

    @field_validator("max_tokens")
    @classmethod
    def validate_max_tokens(cls, v):
        """Validate max tokens is within reasonable bounds."""
        if v < 100 or v > 16000:
            raise ValueError("max_tokens must be between 100 and 16000")
        return v

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v):
        """Validate temperature is within bounds."""
        if v < 0.0 or v > 2.0:
            raise ValueError("temperature must be between 0.0 and 2.0")
        return v

    @field_validator("llm_max_attempts")
    @classmethod
    def validate_llm_max_attempts(cls, v):
        if v < 1 or v > 5:
            raise ValueError("llm_max_attempts must be between 1 and 5")
        return v

    @field_validator("max_upload_bytes")
    @classmethod
    def validate_max_upload_bytes(cls, v):
        if v <= 0:
            raise ValueError("max_upload_bytes must be positive")
        return v


def get_settings() -> Settings:
    """Get application settings."""
    return Settings.from_env()
