"""
Configuration Management for VoltTrack MIS
==========================================
Centralized configuration for storage, the insights collaborator and the
dashboard API.
"""

import os
from typing import Optional
from pydantic import BaseModel, Field


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


class AuthConfig(BaseModel):
    """Azure authentication configuration."""

    use_managed_identity: bool = Field(
        default=False,
        description="Use Azure Managed Identity / DefaultAzureCredential for authentication"
    )
    token_scope: str = Field(
        default="https://cognitiveservices.azure.com/.default",
        description="OAuth scope for token requests"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Azure OpenAI API key, used when managed identity is off"
    )


class InsightsConfig(BaseModel):
    """Azure OpenAI settings for the insights and ask features."""

    endpoint: str = Field(
        default="",
        description="Azure OpenAI endpoint URL (empty disables insights)"
    )
    deployment: str = Field(
        default="gpt-4.1",
        description="Azure OpenAI deployment name"
    )
    api_version: str = Field(
        default="2025-03-01-preview",
        description="Azure OpenAI API version"
    )
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)


class StorageConfig(BaseModel):
    """Where the record set is persisted."""

    path: str = Field(
        default="data/volttrack_mis.json",
        description="JSON file backing the key-value store"
    )
    key: str = Field(
        default="volttrack_mis_data",
        description="Key holding the serialized record array"
    )
    seed_samples: bool = Field(
        default=True,
        description="Seed sample records when the key has never been written"
    )


class ServerConfig(BaseModel):
    """Dashboard API server settings."""

    host: str = "127.0.0.1"
    port: int = 8010
    cors_origins: list = Field(default_factory=lambda: ["*"])


class MISConfig(BaseModel):
    """Main configuration for the VoltTrack MIS application."""

    log_level: str = "INFO"
    auth: AuthConfig = Field(default_factory=AuthConfig)
    insights: InsightsConfig = Field(default_factory=InsightsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> "MISConfig":
        """Load configuration from environment variables."""

        auth = AuthConfig(
            use_managed_identity=_env_flag("USE_MANAGED_IDENTITY"),
            token_scope=os.environ.get("AZURE_TOKEN_SCOPE", "https://cognitiveservices.azure.com/.default"),
            api_key=os.environ.get("AZURE_OPENAI_API_KEY")
        )

        insights = InsightsConfig(
            endpoint=os.environ.get("AZURE_OPENAI_ENDPOINT", ""),
            deployment=os.environ.get("AZURE_OPENAI_DEPLOYMENT", "gpt-4.1"),
            api_version=os.environ.get("AZURE_OPENAI_API_VERSION", "2025-03-01-preview"),
            temperature=float(os.environ.get("MIS_INSIGHTS_TEMPERATURE", "0.2"))
        )

        storage = StorageConfig(
            path=os.environ.get("MIS_STORAGE_PATH", "data/volttrack_mis.json"),
            key=os.environ.get("MIS_STORAGE_KEY", "volttrack_mis_data"),
            seed_samples=_env_flag("MIS_SEED_SAMPLES", "true")
        )

        origins = os.environ.get("MIS_CORS_ORIGINS", "*")
        server = ServerConfig(
            host=os.environ.get("MIS_API_HOST", "127.0.0.1"),
            port=int(os.environ.get("MIS_API_PORT", "8010")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()]
        )

        return cls(
            log_level=os.environ.get("MIS_LOG_LEVEL", "INFO").upper(),
            auth=auth,
            insights=insights,
            storage=storage,
            server=server
        )


# Global config instance
config = MISConfig.from_env()
