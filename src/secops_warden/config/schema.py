"""Pydantic models for SecOps Warden configuration.

Nested section models use plain ``BaseModel``.  Only the top-level
:class:`WardenConfig` extends ``BaseSettings``, so overrides come from
``SECOPS_WARDEN_<SECTION>__<FIELD>`` environment variables.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from secops_warden.activities.scheduler import Activity


class ServiceSection(BaseModel):
    """Process-level settings."""

    log_level: str = "info"
    host: str = "127.0.0.1"
    port: int = 18789


class EngineSection(BaseModel):
    """Reasoning engine settings."""

    backend: str = "anthropic"  # "anthropic" | "ollama"
    anthropic_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "llama3.1:8b"
    system_prompt: str = ""
    max_tool_iterations: int = 10
    tool_timeout_seconds: int = 60


class ClickHouseConfig(BaseModel):
    """Query endpoint (ClickHouse HTTP interface)."""

    addr: str = "localhost:8123"
    username: str = ""
    password: str = ""

    def base_url(self) -> str:
        addr = self.addr or "localhost:8123"
        if addr.startswith(("http://", "https://")):
            return addr
        return f"http://{addr}"


class SheikahConfig(BaseModel):
    """Action endpoint (internal management API)."""

    base_url: str = "http://localhost:8080"
    api_key: str = ""


class EndpointConfig(BaseModel):
    """An extra or overriding action endpoint."""

    method: str = "POST"
    path: str
    body: str = ""


class ActivityConfig(BaseModel):
    """Configuration for a single scheduled activity."""

    enabled: bool = True
    schedule: str = "30m"
    mode: str = "manual"  # "auto" | "manual"


class SecOpsSection(BaseModel):
    """Security operations settings."""

    enabled: bool = True
    notification_capacity: int = 10
    clickhouse: ClickHouseConfig = Field(default_factory=ClickHouseConfig)
    sheikah: SheikahConfig = Field(default_factory=SheikahConfig)
    queries: dict[str, str] = Field(default_factory=dict)
    endpoints: dict[str, EndpointConfig] = Field(default_factory=dict)
    activities: dict[str, ActivityConfig] = Field(default_factory=dict)

    def build_activities(self) -> list[Activity]:
        """Turn the configured activities into scheduler :class:`Activity` values."""
        return [
            Activity(name=name, schedule=cfg.schedule, mode=cfg.mode, enabled=cfg.enabled)
            for name, cfg in self.activities.items()
        ]


class WardenConfig(BaseSettings):
    """Top-level SecOps Warden configuration model.

    Maps to the TOML structure ``[service]`` / ``[engine]`` / ``[secops]``.
    All fields are optional with sensible defaults. The config file lives
    at ``~/.config/secops-warden/config.toml``.
    """

    model_config = SettingsConfigDict(env_prefix="SECOPS_WARDEN_", env_nested_delimiter="__")

    service: ServiceSection = Field(default_factory=ServiceSection)
    engine: EngineSection = Field(default_factory=EngineSection)
    secops: SecOpsSection = Field(default_factory=SecOpsSection)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats the file and default values passed as kwargs.
        return env_settings, init_settings, dotenv_settings, file_secret_settings
