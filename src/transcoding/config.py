"""Configuration sections consumed by provider factories.

Each provider reads its own settings section from the environment using a
dedicated prefix (``ELASTICTRANSCODER_``, ``ENCODINGCOM_``,
``ELEMENTALCONDUCTOR_``, ``HYBRIK_``). Factories validate the values they
require; sections themselves accept empty defaults so that a process can run
with only a subset of providers configured.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    """Process-wide options shared by every adapter."""

    model_config = SettingsConfigDict(env_prefix="TRANSCODING_")

    log_level: str = Field(default="INFO", description="Root log level.")
    log_json: bool = Field(
        default=True,
        description="Render structured logs as JSON instead of console output.",
    )
    http_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Timeout for vendor HTTP calls; unset leaves deadlines to callers.",
    )


class ElasticTranscoderSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ELASTICTRANSCODER_")

    access_key_id: str = ""
    secret_access_key: str = ""
    region: str = "us-east-1"
    pipeline_id: str = ""


class EncodingComSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ENCODINGCOM_")

    user_id: str = ""
    user_key: str = ""
    destination: str = Field(
        default="",
        description="Base URI receiving outputs, e.g. s3://bucket/encoded/.",
    )
    region: str = ""
    endpoint: str = "https://manage.encoding.com"


class ElementalConductorSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ELEMENTALCONDUCTOR_")

    host: str = ""
    user_login: str = ""
    api_key: str = ""
    auth_expires: int = Field(
        default=30,
        ge=1,
        description="Lifetime of signed request headers in minutes.",
    )
    access_key_id: str = ""
    secret_access_key: str = ""
    destination: str = ""


class HybrikSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HYBRIK_")

    url: str = "https://api_demo.hybrik.com/v1"
    compliance_date: str = "20170601"
    oapi_key: str = ""
    oapi_secret: str = ""
    auth_key: str = ""
    auth_secret: str = ""
    destination: str = ""
    preset_path: str = "transcoding-api-presets"


@dataclass(slots=True)
class Config:
    """Aggregated settings handed to provider factories."""

    service: ServiceSettings = field(default_factory=ServiceSettings)
    elastictranscoder: ElasticTranscoderSettings = field(
        default_factory=ElasticTranscoderSettings
    )
    encodingcom: EncodingComSettings = field(default_factory=EncodingComSettings)
    elementalconductor: ElementalConductorSettings = field(
        default_factory=ElementalConductorSettings
    )
    hybrik: HybrikSettings = field(default_factory=HybrikSettings)


def load_config() -> Config:
    """Load every settings section from the environment."""

    return Config()


def missing_settings(settings: BaseSettings, *names: str) -> list[str]:
    """Return the names among ``names`` whose values are blank."""

    return [name for name in names if not str(getattr(settings, name) or "").strip()]
