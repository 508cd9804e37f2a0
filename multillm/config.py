import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from dotenv import load_dotenv

from multillm.errors import ConfigurationError

load_dotenv()

DEFAULT_BASE_URL = "https://api.intelligence.io.solutions/api/v1"
MAX_PARALLEL_WORKERS = 6


class MultiLLMConfig(BaseModel):
    ionet_api_key: str = Field(
        ...,
        description="io.net API key (REQUIRED)"
    )

    ionet_base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the OpenAI-compatible gateway"
    )

    log_dir: Optional[Path] = Field(
        default=None,
        description="Directory for JSONL logs (disabled when unset)"
    )

    log_level: str = Field(
        default="INFO",
        description="Log level for the structured logger"
    )

    catalog_ttl_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Age after which the cached model catalog is refreshed"
    )

    @field_validator('ionet_api_key')
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        if not v or v.strip() == '':
            raise ValueError(
                "IONET_API_KEY is required. "
                "Create a key in the io.net Intelligence dashboard."
            )
        return v.strip()

    @field_validator('ionet_base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(('http://', 'https://')):
            raise ValueError(f"IONET_BASE_URL must be an http(s) URL, got: {v!r}")
        return v.rstrip('/')

    @field_validator('log_dir')
    @classmethod
    def validate_log_dir(cls, v: Optional[Path]) -> Optional[Path]:
        if v is None or str(v).strip() == '':
            return None
        return Path(v).expanduser().resolve()

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR'):
            raise ValueError(f"Unsupported log level: {v}")
        return level

    model_config = {
        "frozen": True,
        "validate_assignment": True
    }


class DispatchConfig(BaseModel):
    """Per-call parameters for a multi-model dispatch.

    Ranges mirror what the gateway accepts; anything outside them is a
    configuration error raised before a request is built.
    """
    max_models: int = Field(default=6, ge=1, le=50)
    streaming: bool = True
    random_selection: bool = False
    balanced: bool = False
    max_tokens: int = Field(default=1024, ge=1, le=8192)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout: float = Field(default=300.0, gt=0)
    retries: int = Field(default=2, ge=0)
    retry_wait: float = Field(default=2.0, ge=0)
    monitor_timeout: float = Field(default=120.0, gt=0)
    parallel: bool = True
    max_workers: int = Field(default=MAX_PARALLEL_WORKERS, ge=1, le=MAX_PARALLEL_WORKERS)

    model_config = {
        "frozen": True,
        "extra": "forbid",
        "allow_inf_nan": False,
    }


def build_dispatch_config(**overrides) -> DispatchConfig:
    """Build a DispatchConfig, dropping None overrides and converting validation failures."""
    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        return DispatchConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e


def load_config(api_key: Optional[str] = None) -> MultiLLMConfig:
    try:
        return MultiLLMConfig(
            ionet_api_key=api_key if api_key is not None else os.getenv('IONET_API_KEY', ''),
            ionet_base_url=os.getenv('IONET_BASE_URL', DEFAULT_BASE_URL),
            log_dir=os.getenv('MULTILLM_LOG_DIR') or None,
            log_level=os.getenv('MULTILLM_LOG_LEVEL', 'INFO'),
            catalog_ttl_seconds=float(os.getenv('MULTILLM_CATALOG_TTL', '3600')),
        )
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e
    except ValueError as e:
        # float() on a malformed MULTILLM_CATALOG_TTL
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        field = ".".join(str(loc) for loc in err.get('loc', ())) or "config"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "Invalid configuration: " + "; ".join(parts)
