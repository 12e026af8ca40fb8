"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import CREATE_CALL_ADDRESS, DEFAULT_SAFE_VERSION, MULTI_SEND_ADDRESS

load_dotenv()

SECRET_FIELDS = {"private_key"}


class HashSource(str, Enum):
    CONTRACT = "contract"
    LOCAL = "local"


class BatcherSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with SAFE_BATCHER_)
    - Config file (TOML), lowest precedence
    """

    # --- global toggles ---
    dry_run: bool = True

    # --- endpoints ---
    rpc_url: str | None = None
    chain_id: int | None = None
    request_timeout: float = Field(default=10.0, gt=0)

    # --- safe / signing ---
    safe_address: str | None = None
    private_key: SecretStr | None = None
    origin: str | None = None

    # --- helper contracts ---
    multi_send_address: str = MULTI_SEND_ADDRESS
    create_call_address: str = CREATE_CALL_ADDRESS

    # --- hashing ---
    hash_source: HashSource = HashSource.CONTRACT
    safe_version: str = DEFAULT_SAFE_VERSION

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SAFE_BATCHER_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("private_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("SAFE_BATCHER_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("safe-batcher.toml")
                    user_config = (
                        Path.home() / ".config" / "safe-batcher" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [safe_batcher]
                body = data.get("safe_batcher", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        if self.private_key:
            data["private_key"] = "***redacted***"
        return data

    @property
    def rpc_url_required(self) -> str:
        """Get rpc_url, raising ValueError if not set."""
        if self.rpc_url is None:
            raise ValueError("rpc_url must be configured")
        return self.rpc_url

    @property
    def safe_address_required(self) -> str:
        """Get safe_address, raising ValueError if not set."""
        if self.safe_address is None:
            raise ValueError("safe_address must be configured")
        return self.safe_address

    @property
    def private_key_required(self) -> SecretStr:
        """Get private_key, raising ValueError if not set."""
        if self.private_key is None:
            raise ValueError("private_key must be configured")
        return self.private_key
