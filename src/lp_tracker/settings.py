"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    DEFAULT_BALANCER_V2_SUBGRAPH_URL,
    DEFAULT_BALANCER_V3_SUBGRAPH_URL,
    DEFAULT_BEEFY_API_URL,
    DEFAULT_BEEFY_SUBGRAPH_URL,
    DEFAULT_COINGECKO_API_URL,
    DEFAULT_REWARD_SYMBOLS,
    DEFAULT_SONIC_RPC_URL,
    DEFAULT_VAULTS,
)
from .domain import VaultKind

load_dotenv()

SECRET_FIELDS = {"subgraph_api_key", "coingecko_api_key"}


class VaultSettings(BaseModel):
    """One tracked pool or vault."""

    name: str
    kind: VaultKind
    address: str
    gauge_address: str | None = None
    oracle_id: str | None = None
    url: str = ""
    reward_symbols: list[str] | None = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def validate_kind_requirements(self) -> "VaultSettings":
        if self.kind == VaultKind.BALANCER_V2 and not self.gauge_address:
            raise ValueError(f"Vault '{self.name}': balancer-v2-pool requires gauge_address")
        if self.kind == VaultKind.BEEFY and not self.oracle_id:
            raise ValueError(f"Vault '{self.name}': beefy-vault requires oracle_id")
        return self


def _default_vaults() -> list[VaultSettings]:
    return [VaultSettings.model_validate(vault) for vault in DEFAULT_VAULTS]


class TrackerSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with LP_TRACKER_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- endpoints ---
    rpc_url: str = DEFAULT_SONIC_RPC_URL
    balancer_v2_subgraph_url: str = DEFAULT_BALANCER_V2_SUBGRAPH_URL
    balancer_v3_subgraph_url: str = DEFAULT_BALANCER_V3_SUBGRAPH_URL
    beefy_subgraph_url: str = DEFAULT_BEEFY_SUBGRAPH_URL
    coingecko_api_url: str = DEFAULT_COINGECKO_API_URL
    beefy_api_url: str = DEFAULT_BEEFY_API_URL

    # --- secrets ---
    subgraph_api_key: SecretStr | None = None
    coingecko_api_key: SecretStr | None = None

    # --- timeouts and concurrency ---
    request_timeout: float = Field(default=15.0, gt=0)
    vault_timeout_seconds: float | None = 120.0
    rpc_max_concurrent_calls: int = Field(default=5, ge=1)

    # --- pricing ---
    price_cache_ttl_seconds: float | None = None
    use_static_rates: bool = True

    # --- valuation ---
    reward_symbols: list[str] = Field(
        default_factory=lambda: list(DEFAULT_REWARD_SYMBOLS)
    )
    vaults: list[VaultSettings] = Field(default_factory=_default_vaults)

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="LP_TRACKER_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("subgraph_api_key", "coingecko_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("price_cache_ttl_seconds")
    @classmethod
    def validate_cache_ttl(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("price_cache_ttl_seconds must be positive when set")
        return v

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
        env_cfg = os.environ.get("LP_TRACKER_CONFIG")
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
                    local_config = Path("lp-tracker.toml")
                    user_config = Path.home() / ".config" / "lp-tracker" / "config.toml"
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [lp_tracker]
                body = data.get("lp_tracker", data)
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
        """Return the config as a JSON-friendly dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    def subgraph_url(self, kind: VaultKind) -> str:
        """Resolve the subgraph endpoint for a vault kind, filling in the API key."""
        template = {
            VaultKind.BALANCER_V2: self.balancer_v2_subgraph_url,
            VaultKind.BALANCER_V3: self.balancer_v3_subgraph_url,
            VaultKind.BEEFY: self.beefy_subgraph_url,
        }[kind]
        api_key = (
            self.subgraph_api_key.get_secret_value() if self.subgraph_api_key else ""
        )
        return template.replace("{api_key}", api_key)

    def reward_symbols_for(self, vault: VaultSettings) -> list[str]:
        """Ranked reward-token symbols of interest for ``vault``."""
        return vault.reward_symbols if vault.reward_symbols else self.reward_symbols
