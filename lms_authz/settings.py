from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_CONFIG_DIR = Path(__file__).resolve().parent / "config"


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults point at the flag table and route policy bundled with the package.
    - Override via env vars (LMS_AUTHZ_*) to plug in a deployment-specific table.
    """

    model_config = SettingsConfigDict(env_prefix="LMS_AUTHZ_", extra="ignore")

    feature_flags_path: str | None = None
    route_policy_path: str | None = None
    flag_cache_size: int = 256
    log_level: str = "INFO"

    def resolved_feature_flags_path(self) -> Path:
        if self.feature_flags_path:
            return Path(self.feature_flags_path)
        return _CONFIG_DIR / "feature_flags.yaml"

    def resolved_route_policy_path(self) -> Path:
        if self.route_policy_path:
            return Path(self.route_policy_path)
        return _CONFIG_DIR / "route_policy.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
