from __future__ import annotations

import os
from pathlib import Path

from lms_authz.settings import Settings


def test_defaults_point_at_bundled_config():
    with _env({}):
        settings = Settings()
    assert settings.flag_cache_size == 256
    assert settings.log_level == "INFO"
    assert settings.resolved_feature_flags_path().name == "feature_flags.yaml"
    assert settings.resolved_feature_flags_path().exists()
    assert settings.resolved_route_policy_path().exists()


def test_env_overrides():
    env = {
        "LMS_AUTHZ_FEATURE_FLAGS_PATH": "/etc/lms/flags.yaml",
        "LMS_AUTHZ_ROUTE_POLICY_PATH": "/etc/lms/routes.yaml",
        "LMS_AUTHZ_FLAG_CACHE_SIZE": "16",
        "LMS_AUTHZ_LOG_LEVEL": "DEBUG",
    }
    with _env(env):
        settings = Settings()
    assert settings.resolved_feature_flags_path() == Path("/etc/lms/flags.yaml")
    assert settings.resolved_route_policy_path() == Path("/etc/lms/routes.yaml")
    assert settings.flag_cache_size == 16
    assert settings.log_level == "DEBUG"


def _env(env: dict):
    class _Env:
        def __enter__(self):
            self._saved = os.environ.copy()
            os.environ.clear()
            os.environ.update(env)
            return self

        def __exit__(self, *args):
            os.environ.clear()
            os.environ.update(self._saved)
            return False

    return _Env()
