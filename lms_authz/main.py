from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from lms_authz.authz.feature_flags import FeatureFlagDeriver
from lms_authz.authz.route_policy import load_route_policy
from lms_authz.logging_config import configure_app_logging
from lms_authz.routers import access, health
from lms_authz.settings import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        flags_path = settings.resolved_feature_flags_path()
        app.state.flag_deriver = FeatureFlagDeriver.from_yaml(flags_path, cache_size=settings.flag_cache_size)
        logger.info("Loaded feature flag table: %s", flags_path)

        policy_path = settings.resolved_route_policy_path()
        app.state.route_policy = load_route_policy(policy_path)
        logger.info("Loaded route policy: %s", policy_path)

        yield
        app.state.flag_deriver.cache_clear()

    app = FastAPI(title="lms-authz", lifespan=lifespan)

    app.include_router(health.router)
    app.include_router(access.router)

    return app


app = create_app()
