"""FastAPI dependencies for the readiness API.

Tests replace these through `app.dependency_overrides`.
"""

from __future__ import annotations

from functools import lru_cache

from liftlog.config.settings import settings
from liftlog.db.session import get_session_factory
from liftlog.models.readiness_config import ReadinessConfig, readiness_config_from_settings
from liftlog.persistence.activity_store import ExternalActivityStore
from liftlog.services.readiness_service import ReadinessService, create_readiness_service


@lru_cache(maxsize=1)
def get_activity_store() -> ExternalActivityStore:
    # One store per process so its lock serializes every writer
    return ExternalActivityStore(get_session_factory())


def get_readiness_service() -> ReadinessService:
    return create_readiness_service(settings, get_activity_store())


def get_readiness_config() -> ReadinessConfig:
    return readiness_config_from_settings(settings)
