"""
Inngest Client Configuration
Centralized Inngest client for background embedding jobs
"""
import logging

from inngest import Inngest

from config.settings import settings

logger = logging.getLogger(__name__)

# INNGEST_DEV=false means production mode
is_production = not settings.inngest_dev

# Self-hosted Inngest needs an explicit api_base_url
inngest_client = Inngest(
    app_id="commute-match",
    event_key=settings.inngest_event_key or None,
    signing_key=settings.inngest_signing_key if is_production else None,
    is_production=is_production,
    api_base_url=settings.inngest_base_url if settings.inngest_base_url else None,
)

logger.info(
    f"[INNGEST] Initialized - Production Mode: {is_production}, API URL: {settings.inngest_base_url}"
)

__all__ = ["inngest_client"]
