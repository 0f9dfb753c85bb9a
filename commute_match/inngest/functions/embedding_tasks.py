"""
Embedding Background Tasks
Keeps profile embeddings in sync with the preferences they are built from
"""
import logging
import time
from typing import Any, Dict

import inngest

from commute_match.inngest import inngest_client
from commute_match.services import build_matching_preferences_service
from commute_match.services.matching_preferences_service import EMBEDDING_REFRESH_EVENT
from commute_match.utils.errors import ProfileNotFoundError
from config.settings import settings

logger = logging.getLogger(__name__)


@inngest_client.create_function(
    fn_id="refresh-profile-embedding",
    trigger=inngest.TriggerEvent(event=EMBEDDING_REFRESH_EVENT),
    name="Refresh Profile Embedding",
    retries=settings.embedding_max_retries,
)
async def refresh_profile_embedding_workflow(ctx: inngest.Context):
    """
    Regenerate the embedding of one profile after its preferences changed.

    Event data:
    {
        "user_id": 42,
        "reason": "updated"
    }
    """
    user_id = ctx.event.data.get("user_id")
    reason = ctx.event.data.get("reason", "unknown")

    logger.info(f"[INNGEST] Refreshing embedding for user {user_id} (reason: {reason})")

    result = await ctx.step.run(
        "generate-profile-embedding",
        generate_profile_embedding_step,
        user_id
    )

    if not result["success"]:
        logger.warning(f"[INNGEST] Skipped embedding refresh for user {user_id}: {result['error']}")
        return {"status": "skipped", "user_id": user_id, "error": result["error"]}

    return {"status": "completed", "user_id": user_id}


@inngest_client.create_function(
    fn_id="nightly-embedding-backfill",
    trigger=inngest.TriggerCron(cron="0 3 * * *"),  # 3 AM daily
    name="Nightly Embedding Backfill"
)
async def nightly_embedding_backfill_workflow(ctx: inngest.Context):
    """
    Generate embeddings for profiles that have none or a stale one.

    Catches refresh events that were lost or failed permanently.
    """
    logger.info("[INNGEST] Starting nightly embedding backfill")
    start_time = time.time()

    results = await ctx.step.run(
        "bulk-generate-embeddings",
        bulk_generate_embeddings_step,
        settings.bulk_embedding_max_limit
    )

    stats = await ctx.step.run("embedding-stats", embedding_stats_step)

    results["coverage"] = stats["embedding_coverage"]
    results["processing_time_seconds"] = round(time.time() - start_time, 2)

    logger.info(
        f"[INNGEST] Nightly backfill complete. "
        f"Processed: {results['processed']}, Successful: {results['successful']}, "
        f"Failed: {results['failed']}, Coverage: {results['coverage']}%"
    )
    return results


# Step Functions

def generate_profile_embedding_step(user_id: int) -> Dict[str, Any]:
    """Generate and store one embedding. Provider errors propagate so Inngest retries."""
    service = build_matching_preferences_service()
    try:
        service.generate_and_store_embedding(user_id)
    except ProfileNotFoundError as e:
        return {"success": False, "error": e.message}
    return {"success": True, "error": None}


def bulk_generate_embeddings_step(limit: int) -> Dict[str, int]:
    service = build_matching_preferences_service()
    return service.bulk_generate_embeddings(limit)


def embedding_stats_step() -> Dict[str, Any]:
    service = build_matching_preferences_service()
    return service.get_embedding_stats()
