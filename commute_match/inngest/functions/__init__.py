"""
Inngest Functions Registry
All background job functions are registered here
"""
from .embedding_tasks import (
    nightly_embedding_backfill_workflow,
    refresh_profile_embedding_workflow,
)

# List of all Inngest functions to be registered
INNGEST_FUNCTIONS = [
    refresh_profile_embedding_workflow,
    nightly_embedding_backfill_workflow,
]

__all__ = ["INNGEST_FUNCTIONS"]
