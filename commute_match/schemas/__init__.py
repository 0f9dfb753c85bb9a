"""Pydantic schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel


class HealthCheckSchema(BaseModel):
    """Schema for health check response."""

    status: str
    timestamp: datetime
    environment: str


class AppInfoSchema(BaseModel):
    """Schema for app info response."""

    name: str
    version: str
    environment: str
    debug: bool
    vector_index: str
    timestamp: datetime


from commute_match.schemas.matching_preferences_schema import (  # noqa: E402
    CommuteWindowSchema,
    MatchingPreferencesCreateSchema,
    MatchingPreferencesUpdateSchema,
)
from commute_match.schemas.semantic_match_schema import (  # noqa: E402
    BulkEmbeddingRequestSchema,
    EmbeddingStatsSchema,
    MatchWeightsSchema,
    SemanticMatchRequestSchema,
)

__all__ = [
    "HealthCheckSchema",
    "AppInfoSchema",
    "CommuteWindowSchema",
    "MatchingPreferencesCreateSchema",
    "MatchingPreferencesUpdateSchema",
    "BulkEmbeddingRequestSchema",
    "EmbeddingStatsSchema",
    "MatchWeightsSchema",
    "SemanticMatchRequestSchema",
]
