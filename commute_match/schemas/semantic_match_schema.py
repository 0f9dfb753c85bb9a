"""
Pydantic schemas for commute partner matching and embedding management.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MatchWeightsSchema(BaseModel):
    """Per-component weights. Missing keys fall back to the defaults."""
    time: Optional[float] = Field(None, ge=0, description="Commute window overlap")
    days: Optional[float] = Field(None, ge=0, description="Commute days Jaccard")
    lang: Optional[float] = Field(None, ge=0, description="Languages Jaccard")
    ints: Optional[float] = Field(None, ge=0, description="Interests Jaccard")
    sem: Optional[float] = Field(None, ge=0, description="Embedding similarity")
    prof: Optional[float] = Field(None, ge=0, description="Profession match")

    model_config = ConfigDict(extra='forbid')


class SemanticMatchRequestSchema(BaseModel):
    """Schema for a match request (query string or JSON body)"""
    weights: Optional[MatchWeightsSchema] = None
    limit: Optional[int] = Field(None, gt=0, description="Maximum number of matches")
    min_score: Optional[float] = Field(None, ge=0, description="Minimum hybrid score")

    model_config = ConfigDict(extra='ignore')


class BulkEmbeddingRequestSchema(BaseModel):
    """Schema for the embedding backfill request"""
    limit: Optional[int] = Field(None, ge=1, description="Profiles to process in this run")


class EmbeddingStatsSchema(BaseModel):
    """Embedding coverage across all matching profiles"""
    total_users: int = Field(..., ge=0)
    users_with_embeddings: int = Field(..., ge=0)
    users_without_embeddings: int = Field(..., ge=0)
    embedding_coverage: float = Field(..., ge=0, le=100, description="Percent, 2 decimals")
