"""
User Matching Preference Model
Stores the commute-partner profile of a user together with its semantic embedding.

The embedding is derived from embedding_text (profession, about me, interests,
languages). Both are cleared together whenever one of those fields changes, so a
stored embedding always belongs to the current text.
"""

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime, Integer, String, Text

from commute_match import db
from commute_match.models import BaseModel
from config.settings import settings


# Fields that feed the embedding text; changing any of them invalidates the embedding
EMBEDDING_SOURCE_FIELDS = ("profession", "about_me", "interests", "languages")


class UserMatchingPreference(BaseModel):
    """One commute-partner profile per user."""

    __tablename__ = "user_matching_preferences"

    user_id = db.Column(
        Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    # Profile
    profession = db.Column(String(100), nullable=False, default="")
    about_me = db.Column(Text, nullable=False, default="")
    languages = db.Column(db.JSON, nullable=False, default=list)
    interests = db.Column(db.JSON, nullable=False, default=list)

    # Commute window ("HH:mm", 24h). Segments are derived on read, never stored.
    commute_start = db.Column(String(5), nullable=True)
    commute_end = db.Column(String(5), nullable=True)
    commute_days = db.Column(db.JSON, nullable=False, default=list)  # ["MONDAY", "WEDNESDAY"]

    # Semantic matching data
    embedding = db.Column(Vector(settings.gemini_embedding_dimension), nullable=True)
    embedding_text = db.Column(Text, nullable=True)
    embedding_version = db.Column(String(100), nullable=True)  # model that produced the vector
    embedding_updated_at = db.Column(DateTime, nullable=True)

    user = db.relationship("User", back_populates="matching_preference")

    @property
    def has_embedding(self) -> bool:
        # pgvector returns numpy arrays, so avoid truthiness checks on the vector
        return self.embedding is not None and len(self.embedding) > 0

    def clear_embedding(self) -> None:
        """Drop the cached embedding and the text it was generated from."""
        self.embedding = None
        self.embedding_text = None
        self.embedding_version = None
        self.embedding_updated_at = None

    def to_dict(self, include_embedding: bool = False):
        """
        Convert preferences to dictionary

        Args:
            include_embedding: Include the raw embedding vector
        """
        data = super().to_dict()
        data.update({
            "user_id": self.user_id,
            "profession": self.profession,
            "about_me": self.about_me,
            "languages": list(self.languages or []),
            "interests": list(self.interests or []),
            "commute_window": (
                {"start": self.commute_start, "end": self.commute_end}
                if self.commute_start and self.commute_end else None
            ),
            "commute_days": list(self.commute_days or []),
            "has_embedding": self.has_embedding,
            "embedding_text": self.embedding_text,
            "embedding_version": self.embedding_version,
            "embedding_updated_at": (
                self.embedding_updated_at.isoformat() if self.embedding_updated_at else None
            ),
        })
        if include_embedding:
            data["embedding"] = [float(x) for x in self.embedding] if self.has_embedding else None
        return data

    def __repr__(self):
        return f"<UserMatchingPreference user_id={self.user_id}>"
