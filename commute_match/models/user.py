"""User model.

Accounts are owned by the authentication layer; the matching engine only
reads the display name for presenting results.
"""

from commute_match import db
from commute_match.models import BaseModel


class User(BaseModel):
    """Application user who may own one set of matching preferences."""
    
    __tablename__ = "users"
    
    full_name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    
    matching_preference = db.relationship(
        "UserMatchingPreference",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    
    def to_dict(self):
        """Convert user to dictionary."""
        data = super().to_dict()
        data.update({
            "full_name": self.full_name,
            "email": self.email,
        })
        return data
    
    def __repr__(self):
        return f"<User {self.email}>"
