"""
Pydantic schemas for matching preferences validation.
"""
import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


VALID_DAYS = ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"]

# Single-digit hours are accepted and zero-padded
TIME_REGEX = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")

MAX_INTERESTS = 20
MAX_LANGUAGES = 10


def _validate_items(values: List[str], label: str, max_items: int, min_len: int, max_len: int) -> List[str]:
    if len(values) > max_items:
        raise ValueError(f"Cannot have more than {max_items} {label}")
    cleaned = []
    for value in values:
        if not isinstance(value, str) or len(value.strip()) < min_len:
            raise ValueError(f"Each {label[:-1]} must be at least {min_len} characters long")
        if len(value) > max_len:
            raise ValueError(f"Each {label[:-1]} must be less than {max_len} characters")
        cleaned.append(value.strip())
    return cleaned


class CommuteWindowSchema(BaseModel):
    """Preferred commute window, 24h "HH:mm". End before start means overnight."""

    start: str = Field(..., description="Window start, HH:mm")
    end: str = Field(..., description="Window end, HH:mm")

    model_config = ConfigDict(extra='forbid')

    @field_validator('start', 'end')
    @classmethod
    def validate_time(cls, v):
        match = TIME_REGEX.match(v.strip()) if isinstance(v, str) else None
        if not match:
            raise ValueError("Invalid commute time format. Use HH:mm format")
        return f"{int(match.group(1)):02d}:{match.group(2)}"

    @model_validator(mode='after')
    def validate_not_empty(self):
        if self.start == self.end:
            raise ValueError("Commute window start and end must differ")
        return self


class MatchingPreferencesBase(BaseModel):
    """Validation rules shared by create and update"""
    profession: Optional[str] = Field(None, description="Profession, 2-100 characters")
    about_me: Optional[str] = Field(None, max_length=1000, description="Free text about the user")
    languages: Optional[List[str]] = Field(None, description="Spoken languages")
    interests: Optional[List[str]] = Field(None, description="Interests")
    commute_window: Optional[CommuteWindowSchema] = Field(None, description="Preferred commute window")
    commute_days: Optional[List[str]] = Field(None, description="Preferred commute days")

    @field_validator('profession')
    @classmethod
    def validate_profession(cls, v):
        if v is None:
            return v
        v = v.strip()
        if v and len(v) < 2:
            raise ValueError("Profession must be at least 2 characters long")
        if len(v) > 100:
            raise ValueError("Profession must be less than 100 characters")
        return v

    @field_validator('interests')
    @classmethod
    def validate_interests(cls, v):
        if v is None:
            return v
        return _validate_items(v, "interests", MAX_INTERESTS, 2, 50)

    @field_validator('languages')
    @classmethod
    def validate_languages(cls, v):
        if v is None:
            return v
        return _validate_items(v, "languages", MAX_LANGUAGES, 2, 30)

    @field_validator('commute_days')
    @classmethod
    def validate_days(cls, v):
        """Upper-case, de-duplicate (keeping order) and reject unknown days"""
        if v is None:
            return v
        days = []
        invalid = []
        for day in v:
            upper = day.strip().upper() if isinstance(day, str) else str(day)
            if upper not in VALID_DAYS:
                invalid.append(str(day))
            elif upper not in days:
                days.append(upper)
        if invalid:
            raise ValueError(f"Invalid commute days: {', '.join(invalid)}")
        return days


class MatchingPreferencesCreateSchema(MatchingPreferencesBase):
    """Schema for creating matching preferences"""

    model_config = ConfigDict(extra='forbid')

    def to_fields(self) -> dict:
        data = self.model_dump(exclude={'commute_window'})
        for key in ('languages', 'interests', 'commute_days'):
            data[key] = data[key] or []
        data['profession'] = data['profession'] or ""
        data['about_me'] = data['about_me'] or ""
        window = self.commute_window
        data['commute_start'] = window.start if window else None
        data['commute_end'] = window.end if window else None
        return data


class MatchingPreferencesUpdateSchema(MatchingPreferencesBase):
    """Schema for partial updates; only fields present in the payload change"""

    model_config = ConfigDict(extra='forbid')

    @model_validator(mode='after')
    def require_any_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self

    def to_fields(self) -> dict:
        data = {}
        for key in self.model_fields_set:
            if key == 'commute_window':
                window = self.commute_window
                data['commute_start'] = window.start if window else None
                data['commute_end'] = window.end if window else None
                continue
            value = getattr(self, key)
            if key in ('languages', 'interests', 'commute_days'):
                value = value or []
            elif key in ('profession', 'about_me'):
                value = value or ""
            data[key] = value
        return data
