"""
utils/sanitize.py

Sanitizing helpers for user-written text (review comments, status lines).
"""

from typing import ClassVar

import bleach
from pydantic import BaseModel, ValidationInfo, field_validator

# No markup is allowed in reviews or status text.
ALLOWED_TAGS = []
ALLOWED_ATTRIBUTES = {}


def sanitize_text(user_input: str, max_length: int = 500) -> str:
    """
    Clean user input to prevent XSS and enforce length limits.
    """
    if not user_input:
        return ""

    trimmed = user_input[:max_length]

    cleaned = bleach.clean(
        trimmed,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True
    )

    return cleaned.strip()


class SanitizedModel(BaseModel):
    """
    Base model that sanitizes every incoming string field.
    Identifiers listed in `RAW_FIELDS` are left untouched.
    """

    RAW_FIELDS: ClassVar[set] = {"id", "device_id", "venue_id", "user_id"}

    @field_validator("*", mode="before")
    @classmethod
    def sanitize_all_strings(cls, v, info: ValidationInfo):
        if isinstance(v, str):
            if info.field_name in cls.RAW_FIELDS:
                return v
            return sanitize_text(v, max_length=1000)
        return v
