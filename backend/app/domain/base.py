"""
Shared base for partial-update payloads

Author: TM3
Date: 2025-10-17
"""
from typing import Any, ClassVar, FrozenSet

from pydantic import BaseModel, ValidationInfo, field_validator


class PartialUpdate(BaseModel):
    """
    PUT payload where omitted fields are left untouched.

    An explicit null is only accepted for fields listed in NULLABLE (columns
    that may hold NULL); anywhere else it is a validation error (400) instead
    of a NOT NULL violation at write time.
    """

    NULLABLE: ClassVar[FrozenSet[str]] = frozenset()

    @field_validator("*")
    @classmethod
    def _reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name not in cls.NULLABLE:
            raise ValueError("may not be null")
        return value
