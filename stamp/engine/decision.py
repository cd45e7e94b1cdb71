from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel


class Decision(BaseModel, frozen=True):
    """Answer to a capability query.

    Attributes:
        success: True if the value supports the requested operation.
        reason: If success=False, explains why.

    Note that this object's truthiness is tied to its success attribute.
    """

    success: bool = False
    reason: str = "Unknown"

    OK: ClassVar[Decision]

    def __bool__(self) -> bool:
        return self.success


Decision.OK = Decision(success=True, reason="")
