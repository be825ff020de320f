from __future__ import annotations

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field


class RequestReport(BaseModel):
    """Serializable summary of one cutout request."""

    asset_id: str
    status: Literal["idle", "busy", "ready", "failed", "cancelled"]
    error_kind: Optional[str] = None
    cause: str = ""
    width: int = 0
    height: int = 0
    foreground_coverage: float = 0.0
    timings: Dict[str, float] = Field(default_factory=dict)
