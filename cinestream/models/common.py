from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Universal ID aliases used across the domain models.  Documents are keyed by
# an opaque string ``_id`` (a UUID4 rendered as text).
# ---------------------------------------------------------------------------
MovieID = str
ReviewID = str
CommentID = str
DeviceID = str

__all__ = [
    "ProblemDetail",
    "MessageResponse",
    "MovieID",
    "ReviewID",
    "CommentID",
    "DeviceID",
    "utc_now_iso",
]


class ProblemDetail(BaseModel):
    type: str = Field(default="about:blank")
    title: str
    status: int
    detail: Optional[str] = None
    instance: Optional[str] = None
    # Field-level validation failures (400 responses only)
    errors: Optional[List[Dict[str, Any]]] = None
    # Exception summary, only when error details are exposed
    error: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 text.

    Timestamps are stored as text so that lexical order equals time order
    for the Data API ``sort`` clause.
    """

    return datetime.now(timezone.utc).isoformat()
