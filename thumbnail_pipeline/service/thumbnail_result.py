from dataclasses import dataclass
from typing import Literal, Optional


@dataclass
class ThumbnailResult:
    status: Literal["processed", "skipped"]
    reason: Optional[str] = None
    bucket: Optional[str] = None
    source_key: Optional[str] = None
    thumbnail_key: Optional[str] = None
    content_type: Optional[str] = None
    original_size: Optional[int] = None
    thumbnail_size: Optional[int] = None

    @classmethod
    def skipped(cls, reason: str, **kwargs) -> "ThumbnailResult":
        return cls(status="skipped", reason=reason, **kwargs)
