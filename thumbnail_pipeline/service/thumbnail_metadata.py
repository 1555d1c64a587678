from dataclasses import dataclass
from datetime import datetime, timezone
from urllib.parse import quote


@dataclass
class ThumbnailMetadata:
    processed_by: str
    processed_at: datetime
    original_file: str
    original_size: int

    @classmethod
    def now(cls, processed_by: str, original_file: str, original_size: int):
        return cls(
            processed_by=processed_by,
            processed_at=datetime.now(timezone.utc),
            original_file=original_file,
            original_size=original_size,
        )

    def as_object_metadata(self) -> dict[str, str]:
        original_file = self.original_file
        if not original_file.isascii():
            # user metadata is sent as HTTP headers
            original_file = quote(original_file, safe="/ ")
        return {
            "processed-by": self.processed_by,
            "processed-at": self.processed_at.isoformat(),
            "original-file": original_file,
            "original-size": str(self.original_size),
        }
