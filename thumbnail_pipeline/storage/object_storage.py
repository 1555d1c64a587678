from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class SourceObject:
    bucket: str
    key: str
    payload: bytes
    content_type: Optional[str] = None


class ObjectStorage(ABC):

    @abstractmethod
    async def get_object(self, bucket_name: str, key: str) -> SourceObject:
        pass

    @abstractmethod
    async def put_object(
        self,
        bucket_name: str,
        key: str,
        payload: bytes,
        content_type: str,
        metadata: dict[str, str],
    ) -> None:
        pass
