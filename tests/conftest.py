"""Shared fixtures: an in-memory object store and a wired pipeline."""

import pytest

from thumbnail_pipeline.service.errors import SourceFetchError
from thumbnail_pipeline.service.pipeline_service import ThumbnailPipeline
from thumbnail_pipeline.service.thumbnail_service import ThumbnailService
from thumbnail_pipeline.storage.object_storage import ObjectStorage, SourceObject


class InMemoryStorage(ObjectStorage):
    """Object store fake recording every get and put."""

    def __init__(self):
        self.objects = {}
        self.gets = []
        self.puts = []

    def add(self, bucket, key, payload, content_type=None):
        self.objects[(bucket, key)] = {
            "payload": payload,
            "content_type": content_type,
            "metadata": {},
        }

    async def get_object(self, bucket_name, key):
        self.gets.append((bucket_name, key))
        try:
            stored = self.objects[(bucket_name, key)]
        except KeyError as e:
            raise SourceFetchError(f"NoSuchKey: {bucket_name}/{key}") from e
        return SourceObject(
            bucket=bucket_name,
            key=key,
            payload=stored["payload"],
            content_type=stored["content_type"],
        )

    async def put_object(self, bucket_name, key, payload, content_type, metadata):
        self.puts.append((bucket_name, key))
        self.objects[(bucket_name, key)] = {
            "payload": payload,
            "content_type": content_type,
            "metadata": dict(metadata),
        }


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def thumbnail_service():
    return ThumbnailService(max_size=(300, 300), prefix="thumbnails/", quality=80)


@pytest.fixture
def pipeline(storage, thumbnail_service):
    return ThumbnailPipeline(
        storage=storage,
        thumbnail_service=thumbnail_service,
        processor_name="lambda-thumbnail-processor",
    )
