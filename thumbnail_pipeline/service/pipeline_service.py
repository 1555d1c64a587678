import logging
from typing import Optional, Union

from thumbnail_pipeline.config.env_config import get_settings
from thumbnail_pipeline.message_queue.consume_message import parse_envelope
from thumbnail_pipeline.service.errors import SourceFetchError
from thumbnail_pipeline.service.thumbnail_metadata import ThumbnailMetadata
from thumbnail_pipeline.service.thumbnail_result import ThumbnailResult
from thumbnail_pipeline.service.thumbnail_service import ThumbnailService
from thumbnail_pipeline.storage.object_storage import ObjectStorage

config = get_settings()

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ThumbnailPipeline:
    """Turns one storage notification into one thumbnail object.

    ``process_message`` returns a ``ThumbnailResult`` for processed and
    benignly skipped messages and raises a ``PipelineError`` for anything the
    delivery layer should retry or dead-letter.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        thumbnail_service: ThumbnailService,
        processor_name: Optional[str] = None,
    ):
        self.storage = storage
        self.thumbnail_service = thumbnail_service
        self.processor_name = processor_name or config.processor_name

    @staticmethod
    def content_type_for(source_content_type: Optional[str], mime_type: Optional[str]) -> str:
        if mime_type is None:
            return source_content_type or DEFAULT_CONTENT_TYPE
        if source_content_type and source_content_type.split(";")[0].strip().lower() == mime_type:
            return source_content_type
        # the declared type must describe the re-encoded bytes
        return mime_type

    async def process_message(self, body: Union[bytes, str]) -> ThumbnailResult:
        envelope = parse_envelope(body)

        if envelope.is_test_event:
            logging.info("⏭️ Skipping storage test event")
            return ThumbnailResult.skipped("test-event")

        record = envelope.first_record
        if record is None:
            logging.info("⏭️ No Records found in message body, skipping")
            return ThumbnailResult.skipped("no-records")

        bucket = record.bucket
        key = record.key

        if self.thumbnail_service.is_thumbnail_key(key):
            logging.info(f"⏭️ Loop prevention: {key} is already a thumbnail, skipping")
            return ThumbnailResult.skipped("thumbnail-key", bucket=bucket, source_key=key)

        logging.info(f"📥 Processing image from {bucket}/{key}")
        source = await self.storage.get_object(bucket, key)
        if not source.payload:
            raise SourceFetchError(f"{bucket}/{key} returned no image data")

        original_size = len(source.payload)
        logging.info(
            f"✅ Object downloaded: {original_size} bytes, {source.content_type or 'no content type'}"
        )

        thumbnail_key = self.thumbnail_service.generate_thumbnail_object_key(key)
        thumbnail = self.thumbnail_service.generate_thumbnail(source.payload, thumbnail_key)
        content_type = self.content_type_for(source.content_type, thumbnail.mime_type)

        metadata = ThumbnailMetadata.now(
            processed_by=self.processor_name,
            original_file=key,
            original_size=original_size,
        )
        await self.storage.put_object(
            bucket,
            thumbnail_key,
            thumbnail.payload,
            content_type,
            metadata.as_object_metadata(),
        )

        logging.info(
            f"📤 Thumbnail uploaded to {bucket}/{thumbnail_key} "
            f"({thumbnail.width}x{thumbnail.height}, {len(thumbnail.payload)} bytes, {content_type})"
        )
        return ThumbnailResult(
            status="processed",
            bucket=bucket,
            source_key=key,
            thumbnail_key=thumbnail_key,
            content_type=content_type,
            original_size=original_size,
            thumbnail_size=len(thumbnail.payload),
        )
