import asyncio
from functools import lru_cache
from typing import Optional

from thumbnail_pipeline.config.env_config import get_settings
from thumbnail_pipeline.message_queue.batch_processor import (
    BatchProcessor,
    QueueMessage,
    partial_batch_response,
    raise_for_failures,
)
from thumbnail_pipeline.service.pipeline_service import ThumbnailPipeline
from thumbnail_pipeline.service.thumbnail_service import ThumbnailService
from thumbnail_pipeline.storage.aio_boto import AioBoto

config = get_settings()


@lru_cache
def get_pipeline() -> ThumbnailPipeline:
    return ThumbnailPipeline(storage=AioBoto(), thumbnail_service=ThumbnailService())


async def _run(pipeline: ThumbnailPipeline, messages: list[QueueMessage]):
    try:
        return await BatchProcessor(pipeline).process_batch(messages)
    finally:
        # the client is bound to this invocation's event loop
        if hasattr(pipeline.storage, "close"):
            await pipeline.storage.close()


def handler(event, context=None, pipeline: Optional[ThumbnailPipeline] = None):
    """SQS event source entry point.

    Returns a partial batch response so only failed messages become visible
    again. With ``report_batch_item_failures`` disabled every failure fails
    the whole invocation and the batch is redelivered.
    """
    pipeline = pipeline or get_pipeline()
    messages = [
        QueueMessage(message_id=record["messageId"], body=record["body"])
        for record in event.get("Records", [])
    ]

    outcomes = asyncio.run(_run(pipeline, messages))

    if not config.report_batch_item_failures:
        raise_for_failures(outcomes)
        return {"batchItemFailures": []}
    return partial_batch_response(outcomes)
