import logging
from dataclasses import dataclass
from typing import Iterable, Literal, Optional, Union

from thumbnail_pipeline.service.errors import BatchProcessingError, PipelineError
from thumbnail_pipeline.service.pipeline_service import ThumbnailPipeline
from thumbnail_pipeline.service.thumbnail_result import ThumbnailResult


@dataclass
class QueueMessage:
    message_id: str
    body: Union[bytes, str]


@dataclass
class MessageOutcome:
    message_id: str
    status: Literal["processed", "skipped", "failed"]
    result: Optional[ThumbnailResult] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"


class BatchProcessor:
    def __init__(self, pipeline: ThumbnailPipeline):
        self.pipeline = pipeline

    async def process_one(self, message: QueueMessage) -> MessageOutcome:
        logging.info(f"📩 Message received: {message.message_id}")
        try:
            result = await self.pipeline.process_message(message.body)
        except PipelineError as e:
            logging.error(f"❌ Message {message.message_id} failed ({e.kind}): {e}")
            return MessageOutcome(
                message_id=message.message_id,
                status="failed",
                error_kind=e.kind,
                error=str(e),
            )
        except Exception as e:
            logging.exception(f"❌ Message {message.message_id} failed unexpectedly: {e}")
            return MessageOutcome(
                message_id=message.message_id,
                status="failed",
                error_kind=PipelineError.kind,
                error=str(e),
            )

        return MessageOutcome(
            message_id=message.message_id, status=result.status, result=result
        )

    async def process_batch(self, messages: Iterable[QueueMessage]) -> list[MessageOutcome]:
        outcomes = []
        for message in messages:
            outcomes.append(await self.process_one(message))

        failed = sum(1 for o in outcomes if o.failed)
        logging.info(f"📦 Batch finished: {len(outcomes)} message(s), {failed} failed")
        return outcomes


def partial_batch_response(outcomes: Iterable[MessageOutcome]) -> dict:
    return {
        "batchItemFailures": [
            {"itemIdentifier": o.message_id} for o in outcomes if o.failed
        ]
    }


def raise_for_failures(outcomes: Iterable[MessageOutcome]) -> None:
    failed = [o for o in outcomes if o.failed]
    if failed:
        raise BatchProcessingError(failed)
