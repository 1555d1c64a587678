import asyncio
import logging

import aioboto3

from thumbnail_pipeline.config.env_config import get_settings
from thumbnail_pipeline.message_queue.batch_processor import BatchProcessor, QueueMessage
from thumbnail_pipeline.service.pipeline_service import ThumbnailPipeline

config = get_settings()


class SqsPoller:
    """Long-polls an SQS queue and deletes only the messages that succeeded.

    Failed messages are left alone; the queue's visibility timeout makes them
    reappear and its redrive policy moves them to the dead-letter queue.
    """

    def __init__(self, pipeline: ThumbnailPipeline, session=None, queue_url=None):
        self.batch_processor = BatchProcessor(pipeline)
        self.queue_url = queue_url or config.sqs_queue_url
        self.batch_size = config.sqs_batch_size
        self.wait_time_seconds = config.sqs_wait_time_seconds

        self._session = session
        self._sqs_client_cm = None
        self._sqs_client = None

    async def connect(self):
        if self._sqs_client:
            return
        if not self.queue_url:
            raise ValueError("SQS_QUEUE_URL is not configured")

        if self._session is None:
            self._session = aioboto3.Session()
        self._sqs_client_cm = self._session.client(
            "sqs",
            region_name=config.storage_region,
            aws_access_key_id=config.storage_access_key,
            aws_secret_access_key=config.storage_secret_key,
        )
        self._sqs_client = await self._sqs_client_cm.__aenter__()
        logging.info(f"✅ SQS connected: {self.queue_url}")

    async def poll_once(self):
        await self.connect()
        response = await self._sqs_client.receive_message(
            QueueUrl=self.queue_url,
            MaxNumberOfMessages=self.batch_size,
            WaitTimeSeconds=self.wait_time_seconds,
        )
        raw_messages = response.get("Messages", [])
        if not raw_messages:
            return []

        receipts = {m["MessageId"]: m["ReceiptHandle"] for m in raw_messages}
        outcomes = await self.batch_processor.process_batch(
            QueueMessage(message_id=m["MessageId"], body=m["Body"]) for m in raw_messages
        )

        entries = [
            {"Id": str(i), "ReceiptHandle": receipts[o.message_id]}
            for i, o in enumerate(outcomes)
            if not o.failed
        ]
        if entries:
            result = await self._sqs_client.delete_message_batch(
                QueueUrl=self.queue_url, Entries=entries
            )
            for failure in result.get("Failed", []):
                logging.error(f"❌ Could not delete message entry {failure['Id']}: {failure.get('Message')}")
        return outcomes

    async def consume(self):
        await self.connect()
        logging.info(f"📡 Consuming messages from {self.queue_url}...")
        while True:
            try:
                await self.poll_once()
            except Exception as e:
                # receive/delete errors; messages are redelivered after the visibility timeout
                logging.error(f"❌ SQS polling failed: {e}")
                await asyncio.sleep(1)

    async def close(self):
        if self._sqs_client_cm:
            await self._sqs_client_cm.__aexit__(None, None, None)
            self._sqs_client_cm = None
            self._sqs_client = None
            logging.info("🔴 SQS connection closed")
