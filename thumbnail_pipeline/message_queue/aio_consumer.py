import logging

import aio_pika
from aio_pika.abc import AbstractIncomingMessage

from thumbnail_pipeline.config.env_config import get_settings
from thumbnail_pipeline.message_queue.batch_processor import (
    BatchProcessor,
    MessageOutcome,
    QueueMessage,
)
from thumbnail_pipeline.service.pipeline_service import ThumbnailPipeline

config = get_settings()


class AioConsumer:
    """Consumes bucket notifications published to RabbitMQ (e.g. by MinIO).

    Failed messages are requeued until the queue's TTL hands them to the
    dead-letter exchange.
    """

    def __init__(self, pipeline: ThumbnailPipeline):
        self.batch_processor = BatchProcessor(pipeline)

        self.amqp_url = f"amqp://{config.rabbitmq_user}:{config.rabbitmq_password}@{config.rabbitmq_host}:{config.rabbitmq_port}/"

        self.consume_exchange_name = config.rabbitmq_image_upload_exchange
        self.consume_queue_name = config.rabbitmq_image_upload_queue
        self.consume_routing_key = config.rabbitmq_image_upload_routing_key

        self.prefetch_count = config.rabbitmq_prefetch_count

        self.dlx_name = config.rabbitmq_image_upload_dlx
        self.dlx_routing_key = config.rabbitmq_image_upload_dlx_routing_key
        self.message_ttl_ms = config.rabbitmq_message_ttl_ms

        self._connection = None
        self._channel = None

        self._consume_exchange = None
        self._consume_queue = None

        self._dlx = None

    async def connect(self):
        self._connection = await aio_pika.connect_robust(self.amqp_url)
        self._channel = await self._connection.channel()

        await self._channel.set_qos(prefetch_count=self.prefetch_count)

        self._consume_exchange = await self._channel.declare_exchange(
            self.consume_exchange_name, aio_pika.ExchangeType.DIRECT, durable=True
        )

        self._dlx = await self._channel.declare_exchange(
            self.dlx_name, aio_pika.ExchangeType.DIRECT, durable=True
        )

        args = {
            "x-dead-letter-exchange": self.dlx_name,
            "x-dead-letter-routing-key": self.dlx_routing_key,
            "x-message-ttl": self.message_ttl_ms,
        }

        self._consume_queue = await self._channel.declare_queue(
            self.consume_queue_name, durable=True, arguments=args
        )
        await self._consume_queue.bind(
            self._consume_exchange, routing_key=self.consume_routing_key
        )
        logging.info(
            f"✅ RabbitMQ connected: {config.rabbitmq_host}:{config.rabbitmq_port}, queue: {self.consume_queue_name}"
        )

    async def on_message(self, message: AbstractIncomingMessage) -> MessageOutcome:
        message_id = message.message_id or str(message.delivery_tag)
        outcome = await self.batch_processor.process_one(
            QueueMessage(message_id=message_id, body=message.body)
        )

        if outcome.failed:
            await message.nack(requeue=True)
            logging.warning(f"↩️ Message {message_id} requeued ({outcome.error_kind})")
        else:
            await message.ack()
        return outcome

    async def consume(self):
        if not self._consume_queue:
            await self.connect()

        logging.info(f"📡 Consuming messages from queue {self.consume_queue_name}...")
        await self._consume_queue.consume(self.on_message, no_ack=False)

    async def close(self):
        if self._connection:
            await self._connection.close()
            logging.info("🔴 RabbitMQ connection closed")
