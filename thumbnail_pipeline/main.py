import asyncio
import logging

from thumbnail_pipeline.config.env_config import get_settings
from thumbnail_pipeline.message_queue.aio_consumer import AioConsumer
from thumbnail_pipeline.message_queue.sqs_poller import SqsPoller
from thumbnail_pipeline.service.pipeline_service import ThumbnailPipeline
from thumbnail_pipeline.service.thumbnail_service import ThumbnailService
from thumbnail_pipeline.storage.aio_boto import AioBoto

config = get_settings()


def build_consumer(pipeline: ThumbnailPipeline):
    if config.queue_backend == "rabbitmq":
        return AioConsumer(pipeline=pipeline)
    return SqsPoller(pipeline=pipeline)


async def main():
    storage = AioBoto()
    await storage.connect()
    pipeline = ThumbnailPipeline(storage=storage, thumbnail_service=ThumbnailService())

    consumer = build_consumer(pipeline)
    await consumer.connect()

    consume_task = asyncio.create_task(consumer.consume())

    try:
        while True:
            await asyncio.sleep(1)
            if consume_task.done() and consume_task.exception():
                raise consume_task.exception()
    finally:
        if not consume_task.done():
            consume_task.cancel()
            try:
                await consume_task
            except asyncio.CancelledError:
                logging.info("consume_task cancelled")
        await consumer.close()
        await storage.close()

        current_task = asyncio.current_task()
        pending = [task for task in asyncio.all_tasks() if task is not current_task]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        loop = asyncio.get_running_loop()
        await loop.shutdown_asyncgens()

        logging.info("Resources released, worker stopped.")


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.info("Worker interrupted.")


if __name__ == "__main__":
    run()
