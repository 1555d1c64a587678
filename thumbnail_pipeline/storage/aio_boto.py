import logging

import aioboto3

from thumbnail_pipeline.config.custom_logger import time_logger
from thumbnail_pipeline.config.env_config import get_settings
from thumbnail_pipeline.service.errors import SourceFetchError, StorageWriteError
from thumbnail_pipeline.storage.object_storage import ObjectStorage, SourceObject

config = get_settings()


class AioBoto(ObjectStorage):
    def __init__(self, session=None):
        self.endpoint_url = config.storage_endpoint_url
        self._session = session
        self.s3_client_cm = None
        self.s3_client = None

    async def connect(self):
        if self.s3_client:
            return

        if self._session is None:
            self._session = aioboto3.Session()
        self.s3_client_cm = self._session.client(
            "s3",
            endpoint_url=self.endpoint_url,
            region_name=config.storage_region,
            aws_access_key_id=config.storage_access_key,
            aws_secret_access_key=config.storage_secret_key,
        )
        self.s3_client = await self.s3_client_cm.__aenter__()

    @time_logger
    async def get_object(self, bucket_name: str, key: str) -> SourceObject:
        await self.connect()
        try:
            response = await self.s3_client.get_object(Bucket=bucket_name, Key=key)
            async with response["Body"] as stream:
                payload = await stream.read()
        except Exception as e:
            logging.error(f"❌ Object download failed: {bucket_name}/{key}: {e}")
            raise SourceFetchError(f"could not fetch {bucket_name}/{key}: {e}") from e

        return SourceObject(
            bucket=bucket_name,
            key=key,
            payload=payload,
            content_type=response.get("ContentType"),
        )

    @time_logger
    async def put_object(
        self,
        bucket_name: str,
        key: str,
        payload: bytes,
        content_type: str,
        metadata: dict[str, str],
    ) -> None:
        await self.connect()
        try:
            await self.s3_client.put_object(
                Bucket=bucket_name,
                Key=key,
                Body=payload,
                ContentType=content_type,
                Metadata=metadata,
            )
        except Exception as e:
            logging.error(f"❌ Object upload failed: {bucket_name}/{key}: {e}")
            raise StorageWriteError(f"could not write {bucket_name}/{key}: {e}") from e
        logging.info(f"✅ Object uploaded: {key} (Bucket: {bucket_name})")

    async def close(self):
        if self.s3_client_cm:
            await self.s3_client_cm.__aexit__(None, None, None)
            self.s3_client_cm = None
            self.s3_client = None
        logging.info("🔴 Storage connection closed")
