from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    run_mode: str = "local"
    log_level: str = "INFO"

    storage_endpoint_url: Optional[str] = None
    storage_region: Optional[str] = None
    storage_access_key: Optional[str] = None
    storage_secret_key: Optional[str] = None

    thumbnail_prefix: str = "thumbnails/"
    thumbnail_max_width: int = Field(default=300, gt=0)
    thumbnail_max_height: int = Field(default=300, gt=0)
    thumbnail_quality: int = Field(default=80, ge=1, le=100)
    thumbnail_default_extension: str = "jpg"
    processor_name: str = "lambda-thumbnail-processor"

    queue_backend: Literal["rabbitmq", "sqs"] = "sqs"
    report_batch_item_failures: bool = True

    rabbitmq_host: str = "localhost"
    rabbitmq_port: int = 5672
    rabbitmq_user: str = "guest"
    rabbitmq_password: str = "guest"

    rabbitmq_image_upload_exchange: str = "image.upload"
    rabbitmq_image_upload_queue: str = "image.upload.thumbnail"
    rabbitmq_image_upload_routing_key: str = "image.upload"

    rabbitmq_image_upload_dlx: str = "image.upload.dlx"
    rabbitmq_image_upload_dlx_routing_key: str = "image.upload.dead"

    rabbitmq_message_ttl_ms: int = 10000
    rabbitmq_prefetch_count: int = 1

    sqs_queue_url: Optional[str] = None
    sqs_batch_size: int = Field(default=10, ge=1, le=10)
    sqs_wait_time_seconds: int = Field(default=20, ge=0, le=20)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("thumbnail_prefix")
    @classmethod
    def prefix_is_a_folder(cls, value: str) -> str:
        if not value or not value.endswith("/"):
            raise ValueError("thumbnail_prefix must be a non-empty folder ending with '/'")
        return value

    @field_validator("thumbnail_default_extension")
    @classmethod
    def strip_leading_dot(cls, value: str) -> str:
        return value.lstrip(".").lower()


@lru_cache
def get_settings():
    return Settings()
