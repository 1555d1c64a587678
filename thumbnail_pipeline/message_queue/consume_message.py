import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Union
from urllib.parse import unquote

from thumbnail_pipeline.service.errors import MalformedMessageError

TEST_EVENT = "s3:TestEvent"


def decode_object_key(raw_key: str) -> str:
    # notification keys are form-encoded: '+' is a space, the rest is %XX
    return unquote(raw_key.replace("+", " "))


@dataclass
class StorageEventRecord:
    bucket: str
    raw_key: str

    @property
    def key(self) -> str:
        return decode_object_key(self.raw_key)


@dataclass
class NotificationEnvelope:
    event: Optional[str] = None
    records: list[StorageEventRecord] = field(default_factory=list)

    @property
    def is_test_event(self) -> bool:
        return self.event == TEST_EVENT

    @property
    def first_record(self) -> Optional[StorageEventRecord]:
        return self.records[0] if self.records else None


def _parse_record(index: int, record) -> StorageEventRecord:
    try:
        s3 = record["s3"]
        bucket = s3["bucket"]["name"]
        raw_key = s3["object"]["key"]
    except (KeyError, TypeError) as e:
        raise MalformedMessageError(f"Records[{index}] is missing {e}") from e

    if not isinstance(bucket, str) or not bucket:
        raise MalformedMessageError(f"Records[{index}].s3.bucket.name is not a string")
    if not isinstance(raw_key, str) or not raw_key:
        raise MalformedMessageError(f"Records[{index}].s3.object.key is not a string")

    return StorageEventRecord(bucket=bucket, raw_key=raw_key)


def parse_envelope(body: Union[bytes, str]) -> NotificationEnvelope:
    try:
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        body_dict = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logging.error(f"❌ Failed to parse message: {e}")
        raise MalformedMessageError(f"message body is not valid JSON: {e}") from e

    if not isinstance(body_dict, dict):
        raise MalformedMessageError(
            f"message body must be a JSON object, got {type(body_dict).__name__}"
        )

    event = body_dict.get("Event")
    if event is not None and not isinstance(event, str):
        raise MalformedMessageError("Event must be a string")

    raw_records = body_dict.get("Records")
    if raw_records is None:
        raw_records = []
    if not isinstance(raw_records, list):
        raise MalformedMessageError("Records must be a list")

    # one upload per message; trailing records are ignored
    records = [_parse_record(0, raw_records[0])] if raw_records else []
    return NotificationEnvelope(event=event, records=records)
