"""Sample payloads shared by the test modules."""

import io
import json

from PIL import Image


def make_image(width=1200, height=600, image_format="PNG", mode="RGB"):
    color = (200, 30, 30, 255) if mode == "RGBA" else (200, 30, 30)
    if mode == "L":
        color = 128
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format=image_format)
    return buffer.getvalue()


def make_envelope(bucket="images-bucket", key="photos/cat.png", **extra):
    body = {
        "Records": [
            {
                "eventVersion": "2.1",
                "eventSource": "aws:s3",
                "eventName": "ObjectCreated:Put",
                "s3": {
                    "bucket": {"name": bucket},
                    "object": {"key": key, "size": 1024},
                },
            }
        ]
    }
    body.update(extra)
    return json.dumps(body)


