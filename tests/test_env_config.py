import pytest
from pydantic import ValidationError

from thumbnail_pipeline.config.env_config import Settings


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.thumbnail_prefix == "thumbnails/"
    assert (settings.thumbnail_max_width, settings.thumbnail_max_height) == (300, 300)
    assert settings.report_batch_item_failures is True


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("THUMBNAIL_MAX_WIDTH", "128")
    monkeypatch.setenv("QUEUE_BACKEND", "rabbitmq")

    settings = Settings(_env_file=None)

    assert settings.thumbnail_max_width == 128
    assert settings.queue_backend == "rabbitmq"


@pytest.mark.parametrize("prefix", ["thumbnails", ""])
def test_prefix_must_be_a_folder(prefix):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, thumbnail_prefix=prefix)


def test_default_extension_is_normalised():
    assert Settings(_env_file=None, thumbnail_default_extension=".JPG").thumbnail_default_extension == "jpg"


def test_sqs_batch_size_is_bounded():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, sqs_batch_size=11)
