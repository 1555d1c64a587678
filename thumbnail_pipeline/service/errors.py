class PipelineError(Exception):
    """Base class for failures that must be retried or dead-lettered."""

    kind = "unexpected"


class MalformedMessageError(PipelineError):
    kind = "malformed"


class SourceFetchError(PipelineError):
    kind = "fetch"


class ImageProcessingError(PipelineError):
    kind = "processing"


class StorageWriteError(PipelineError):
    kind = "write"


class BatchProcessingError(Exception):
    """Raised when a batch is reported as a whole instead of per message."""

    def __init__(self, failed_outcomes):
        self.failed_outcomes = list(failed_outcomes)
        ids = ", ".join(o.message_id for o in self.failed_outcomes)
        super().__init__(f"{len(self.failed_outcomes)} message(s) failed: {ids}")
