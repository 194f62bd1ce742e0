"""Error types raised by ClipStream.

Every error carries the HTTP status it maps to and renders itself as the JSON
body the web layer returns, so callers only ever ``raise``.
"""


class ClipStreamError(RuntimeError):
    status_code = 500
    message = "Internal error"

    def __init__(self, message: str | None = None, detail: str | None = None):
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.detail:
            body["detail"] = self.detail
        return body


class InputMissingError(ClipStreamError):
    """A required field or upload is absent."""

    status_code = 400
    message = "Required input missing"


class InvalidSpecificationError(ClipStreamError):
    """Malformed JSON, or a value out of range that is not clamped."""

    status_code = 400
    message = "Invalid specification"


class SpawnError(ClipStreamError):
    """An external program could not be started."""

    message = "Failed to start external program"


class ProcessFailedError(ClipStreamError):
    """An external program exited non-zero."""

    message = "External program failed"

    def __init__(
        self,
        message: str | None = None,
        detail: str | None = None,
        returncode: int | None = None,
    ):
        super().__init__(message, detail)
        self.returncode = returncode


class ProbeParseError(ClipStreamError):
    message = "Failed to parse ffprobe output"


class RetrievalTimeoutError(ClipStreamError):
    status_code = 504
    message = "Retrieval timed out"


class RetrievalError(ClipStreamError):
    status_code = 502
    message = "Retrieval failed"


class TranscriptUnavailableError(ClipStreamError):
    """No usable captions. Never leaves the fetcher."""

    status_code = 404
    message = "Transcript unavailable"
