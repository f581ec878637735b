ERR_DECODE = "IMAGE_DECODE"
ERR_REMOTE = "REMOTE_CALL"
ERR_BACKEND = "BACKEND_UNAVAILABLE"
ERR_UNKNOWN = "UNKNOWN"


class BreedInferError(Exception):
    code = ERR_UNKNOWN


class ImageDecodeError(BreedInferError):
    """Input bytes could not be turned into an image (or the resize target is invalid).

    The only error that reaches callers of the orchestrator.
    """
    code = ERR_DECODE


class BackendUnavailableError(BreedInferError):
    """A backend (runtime, model file, session) is missing. Always recovered."""
    code = ERR_BACKEND


class RemoteCallError(BreedInferError):
    """Timeout, non-2xx status, transport failure or malformed body from the remote service."""
    code = ERR_REMOTE

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
