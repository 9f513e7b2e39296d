"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ContractError(PipelineError):
    """Raised when strict output contracts are broken."""

    error_code = "CONTRACT_ERROR"


class StageError(PipelineError):
    """Raised for stage failures that should halt in strict mode."""

    error_code = "STAGE_ERROR"


class FetchError(StageError):
    """A page or document could not be retrieved."""

    error_code = "FETCH_ERROR"

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class FetchTimeoutError(FetchError):
    error_code = "FETCH_TIMEOUT"


class FetchStatusError(FetchError):
    error_code = "FETCH_STATUS"

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class RetryableFetchError(FetchStatusError):
    pass


class FetchTlsError(FetchError):
    error_code = "FETCH_TLS"


class BoundaryNotFoundError(StageError):
    """The start-of-table signature never appears in a document."""

    error_code = "BOUNDARY_NOT_FOUND"


class StoreError(PipelineError):
    """The catalog store rejected or failed a request."""

    error_code = "STORE_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail or message


class StoreConflictError(StoreError):
    """The record already exists in the catalog (same name and address)."""

    error_code = "STORE_CONFLICT"


class StoreUnavailableError(StoreError):
    error_code = "STORE_UNAVAILABLE"
