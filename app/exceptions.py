"""Custom exceptions for the Forms Sync application."""


class FormsSyncError(Exception):
    """Base exception for Forms Sync. Carries the HTTP status to report."""

    status_code: int = 500


class ValidationError(FormsSyncError):
    """Raised when request validation fails."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class ConfigurationError(FormsSyncError):
    """Raised when there's a configuration issue."""

    status_code = 500


class UpstreamTransportError(FormsSyncError):
    """Raised when the forms API cannot be reached."""

    status_code = 502

    def __init__(self, url: str, original_error: Exception | None = None):
        self.url = url
        self.original_error = original_error
        super().__init__(f"Request failed: {original_error} (url: {url})")


class UpstreamStatusError(FormsSyncError):
    """Raised when the forms API answers with a non-success status."""

    def __init__(self, url: str, upstream_status: int, response_body: str | None = None):
        self.url = url
        self.upstream_status = upstream_status
        self.response_body = response_body
        message = f"API returned error status: {upstream_status} from URL: {url}"
        if response_body:
            message = f"{message}. Response: {response_body}"
        super().__init__(message)

    @property
    def status_code(self) -> int:  # type: ignore[override]
        if 400 <= self.upstream_status < 600:
            return self.upstream_status
        return 502


class ParseError(FormsSyncError):
    """Raised when a response body is not the JSON we expected."""

    status_code = 502

    def __init__(self, url: str, detail: str):
        self.url = url
        super().__init__(f"Failed to parse response from {url}: {detail}")


class NoDataError(FormsSyncError):
    """Raised when the API answered successfully but yielded no records."""

    status_code = 400


class UnauthorizedOriginError(FormsSyncError):
    """Raised when a proxy target is outside the trusted forms API origin."""

    status_code = 400

    def __init__(self, url: str, trusted_origin: str):
        self.url = url
        self.trusted_origin = trusted_origin
        super().__init__(
            f"URL {url} is not allowed; only {trusted_origin} may be proxied"
        )


class EmptyInputError(FormsSyncError):
    """Raised when there are no records to serialize."""

    status_code = 400


class FilesystemError(FormsSyncError):
    """Raised when an output file cannot be written."""

    status_code = 500

    def __init__(self, path: str, original_error: Exception | None = None):
        self.path = path
        self.original_error = original_error
        super().__init__(f"Failed to write {path}: {original_error}")


class PaginationLimitError(FormsSyncError):
    """Raised when a collection has more entries than the configured bound."""

    status_code = 502

    def __init__(self, url: str, max_entries: int):
        self.url = url
        self.max_entries = max_entries
        super().__init__(
            f"Collection {url} has more than {max_entries} entries; "
            "raise FORMS_MAX_ENTRIES to fetch it"
        )
