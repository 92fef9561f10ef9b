"""Error taxonomy for a scan request.

Request-level failures derive from :class:`ScanError` and carry the HTTP
status they map to.  Per-page and per-field problems are never raised; they
are turned into warning strings (see the ``*_WARNING`` helpers below) and
zero-confidence fields.
"""

from __future__ import annotations

from typing import Any


class ScanError(Exception):
    """Base class for failures that abort a whole scan."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ScanValidationError(ScanError):
    """The inbound request is missing fields or has malformed ones."""

    status_code = 400

    def __init__(self, details: list[dict[str, Any]]) -> None:
        super().__init__("Invalid request")
        self.details = details


class CredentialError(ScanError):
    """Provider credentials are missing or were rejected.

    The message always contains the phrase "API key" so callers can match on
    it without parsing structured codes.
    """

    status_code = 500

    def __init__(self, message: str = "OpenAI API key not configured.") -> None:
        if "API key" not in message:
            message = f"{message} (check the API key)"
        super().__init__(message)


# The LLM backend contract names this failure mode after the provider's term.
AuthenticationError = CredentialError


class RateLimitError(ScanError):
    """The model provider signalled throttling; the caller should retry later."""

    status_code = 429


class ProviderError(ScanError):
    """Any other model-provider failure, including unparsable output."""

    status_code = 500


class PackAssemblyError(ScanError):
    """The assembled pack violated the pack schema."""

    status_code = 500


class StorageError(Exception):
    """A pack could not be written to (or removed from) storage."""


# ---------------------------------------------------------------------------
# Non-fatal warnings (recorded into ScanResult.errors, never raised)
# ---------------------------------------------------------------------------

TOTAL_SCRAPE_FAILURE_WARNING = (
    "None of the company pages could be fetched. "
    "Returning an empty draft pack; the founder interview will need to fill every section."
)

EMPTY_EXTRACTION_WARNING = (
    "Unable to extract content from the website. This may be because the site uses "
    "JavaScript to render content. Try using Demo Mode to see how the system works, "
    "or provide a different website URL."
)


def partial_scrape_warning(url: str, reason: str) -> str:
    """Human-readable note for one page that failed to load."""
    return f"Failed to scrape {url}: {reason}"
