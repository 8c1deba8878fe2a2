"""
Failure taxonomy for the ring import pipeline.

Every terminal failure is a RingImportError subclass carrying the HTTP status
and the user-facing message that the API returns verbatim. Diagnostic detail
(upstream bodies, stack traces) stays in the logs.
"""


class RingImportError(Exception):
    """Base class for all classified import failures."""

    kind = "Import failed"
    status_code = 500
    default_message = "We couldn't import this ring. Please try again or upload an image instead."

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


# ---------------------------------------------------------------------------
# Input validation (400, never reaches the network)
# ---------------------------------------------------------------------------


class MissingUrl(RingImportError):
    kind = "Missing URL"
    status_code = 400
    default_message = "Please provide a ring product URL."


class InvalidUrl(RingImportError):
    kind = "Invalid URL"
    status_code = 400
    default_message = "Please enter a valid URL (e.g., https://www.tiffany.com/...)"


class UnsupportedVendor(RingImportError):
    kind = "Unsupported vendor"
    status_code = 400
    default_message = (
        "This store is not yet supported. Try major retailers like Tiffany, Blue Nile, or James Allen."
    )

    def __init__(self, supported_vendors: list[str], message: str | None = None):
        super().__init__(message)
        self.supported_vendors = supported_vendors

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["supportedVendors"] = self.supported_vendors
        return body


# ---------------------------------------------------------------------------
# Upstream origin failures
# ---------------------------------------------------------------------------


class AccessBlocked(RingImportError):
    kind = "Access blocked"
    status_code = 403
    default_message = (
        "This retailer is blocking automated access. "
        "Try saving the product image and uploading it instead."
    )


class BotProtectionDetected(RingImportError):
    kind = "Bot protection detected"
    status_code = 403
    default_message = (
        "This page is protected against automated access. "
        "Try saving the product image and uploading it instead."
    )


class RateLimited(RingImportError):
    kind = "Rate limited"
    status_code = 429
    default_message = "The retailer is receiving too many requests. Please wait a minute and try again."


class FetchFailed(RingImportError):
    kind = "Fetch failed"
    status_code = 502
    default_message = "We couldn't load that product page. Please check the link and try again."


class RequestTimeout(RingImportError):
    kind = "Request timeout"
    status_code = 504
    default_message = "The retailer took too long to respond. Please try again."


class ConnectionFailed(RingImportError):
    kind = "Connection failed"
    status_code = 502
    default_message = "We couldn't reach that website. Please check the link and try again."


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class NoImagesFound(RingImportError):
    kind = "No images found"
    status_code = 404
    default_message = (
        "We couldn't find any ring images on that page. "
        "Make sure the link points to a single product page."
    )


class ImportFailed(RingImportError):
    """Catch-all for anything the pipeline did not classify."""
