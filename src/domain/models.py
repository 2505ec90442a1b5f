"""
Data models for the send-email domain.

These type-safe data structures define clear contracts between the Lambda
entry point, the request pipeline and the SendGrid integration.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional


CORS_HEADERS = {
    'Content-Type': 'application/json',
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'POST, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type',
}

TEXT_ONLY = 'text_only'
HTML_WITH_FALLBACK = 'html_with_fallback'


class RequestDecodeError(ValueError):
    """Raised when the request body cannot be decoded into an EmailRequest."""
    pass


class RequestValidationError(ValueError):
    """Raised when a decoded EmailRequest is missing a required field."""
    pass


def _string_field(data: Dict[str, Any], name: str) -> str:
    value = data.get(name)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise RequestDecodeError(
            f"field '{name}' must be a string, got {type(value).__name__}"
        )
    return value


@dataclass
class EmailRequest:
    """
    Email send request supplied by the caller.

    Attributes:
        to: Recipient address
        from_address: Sender address (``from`` in JSON)
        subject: Subject line
        text_content: Plain text body (empty string if not present)
        html_content: HTML body (empty string if not present)
    """
    to: str
    from_address: str
    subject: str
    text_content: str = ''
    html_content: str = ''

    @classmethod
    def from_dict(cls, data: Any) -> 'EmailRequest':
        """
        Build an EmailRequest from decoded JSON.

        A JSON null body produces an empty request, which then fails
        validation. Unknown keys are ignored.

        Raises:
            RequestDecodeError: If data is not an object or a field is not a string
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise RequestDecodeError(
                f"request body must be a JSON object, got {type(data).__name__}"
            )

        return cls(
            to=_string_field(data, 'to'),
            from_address=_string_field(data, 'from'),
            subject=_string_field(data, 'subject'),
            text_content=_string_field(data, 'text_content'),
            html_content=_string_field(data, 'html_content'),
        )

    def validate(self) -> None:
        """
        Check required fields in order; the first missing one is reported.

        Raises:
            RequestValidationError: With the caller-facing message
        """
        if not self.to:
            raise RequestValidationError("'to' field is required")
        if not self.from_address:
            raise RequestValidationError("'from' field is required")
        if not self.subject:
            raise RequestValidationError("'subject' field is required")
        if not self.text_content and not self.html_content:
            raise RequestValidationError(
                "either 'text_content' or 'html_content' is required"
            )


@dataclass
class EmailResponse:
    """Success/failure envelope returned to the caller."""
    success: bool
    message: str
    error: Optional[str] = None

    @classmethod
    def sent(cls) -> 'EmailResponse':
        return cls(success=True, message="Email sent successfully")

    @classmethod
    def failed(cls, error: str) -> 'EmailResponse':
        return cls(success=False, message="Failed to send email", error=error)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'success': self.success,
            'message': self.message,
        }
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class OutboundEmail:
    """
    Message handed to the delivery provider.

    Only raw address strings are carried; no display names.
    """
    from_address: str
    to_address: str
    subject: str
    text_content: str = ''
    html_content: str = ''

    @property
    def kind(self) -> str:
        """TEXT_ONLY or HTML_WITH_FALLBACK."""
        return HTML_WITH_FALLBACK if self.html_content else TEXT_ONLY


@dataclass
class HttpRequest:
    """Transport-neutral view of the inbound HTTP request."""
    method: str
    body: str = ''
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class HttpResponse:
    """
    HTTP response produced by the pipeline.

    Attributes:
        status_code: HTTP status code
        body: Serialized JSON body (empty string for 204)
        headers: Response headers (CORS headers by default)
    """
    status_code: int
    body: str = ''
    headers: Dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))

    def to_proxy_response(self) -> Dict[str, Any]:
        """Render as an API Gateway Lambda proxy response."""
        return {
            'statusCode': self.status_code,
            'headers': dict(self.headers),
            'body': self.body,
        }

    def __repr__(self) -> str:
        return f"HttpResponse(status_code={self.status_code}, body={self.body!r})"
