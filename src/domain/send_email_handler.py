"""
Send-email request pipeline - core business logic.

This module handles one HTTP request end to end:
1. Method check (OPTIONS preflight, POST only)
2. Decode JSON body into an EmailRequest
3. Validate required fields
4. Check that the SendGrid API key is configured (fail closed)
5. Send via SendGrid
6. Return an HttpResponse with a JSON EmailResponse body

Every path returns an HttpResponse carrying the CORS headers.
No exceptions propagate out of handle().
"""

import json
import logging
from typing import Any, Callable, Optional

from .models import (
    EmailRequest,
    EmailResponse,
    HttpRequest,
    HttpResponse,
    RequestDecodeError,
    RequestValidationError,
)
from integrations import sendgrid_delivery
from services.settings import Settings, load_settings

logger = logging.getLogger(__name__)

# Used when the envelope itself cannot be serialized
FALLBACK_ERROR_BODY = (
    '{"success": false, "message": "Failed to send email", '
    '"error": "Internal server error"}'
)


class SendEmailHandler:
    """
    Stateless request pipeline for the send-email endpoint.

    Settings are passed in (or loaded through settings_loader) rather than
    read from the environment directly, so a handler can be built per request
    and tested without patching os.environ. The loader only runs once a
    request has passed the method check and validation.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        sender: Optional[Callable[..., Any]] = None,
        settings_loader: Callable[[], Settings] = load_settings
    ):
        """
        Args:
            settings: Runtime settings (API key, environment); when None
                      they are loaded with settings_loader on demand
            sender: Delivery callable with the signature of
                    sendgrid_delivery.send_email (default: that function)
            settings_loader: Zero-argument callable returning Settings
        """
        self.settings = settings
        self.sender = sender or sendgrid_delivery.send_email
        self.settings_loader = settings_loader

    def handle(self, request: HttpRequest) -> HttpResponse:
        """
        Process a single HTTP request.

        Args:
            request: Inbound request

        Returns:
            HttpResponse with status, CORS headers and JSON body
        """
        method = (request.method or '').upper()

        if method == 'OPTIONS':
            return HttpResponse(status_code=204)

        if method != 'POST':
            return self._error(405, "Only POST method is allowed")

        try:
            email_request = self._decode(request.body)
        except RequestDecodeError as e:
            logger.warning(f"Failed to decode request body: {e}")
            return self._error(400, "Invalid request body")

        try:
            email_request.validate()
        except RequestValidationError as e:
            logger.warning(f"Validation failed: {e}")
            return self._error(400, str(e))

        settings = self._settings()
        if not settings.email_service_configured:
            logger.error("SendGrid API key is not configured")
            return self._error(500, "Email service not configured")

        try:
            message = sendgrid_delivery.build_message(email_request)
            self.sender(settings.sendgrid_api_key, message)
        except sendgrid_delivery.DeliveryError as e:
            logger.error(f"Failed to send email: {e}")
            return self._error(500, f"Failed to send email: {e}")
        except Exception as e:
            logger.error(f"Unexpected error sending email: {e}", exc_info=True)
            return self._error(500, "Internal server error")

        response = self._json(200, EmailResponse.sent())
        logger.info(f"Email sent successfully to: {email_request.to}")
        return response

    def _settings(self) -> Settings:
        if self.settings is None:
            self.settings = self.settings_loader()
        return self.settings

    def _decode(self, body: str) -> EmailRequest:
        """
        Parse the JSON body.

        Raises:
            RequestDecodeError: On malformed JSON, nesting too deep to parse,
                                or wrong shape
        """
        try:
            data = json.loads(body or '')
        except (json.JSONDecodeError, RecursionError) as e:
            raise RequestDecodeError(str(e)) from e
        return EmailRequest.from_dict(data)

    def _error(self, status_code: int, error: str) -> HttpResponse:
        return self._json(status_code, EmailResponse.failed(error))

    def _json(self, status_code: int, envelope: EmailResponse) -> HttpResponse:
        """Serialize the envelope; falls back to a fixed 500 body if that fails."""
        try:
            body = json.dumps(envelope.to_dict())
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to encode response body: {e}", exc_info=True)
            return HttpResponse(status_code=500, body=FALLBACK_ERROR_BODY)
        return HttpResponse(status_code=status_code, body=body)
