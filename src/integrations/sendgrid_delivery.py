"""
SendGrid Delivery Module

This module turns a validated EmailRequest into an outbound message and
hands it to the SendGrid v3 Mail Send API using the official SDK.

Usage:
    from integrations import sendgrid_delivery

    message = sendgrid_delivery.build_message(email_request)
    sendgrid_delivery.send_email(api_key, message)  # raises DeliveryError
"""

import logging
import time
from http.client import HTTPException
from typing import Any, Callable, Optional

from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import From, Mail, To

from domain.models import EmailRequest, OutboundEmail

# Configure logging
logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """
    Raised when SendGrid rejects the message or cannot be reached.

    Attributes:
        status_code: Provider HTTP status, or None for transport failures
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def build_message(request: EmailRequest) -> OutboundEmail:
    """
    Build the outbound message for a validated request.

    If HTML content is present both HTML and the (possibly empty) text part
    are sent; otherwise the message is text-only with empty HTML.

    Example:
        >>> msg = build_message(EmailRequest(to="a@x.com", from_address="b@x.com",
        ...                                  subject="Hi", text_content="Body"))
        >>> msg.kind, msg.text_content, msg.html_content
        ('text_only', 'Body', '')
    """
    if request.html_content:
        return OutboundEmail(
            from_address=request.from_address,
            to_address=request.to,
            subject=request.subject,
            text_content=request.text_content,
            html_content=request.html_content,
        )

    return OutboundEmail(
        from_address=request.from_address,
        to_address=request.to,
        subject=request.subject,
        text_content=request.text_content,
        html_content='',
    )


def _raw_address(email_class, address: str):
    """
    Build a SendGrid From/To carrying the address string unchanged.

    Passing the address to the constructor runs it through parseaddr, which
    splits off display names and keeps only the first of several addresses.
    """
    email = email_class()
    email.email = address
    return email


def to_sendgrid_mail(message: OutboundEmail) -> Mail:
    """
    Convert an OutboundEmail into a SendGrid Mail object.

    Empty content parts are left out of the payload because the Mail Send
    API rejects content values shorter than one character.
    """
    return Mail(
        from_email=_raw_address(From, message.from_address),
        to_emails=_raw_address(To, message.to_address),
        subject=message.subject,
        plain_text_content=message.text_content or None,
        html_content=message.html_content or None,
    )


def _decode_body(body: Any) -> str:
    if isinstance(body, bytes):
        return body.decode('utf-8', errors='replace')
    return '' if body is None else str(body)


def send_email(
    api_key: str,
    message: OutboundEmail,
    client_factory: Callable[[str], Any] = SendGridAPIClient
) -> None:
    """
    Send a message through SendGrid with a single blocking call.

    No timeout or retry is configured here; the SDK's HTTP transport
    defaults apply.

    Args:
        api_key: SendGrid API key
        message: Message built by build_message()
        client_factory: Callable returning a client with a send(mail) method

    Raises:
        DeliveryError: On transport failure or a provider status >= 400
    """
    start_time = time.time()
    client = client_factory(api_key)

    logger.info(
        f"Sending email via SendGrid: to={message.to_address}, "
        f"kind={message.kind}, subject_length={len(message.subject)}"
    )

    try:
        response = client.send(to_sendgrid_mail(message))
    except HTTPError as e:
        body = _decode_body(e.body)
        logger.error(f"SendGrid rejected message: status={e.status_code}, body={body[:200]}")
        raise DeliveryError(
            f"sendgrid API error: status {e.status_code}, body: {body}",
            status_code=e.status_code
        ) from e
    except (OSError, HTTPException) as e:
        logger.error(f"SendGrid request failed: {e}")
        raise DeliveryError(f"sendgrid client error: {e}") from e

    if response.status_code >= 400:
        body = _decode_body(response.body)
        raise DeliveryError(
            f"sendgrid API error: status {response.status_code}, body: {body}",
            status_code=response.status_code
        )

    elapsed = time.time() - start_time
    logger.info(f"SendGrid accepted message: status={response.status_code}, elapsed={elapsed:.2f}s")
