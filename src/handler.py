"""
AWS Lambda handler for the send-email HTTP endpoint.

Thin orchestration layer: adapts the API Gateway proxy event and delegates to
SendEmailHandler, which loads settings once the request is valid.
"""

import base64
import binascii
import json
import logging
import os
from typing import Dict, Any

from domain.models import EmailResponse, HttpRequest, HttpResponse
from domain.send_email_handler import SendEmailHandler
from services.settings import load_settings

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)


def _event_method(event: Dict[str, Any]) -> str:
    # REST API (v1) vs HTTP API (v2) / function URL
    method = event.get('httpMethod')
    if method:
        return method
    return event.get('requestContext', {}).get('http', {}).get('method', '')


def _event_body(event: Dict[str, Any]) -> str:
    body = event.get('body')
    if body is None:
        return ''
    if event.get('isBase64Encoded'):
        try:
            return base64.b64decode(body).decode('utf-8')
        except (binascii.Error, UnicodeDecodeError) as e:
            logger.warning(f"Failed to decode base64 request body: {e}")
            # Left as-is; JSON decoding will reject it
            return body
    return body


def to_http_request(event: Dict[str, Any]) -> HttpRequest:
    """Build an HttpRequest from an API Gateway proxy event."""
    return HttpRequest(
        method=_event_method(event),
        body=_event_body(event),
        headers=event.get('headers') or {},
    )


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Send an email through SendGrid.

    Expected POST body:
    {
        "to": "recipient@example.com",
        "from": "sender@example.com",
        "subject": "Hello",
        "text_content": "Plain text body",
        "html_content": "<p>HTML body</p>"
    }

    Returns:
        API Gateway proxy response dict
    """
    request = to_http_request(event)
    logger.info(f"Received {request.method} request ({len(request.body)} bytes)")

    try:
        response = SendEmailHandler(settings_loader=load_settings).handle(request)
    except Exception as e:
        logger.error(f"Error handling request: {e}", exc_info=True)
        response = HttpResponse(
            status_code=500,
            body=json.dumps(EmailResponse.failed("Internal server error").to_dict())
        )

    logger.info(f"Responding with status {response.status_code}")
    return response.to_proxy_response()


def health_check(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Simple health check endpoint for monitoring.
    """
    settings = load_settings()
    return {
        'statusCode': 200,
        'body': json.dumps({
            'status': 'healthy',
            'environment': settings.environment,
            'emailServiceConfigured': settings.email_service_configured
        })
    }
