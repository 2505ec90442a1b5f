"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest
from unittest.mock import Mock

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')
os.environ.pop('SENDGRID_API_KEY', None)
os.environ.pop('SENDGRID_API_KEY_PARAMETER', None)


@pytest.fixture
def lambda_context():
    """Mock Lambda context."""
    context = Mock()
    context.aws_request_id = "test-request-id"
    context.invoked_function_arn = "arn:aws:lambda:us-west-2:123456789012:function:send-email-test"
    context.function_name = "send-email-test"
    return context


@pytest.fixture
def valid_payload():
    """Minimal valid text-only email request."""
    return {
        "to": "a@x.com",
        "from": "b@x.com",
        "subject": "Hi",
        "text_content": "Body"
    }
