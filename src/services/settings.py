"""
Runtime settings for the send-email function.

The SendGrid API key is resolved with the following priority:
1. SENDGRID_API_KEY environment variable
2. SSM Parameter Store SecureString named by SENDGRID_API_KEY_PARAMETER

There is no default key. If neither source yields a value the settings carry
an empty key and the handler refuses to send.

SSM lookups are cached in memory for warm Lambda invocations with TTL.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Dict, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

API_KEY_ENV = 'SENDGRID_API_KEY'
API_KEY_PARAMETER_ENV = 'SENDGRID_API_KEY_PARAMETER'

# Module-level cache: {parameter_name: (value, timestamp)}
_parameter_cache: Dict[str, Tuple[str, float]] = {}

# Configure SSM client with timeouts so a slow lookup cannot eat the invocation
ssm_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=5,
    read_timeout=10
)

region = os.environ.get('AWS_REGION', os.environ.get('AWS_DEFAULT_REGION', 'us-west-2'))

# Initialize SSM client at module level (thread-safe, reused across invocations)
ssm_client = boto3.client('ssm', region_name=region, config=ssm_config)


@dataclass(frozen=True)
class Settings:
    """
    Configuration passed explicitly into the request pipeline.

    Attributes:
        sendgrid_api_key: API key, empty string when not configured
        environment: Deployment label (dev, staging, prod)
    """
    sendgrid_api_key: str = ''
    environment: str = 'dev'

    @property
    def email_service_configured(self) -> bool:
        return bool(self.sendgrid_api_key)


def _cache_ttl_seconds() -> int:
    return int(os.environ.get('PARAMETER_CACHE_TTL', '300'))


def _get_parameter(name: str, use_cache: bool = True) -> str:
    """
    Read a SecureString parameter from SSM.

    Args:
        name: Parameter name or ARN
        use_cache: Use cached value if still fresh (default: True)

    Returns:
        str: Decrypted parameter value

    Raises:
        ClientError: If SSM rejects the request
        BotoCoreError: If credentials or the endpoint are unavailable
    """
    if use_cache and name in _parameter_cache:
        value, cached_at = _parameter_cache[name]
        age = time.time() - cached_at
        if age < _cache_ttl_seconds():
            logger.debug(f"Using cached parameter {name} (age: {age:.1f}s)")
            return value
        logger.info(f"Cached parameter {name} expired (age: {age:.1f}s), reloading")

    response = ssm_client.get_parameter(Name=name, WithDecryption=True)
    value = response['Parameter']['Value']

    _parameter_cache[name] = (value, time.time())
    logger.info(f"Loaded parameter {name} from SSM")
    return value


def clear_cache() -> None:
    """Clear cached parameter values (for testing)."""
    _parameter_cache.clear()


def _resolve_api_key() -> str:
    api_key = os.environ.get(API_KEY_ENV, '')
    if api_key:
        return api_key

    parameter_name = os.environ.get(API_KEY_PARAMETER_ENV, '')
    if not parameter_name:
        return ''

    try:
        return _get_parameter(parameter_name)
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        logger.error(
            f"Failed to read SendGrid API key from SSM: "
            f"parameter={parameter_name}, error_code={error_code}"
        )
        return ''
    except BotoCoreError as e:
        # No credentials, endpoint unreachable, read timeout
        logger.error(
            f"Failed to read SendGrid API key from SSM: "
            f"parameter={parameter_name}, error={type(e).__name__}"
        )
        return ''


def load_settings() -> Settings:
    """
    Read settings from the process environment (and SSM if configured).

    Called once per request so that configuration changes and test
    overrides take effect without reloading the module.
    """
    return Settings(
        sendgrid_api_key=_resolve_api_key(),
        environment=os.environ.get('ENVIRONMENT', 'dev'),
    )
