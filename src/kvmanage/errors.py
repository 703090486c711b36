"""
kvmanage Errors

Exception hierarchy shared by the credential loader, the authenticator and
the vault clients, plus the decorator that maps Azure SDK failures onto it.
"""
import logging
from functools import wraps
from typing import Callable, Optional

from azure.core.exceptions import AzureError, ClientAuthenticationError, HttpResponseError

logger = logging.getLogger(__name__)


class KvManageError(Exception):
    """Base class for all kvmanage errors."""
    pass


class ConfigurationError(KvManageError):
    """Raised when the credentials file or its location is missing or malformed."""
    pass


class AuthenticationError(KvManageError):
    """Raised when the identity provider rejects the credentials or cannot be reached."""
    pass


class ServiceError(KvManageError):
    """Raised when a vault, key or secret operation fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def translate_azure_errors(operation: str) -> Callable:
    """
    Decorator re-raising Azure SDK errors as kvmanage errors.

    Args:
        operation: Short description used in log and error messages
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ClientAuthenticationError as e:
                logger.error(f"{operation} was not authorized: {e.message}")
                raise AuthenticationError(f"{operation} was not authorized: {e.message}") from e
            except HttpResponseError as e:
                logger.error(f"{operation} failed ({e.status_code}): {e.message}")
                raise ServiceError(f"{operation} failed: {e.message}", status_code=e.status_code) from e
            except AzureError as e:
                logger.error(f"{operation} failed: {e}")
                raise ServiceError(f"{operation} failed: {e}") from e
        return wrapper
    return decorator
