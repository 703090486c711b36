"""
Azure Session

Exchanges service principal credentials for a token credential scoped to one
subscription. The resulting AzureSession is passed explicitly to every client.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import jwt
from azure.core.credentials import TokenCredential
from azure.core.exceptions import ClientAuthenticationError, ServiceRequestError
from azure.identity import ClientSecretCredential

from kvmanage.auth.cloud import AZURE_PUBLIC_CLOUD, CloudEnvironment
from kvmanage.auth.credentials import Credentials
from kvmanage.errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AzureSession:
    """Authenticated access to one subscription."""

    credentials: Credentials
    credential: TokenCredential
    subscription_id: str
    principal_object_id: Optional[str]
    cloud: CloudEnvironment = AZURE_PUBLIC_CLOUD

    @property
    def tenant_id(self) -> str:
        return self.credentials.tenant_id

    @property
    def client_id(self) -> str:
        return self.credentials.client_id


def _principal_object_id(access_token: str) -> Optional[str]:
    """Read the service principal's object id from the token's oid claim."""
    try:
        claims = jwt.decode(access_token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        logger.warning(f"Could not decode access token claims: {e}")
        return None
    return claims.get("oid")


def authenticate(
    credentials: Credentials,
    cloud: CloudEnvironment = AZURE_PUBLIC_CLOUD,
    credential_factory: Callable[..., Any] = ClientSecretCredential,
) -> AzureSession:
    """
    Authenticate a service principal against a cloud environment.

    A management token is requested immediately so that a bad secret,
    expired credentials or an unreachable identity provider fail here.

    Args:
        credentials: Service principal credentials
        cloud: Target cloud environment
        credential_factory: Token credential class (ClientSecretCredential)

    Returns:
        AzureSession bound to the credentials' subscription

    Raises:
        AuthenticationError: If the token request fails
    """
    logger.info(credentials.summary())

    credential = credential_factory(
        tenant_id=credentials.tenant_id,
        client_id=credentials.client_id,
        client_secret=credentials.client_secret.get_secret_value(),
        authority=cloud.authority_host,
    )

    try:
        token = credential.get_token(cloud.management_scope)
    except ClientAuthenticationError as e:
        raise AuthenticationError(f"Authentication failed for client {credentials.client_id}: {e.message}") from e
    except ServiceRequestError as e:
        raise AuthenticationError(f"Could not reach {cloud.authority_host}: {e}") from e

    session = AzureSession(
        credentials=credentials,
        credential=credential,
        subscription_id=credentials.subscription_id,
        principal_object_id=_principal_object_id(token.token),
        cloud=cloud,
    )

    logger.info(f"Authorized for selected subscription: {session.subscription_id}")
    return session
