"""
Common Authentication Framework for Suppliers

Login flows used by the supplier adapters:
- OAuth2 client credentials with an HTTP Basic header (ABC)
- OAuth2 client credentials with id/secret in the form body (SRS)
- Username/password login returning session cookies (BEACON)

Sessions are never cached: every call authenticates afresh.
"""

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from OrderBridge.clients.http_client import ServiceHTTPClient
from OrderBridge.config.credentials import SupplierCredentialBundle
from OrderBridge.exceptions import SupplierAuthenticationError
from .base import AuthKind, AuthSession

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    """Result of an authentication attempt"""
    success: bool
    session: Optional[AuthSession] = None
    error_message: Optional[str] = None
    status_code: Optional[int] = None
    additional_data: Dict[str, Any] = field(default_factory=dict)

    def require_session(self, supplier_name: str) -> AuthSession:
        """Return the session or raise SupplierAuthenticationError"""
        if self.success and self.session is not None:
            return self.session
        raise SupplierAuthenticationError(
            f"{supplier_name}: {self.error_message or 'Authentication failed'}",
            supplier_name=supplier_name,
            status_code=self.status_code,
        )


class BaseAuthenticator(ABC):
    """Abstract base class for authentication methods"""

    def __init__(self, supplier_name: str, http_client: ServiceHTTPClient):
        self.supplier_name = supplier_name
        self.http_client = http_client

    @abstractmethod
    async def authenticate(self, credentials: SupplierCredentialBundle) -> AuthResult:
        """Perform authentication with the resolved credential bundle"""
        pass


class OAuth2ClientCredentialsAuthenticator(BaseAuthenticator):
    """
    OAuth2 client credentials flow.

    With ``credentials_in_body`` the client id and secret are sent as form
    fields; otherwise they go in a Basic Authorization header.
    """

    def __init__(
        self,
        supplier_name: str,
        http_client: ServiceHTTPClient,
        scope: Optional[str] = None,
        credentials_in_body: bool = False,
    ):
        super().__init__(supplier_name, http_client)
        self.scope = scope
        self.credentials_in_body = credentials_in_body

    async def authenticate(self, credentials: SupplierCredentialBundle) -> AuthResult:
        if not credentials.has_client_credentials():
            return AuthResult(success=False, error_message="Client ID and client secret are required", status_code=400)

        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        data = {"grant_type": "client_credentials"}

        if self.credentials_in_body:
            data["client_id"] = credentials.client_id
            data["client_secret"] = credentials.client_secret
        else:
            auth_header = base64.b64encode(
                f"{credentials.client_id}:{credentials.client_secret}".encode()
            ).decode()
            headers["Authorization"] = f"Basic {auth_header}"

        if self.scope:
            data["scope"] = self.scope

        response = await self.http_client.post(credentials.token_url, headers=headers, data=data)

        if not response.success:
            return AuthResult(
                success=False,
                error_message=f"Token request failed ({response.status}): {response.error_text()}",
                status_code=response.status,
            )

        access_token = response.data.get("access_token")
        if not access_token:
            return AuthResult(
                success=False,
                error_message="No token returned from login",
                status_code=response.status,
            )

        logger.info(f"OAuth2 authentication successful for {self.supplier_name} (token length {len(access_token)})")
        return AuthResult(
            success=True,
            session=AuthSession(
                supplier=self.supplier_name,
                kind=AuthKind.BEARER,
                value=access_token,
                environment=credentials.environment,
            ),
            additional_data={"expires_in": response.data.get("expires_in"), "scope": response.data.get("scope")},
        )


class CookieSessionAuthenticator(BaseAuthenticator):
    """
    Username/password login whose session is the returned Set-Cookie values,
    joined with "; ".
    """

    def __init__(
        self,
        supplier_name: str,
        http_client: ServiceHTTPClient,
        login_url_builder: Callable[[SupplierCredentialBundle], str],
        login_body_builder: Callable[[SupplierCredentialBundle], Dict[str, Any]],
    ):
        super().__init__(supplier_name, http_client)
        self.login_url_builder = login_url_builder
        self.login_body_builder = login_body_builder

    async def authenticate(self, credentials: SupplierCredentialBundle) -> AuthResult:
        if not credentials.has_login_credentials():
            return AuthResult(success=False, error_message="Username and password are required", status_code=400)

        response = await self.http_client.post(
            self.login_url_builder(credentials),
            headers={"Content-Type": "application/json"},
            json_data=self.login_body_builder(credentials),
        )

        if not response.success:
            return AuthResult(
                success=False,
                error_message=f"Login failed ({response.status}): {response.error_text()}",
                status_code=response.status,
            )

        cookies = "; ".join(c for c in response.set_cookies if c)
        if not cookies:
            return AuthResult(success=False, error_message="No cookies returned from login", status_code=response.status)

        logger.info(f"Cookie login successful for {self.supplier_name} ({len(response.set_cookies)} cookies)")
        return AuthResult(
            success=True,
            session=AuthSession(
                supplier=self.supplier_name,
                kind=AuthKind.COOKIE,
                value=cookies,
                environment=credentials.environment,
            ),
        )
