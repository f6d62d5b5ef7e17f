"""
Supplier Credential Resolver

Maps (supplier, environment) to a credential bundle. The registry file only
names environment variables; secret values are read from os.environ at
resolution time.

Registry layout (credentials.json):
    {"ABC": {"prod": {"authUrl": ..., "apiBaseUrl": ...,
                      "clientIdEnv": "ABC_CLIENT_ID", "clientSecretEnv": "ABC_CLIENT_SECRET"}}}

The master environment (environment.json) is read once, on first use, and
defaults to "prod" when the file is missing or unreadable.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from OrderBridge.exceptions import SupplierConfigurationError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent / "suppliers"
DEFAULT_CREDENTIALS_PATH = CONFIG_DIR / "credentials.json"
DEFAULT_ENVIRONMENT_PATH = CONFIG_DIR / "environment.json"
DEFAULT_ENVIRONMENT = "prod"


@dataclass(frozen=True)
class SupplierCredentialBundle:
    """Resolved credentials for one supplier in one environment"""
    supplier: str
    environment: str
    auth_url: str
    api_base_url: str
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    api_site_id: Optional[str] = None

    @property
    def token_url(self) -> str:
        """Auth URL without any query string"""
        return (self.auth_url or "").split("?")[0]

    def has_client_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def has_login_credentials(self) -> bool:
        return bool(self.username and self.password)


class CredentialResolver:
    """
    Resolves supplier credential bundles from the registry file and the environment.

    Resolution is a pure function of the registry contents and the environment
    mapping. The only cached state is the master environment setting and the
    parsed registry, both loaded lazily and cleared by reset().
    """

    def __init__(
        self,
        registry_path: Optional[Path] = None,
        environment_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.registry_path = Path(
            registry_path or os.getenv("ORDERBRIDGE_CREDENTIALS_PATH") or DEFAULT_CREDENTIALS_PATH
        )
        self.environment_path = Path(
            environment_path or os.getenv("ORDERBRIDGE_ENVIRONMENT_PATH") or DEFAULT_ENVIRONMENT_PATH
        )
        self._environ = environ
        self._registry: Optional[Dict[str, Any]] = None
        self._master_environment: Optional[str] = None

    @property
    def environ(self) -> Mapping[str, str]:
        return self._environ if self._environ is not None else os.environ

    def _load_registry(self) -> Dict[str, Any]:
        if self._registry is None:
            try:
                with open(self.registry_path, "r", encoding="utf-8") as f:
                    self._registry = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error reading credential registry {self.registry_path}: {e}")
                raise SupplierConfigurationError(
                    "Credentials registry not found", config_field=str(self.registry_path)
                )
        return self._registry

    def get_master_environment(self) -> str:
        """Get the process-wide environment setting, reading it on first use."""
        if self._master_environment is None:
            try:
                with open(self.environment_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                self._master_environment = (data or {}).get("environment") or DEFAULT_ENVIRONMENT
            except (OSError, json.JSONDecodeError, AttributeError) as e:
                logger.warning(f"Could not read {self.environment_path}, defaulting to {DEFAULT_ENVIRONMENT}: {e}")
                self._master_environment = DEFAULT_ENVIRONMENT
        return self._master_environment

    def resolve(self, supplier_name: str, environment: Optional[str] = None) -> SupplierCredentialBundle:
        """
        Resolve the credential bundle for a supplier.

        Args:
            supplier_name: Supplier key (ABC, SRS, BEACON)
            environment: "sandbox" or "prod"; the master environment when omitted

        Raises:
            SupplierConfigurationError: unknown supplier or unconfigured environment
        """
        registry = self._load_registry()
        supplier_key = (supplier_name or "").strip().upper()

        if supplier_key not in registry:
            raise SupplierConfigurationError(
                f"Supplier {supplier_name} not found in credentials registry", supplier_name=supplier_name
            )

        if not environment:
            environment = self.get_master_environment()
            logger.debug(f"Using master environment setting: {environment}")

        entry = registry[supplier_key].get(environment)
        if not entry:
            raise SupplierConfigurationError(
                f'Environment "{environment}" not found for supplier {supplier_key}',
                supplier_name=supplier_key,
                environment=environment,
            )

        values: Dict[str, Any] = {}

        if entry.get("clientIdEnv") and entry.get("clientSecretEnv"):
            values["client_id"] = self.environ.get(entry["clientIdEnv"])
            values["client_secret"] = self.environ.get(entry["clientSecretEnv"])
            if not values["client_id"] or not values["client_secret"]:
                logger.warning(
                    f"Missing credentials for {supplier_key} {environment}: "
                    f"{entry['clientIdEnv']}, {entry['clientSecretEnv']}"
                )

        if entry.get("usernameEnv") and entry.get("passwordEnv"):
            values["username"] = self.environ.get(entry["usernameEnv"])
            values["password"] = self.environ.get(entry["passwordEnv"])
            if not values["username"] or not values["password"]:
                logger.warning(
                    f"Missing credentials for {supplier_key} {environment}: "
                    f"{entry['usernameEnv']}, {entry['passwordEnv']}"
                )
            if entry.get("apiSiteId"):
                values["api_site_id"] = entry["apiSiteId"]

        return SupplierCredentialBundle(
            supplier=supplier_key,
            environment=environment,
            auth_url=entry.get("authUrl", ""),
            api_base_url=(entry.get("apiBaseUrl") or "").rstrip("/"),
            **values,
        )

    def reset(self):
        """Forget the cached registry and master environment"""
        self._registry = None
        self._master_environment = None


_default_resolver: Optional[CredentialResolver] = None


def get_credential_resolver() -> CredentialResolver:
    """Get the process-wide resolver, creating it on first use"""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = CredentialResolver()
    return _default_resolver
