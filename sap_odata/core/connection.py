"""
sap_odata.core.connection - High-level connection management
=============================================================

Provides a hana_ml-style ConnectionContext that builds a configured
SAPODataClient from arguments, environment variables or a ``.env`` file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from dotenv import load_dotenv

from sap_odata.core.session import HttpState, ODataConfig, ODataCredential, default_language

if TYPE_CHECKING:
    from sap_odata.client import SAPODataClient
    from sap_odata.persistence.base import PersistenceStore


def load_env(path: Optional[Path] = None) -> bool:
    """Load S4_* settings from ``path`` or ``./.env``; existing env vars win."""
    env_path = path or Path.cwd() / ".env"
    if not env_path.exists():
        return False
    return load_dotenv(env_path, override=False)


class ConnectionContext:
    """
    High-level connection manager for SAP OData services.

    Parameters
    ----------
    base_url : str, optional
        OData base URL. Falls back to S4_BASE_URL env var.
    user : str, optional
        Username for basic auth. Falls back to S4_USER env var.
    password : str, optional
        Password for basic auth. Falls back to S4_PASS env var.
    language : str, optional
        sap-language header. Falls back to S4_LANGUAGE, then the locale.
    verify : bool, optional
        SSL verification. Falls back to S4_VERIFY_TLS env var.
    timeout : float, optional
        Request timeout in seconds. Falls back to S4_TIMEOUT, then 45.
    store : PersistenceStore, optional
        Store that decoded entities are mirrored into
    env_file : Path, optional
        ``.env`` file to read before resolving settings

    Examples
    --------
    >>> with ConnectionContext() as conn:  # reads S4_* env vars
    ...     url = conn.url("API_MAINTENANCEORDER_SRV", "MaintenanceOrder('4000001')")
    ...     order = conn.client.get_entity(url, MaintenanceOrder).result()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        language: Optional[str] = None,
        verify: Optional[bool] = None,
        timeout: Optional[float] = None,
        store: Optional["PersistenceStore"] = None,
        env_file: Optional[Path] = None,
    ) -> None:
        load_env(env_file)

        self._base_url = (base_url or os.environ.get("S4_BASE_URL", "")).rstrip("/") + "/"
        self._user = user or os.environ.get("S4_USER", "")
        self._password = password or os.environ.get("S4_PASS", "")
        self._language = (language or os.environ.get("S4_LANGUAGE") or default_language()).upper()

        if verify is not None:
            self._verify = verify
        else:
            self._verify = os.environ.get("S4_VERIFY_TLS", "true").lower() != "false"

        if timeout is not None:
            self._timeout = float(timeout)
        else:
            self._timeout = float(os.environ.get("S4_TIMEOUT", "45"))

        self._store = store

        # Validate configuration
        if not self._base_url or self._base_url == "/":
            raise ValueError(
                "Missing base_url. Set S4_BASE_URL environment variable "
                "or pass base_url parameter."
            )

        if not (self._user and self._password):
            raise ValueError(
                "Missing credentials. Set S4_USER/S4_PASS environment variables, "
                "or pass user/password parameters."
            )

        self.http_state = HttpState()
        self._client: Optional["SAPODataClient"] = None

    @property
    def config(self) -> ODataConfig:
        return ODataConfig(timeout=self._timeout, language=self._language, verify=self._verify)

    @property
    def client(self) -> "SAPODataClient":
        """Get or create the underlying client."""
        if self._client is None:
            # Import here to avoid circular imports
            from sap_odata.client import SAPODataClient
            self._client = SAPODataClient(
                ODataCredential(self._user, self._password),
                self.config,
                store=self._store,
                http_state=self.http_state,
            )
        return self._client

    def url(self, service: str, path: str = "") -> str:
        """
        Absolute URL of a resource within a service.

        Examples
        --------
        >>> conn.url("API_MAINTENANCEORDER_SRV", "MaintenanceOrder")
        'https://host/sap/opu/odata/sap/API_MAINTENANCEORDER_SRV/MaintenanceOrder'
        """
        return f"{self._base_url}{service.strip('/')}/{path.lstrip('/')}"

    def close(self) -> None:
        """Close the connection."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ConnectionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def base_url(self) -> str:
        """The configured base URL."""
        return self._base_url

    @property
    def language(self) -> str:
        return self._language
