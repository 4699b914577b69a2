"""Status queries against the running daemon."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

import requests

from rcpctl.core.document import ConfigDocument
from rcpctl.errors import StatusProtocolError, StatusUnavailableError
from rcpctl.utils.logging import get_logger


@dataclass
class ServiceStatus:
    """Observed state of the daemon. Never persisted."""

    running: bool
    version: str
    pid: Optional[int] = None
    uptime: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.running:
            self.pid = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> ServiceStatus:
        """
        Build a status from the daemon's JSON payload.

        Raises:
            StatusProtocolError: Required fields are missing or mistyped.
        """
        if not isinstance(data, dict):
            raise StatusProtocolError("Status response must be a JSON object")
        # Some daemon builds wrap the payload in {"result": ...}
        if "result" in data and isinstance(data["result"], dict):
            data = data["result"]

        running = data.get("running")
        version = data.get("version")
        pid = data.get("pid")
        uptime = data.get("uptime")
        if not isinstance(running, bool):
            raise StatusProtocolError("Status response is missing boolean 'running'")
        if not isinstance(version, str):
            raise StatusProtocolError("Status response is missing string 'version'")
        if pid is not None and (isinstance(pid, bool) or not isinstance(pid, int)):
            raise StatusProtocolError("Status response has a non-integer 'pid'")
        if uptime is not None and not isinstance(uptime, str):
            uptime = str(uptime)
        return cls(running=running, version=version, pid=pid, uptime=uptime)


class StatusClient:
    """
    HTTP client for the daemon's status endpoint.

    Example:
        client = StatusClient.from_config(load_config())
        status = client.get_status()
    """

    STATUS_PATH = "/status"

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5000,
        timeout: float = 30,
        use_tls: bool = False,
        verify_cert: bool = True,
        token: Optional[str] = None,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout
        self._use_tls = use_tls
        self._verify_cert = verify_cert
        self._token = token
        self._logger = get_logger("rcpctl.status")

    @classmethod
    def from_config(cls, document: ConfigDocument) -> StatusClient:
        return cls(
            host=document.connection.host,
            port=document.connection.port,
            timeout=document.other.timeout_seconds,
            use_tls=document.connection.use_tls,
            verify_cert=document.connection.verify_cert,
            token=document.auth.token,
        )

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    @property
    def url(self) -> str:
        scheme = "https" if self._use_tls else "http"
        return f"{scheme}://{self.address}{self.STATUS_PATH}"

    def _get_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def get_status(self) -> ServiceStatus:
        """
        Query the daemon.

        Raises:
            StatusUnavailableError: The daemon could not be reached in time.
            StatusProtocolError: The daemon answered with an error or bad payload.
        """
        self._logger.debug(f"Querying status at {self.url}")
        try:
            resp = requests.get(
                self.url,
                headers=self._get_headers(),
                timeout=self._timeout,
                verify=self._verify_cert,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise StatusUnavailableError(self.address, str(e)) from e
        except requests.RequestException as e:
            raise StatusProtocolError(f"Status request failed: {e}") from e

        if resp.status_code != 200:
            raise StatusProtocolError(f"Status request returned HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise StatusProtocolError("Status response is not valid JSON") from e

        return ServiceStatus.from_dict(payload)
