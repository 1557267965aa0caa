from __future__ import annotations

from typing import List, Optional

import requests
from requests.auth import HTTPDigestAuth

from myenergi_exporter.config import MyenergiAPIConfig
from myenergi_exporter.models.enums import DeviceKind
from myenergi_exporter.services.decoder import DecodeError, Snapshot, decode_envelope


class TransportError(RuntimeError):
    """Network, TLS, auth or HTTP status failure talking to the myenergi API."""


class MyenergiClient:
    """Digest-authenticated client for the myenergi ``cgi-jstatus`` endpoints."""

    API_BASE_DEFAULT = "https://s18.myenergi.net"

    def __init__(self, cfg: MyenergiAPIConfig, log, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()
        self.base_url = (cfg.base_url or self.API_BASE_DEFAULT).rstrip("/")
        self.auth = HTTPDigestAuth(cfg.hub_serial or "", cfg.api_key or "")

    # ------------------------------------------------------------------
    @property
    def enabled(self) -> bool:
        return bool(self.cfg.hub_serial and self.cfg.api_key)

    # ------------------------------------------------------------------
    def _build_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    def _get(self, path: str) -> bytes:
        url = self._build_url(path)
        try:
            resp = self.session.get(url, auth=self.auth, timeout=self.cfg.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"GET {path} failed: {exc}") from exc

        # Drain and release the connection on every path so it can be reused.
        with resp:
            try:
                body = resp.content
            except requests.RequestException as exc:
                raise TransportError(f"GET {path} body read failed: {exc}") from exc
            if resp.status_code != 200:
                raise TransportError(f"GET {path} returned HTTP {resp.status_code}")
            return body

    # ------------------------------------------------------------------
    def fetch(self, kind: DeviceKind) -> List[Snapshot]:
        """
        Poll the status endpoint for one device family.

        Exactly one request is made; there is no retry. Raises
        ``TransportError`` or ``DecodeError``.
        """
        body = self._get(kind.path)
        try:
            snapshots = decode_envelope(body, kind)
        except DecodeError:
            self.log.debug("myenergi %s payload rejected: %r", kind.value, body[:200])
            raise
        self.log.debug("myenergi %s: %d device(s)", kind.value, len(snapshots))
        return snapshots
