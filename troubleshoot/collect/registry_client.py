"""Read-only OCI registry access: reachability checks and cosign signature lookup."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

import requests

from troubleshoot.collect.images import DEFAULT_DOMAIN, ImageRef
from troubleshoot.collect.registry_auth import RegistryAuthConfig
from troubleshoot.core.errors import RegistryAccessError

logger = logging.getLogger(__name__)

COSIGN_SIGNATURE_ANNOTATION = "dev.cosignproject.cosign/signature"

_MANIFEST_ACCEPT = ", ".join(
    [
        "application/vnd.oci.image.manifest.v1+json",
        "application/vnd.oci.image.index.v1+json",
        "application/vnd.docker.distribution.manifest.v2+json",
        "application/vnd.docker.distribution.manifest.list.v2+json",
    ]
)
_CHALLENGE_PARAM_RE = re.compile(r'(\w+)="([^"]*)"')


@dataclass(frozen=True)
class SignatureInfo:
    signature: str
    verified: bool = False
    error: Optional[str] = None


class RegistryClient(Protocol):
    def check_access(self, ref: ImageRef, auth: Optional[RegistryAuthConfig]) -> None:
        """Raise RegistryAccessError if the registry can't be reached."""

    def fetch_signatures(self, ref: ImageRef, auth: Optional[RegistryAuthConfig]) -> List[SignatureInfo]:
        """Return the signatures attached to the image (empty when it has none)."""


def _registry_base(host: str) -> str:
    if host == DEFAULT_DOMAIN:
        host = "registry-1.docker.io"
    return f"https://{host}"


def _access_error(e: requests.RequestException) -> RegistryAccessError:
    # Normalize requests' exception zoo into messages the error classifier understands.
    if isinstance(e, requests.Timeout):
        return RegistryAccessError(f"connection timeout: {e}")
    if isinstance(e, requests.exceptions.SSLError):
        return RegistryAccessError(f"tls certificate error: {e}")
    msg = str(e)
    if isinstance(e, requests.ConnectionError):
        if "Name or service not known" in msg or "nodename nor servname" in msg or "getaddrinfo" in msg:
            return RegistryAccessError(f"no such host: {msg}")
        if "Connection refused" in msg:
            return RegistryAccessError(f"connection refused: {msg}")
    return RegistryAccessError(msg)


class HttpRegistryClient:
    """
    Registry v2 client over `requests`.

    Signatures are looked up with the cosign tag convention (`sha256-<hex>.sig`). Signatures are
    collected, never verified.
    """

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        verify_tls: bool = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.verify_tls = verify_tls
        self.session = session or requests.Session()

    def _fetch_token(self, challenge: str, auth: Optional[RegistryAuthConfig]) -> Optional[str]:
        params = dict(_CHALLENGE_PARAM_RE.findall(challenge))
        realm = params.pop("realm", None)
        if not realm:
            return None
        basic = (auth.username, auth.password) if auth else None
        resp = self.session.get(realm, params=params, auth=basic, timeout=self.timeout, verify=self.verify_tls)
        if resp.status_code != 200:
            return None
        try:
            body = resp.json()
        except ValueError as e:
            raise RegistryAccessError(f"invalid token response from {realm}: {e}") from e
        if not isinstance(body, dict):
            raise RegistryAccessError(f"invalid token response from {realm}: expected an object")
        token = body.get("token") or body.get("access_token")
        return token if isinstance(token, str) else None

    def _request(
        self,
        method: str,
        url: str,
        auth: Optional[RegistryAuthConfig],
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        hdrs = dict(headers or {})
        try:
            resp = self.session.request(method, url, headers=hdrs, timeout=self.timeout, verify=self.verify_tls)
            if resp.status_code != 401:
                return resp

            challenge = resp.headers.get("WWW-Authenticate", "")
            if challenge.lower().startswith("bearer"):
                token = self._fetch_token(challenge, auth)
                if token:
                    hdrs["Authorization"] = f"Bearer {token}"
                    return self.session.request(
                        method, url, headers=hdrs, timeout=self.timeout, verify=self.verify_tls
                    )
            elif auth is not None:
                return self.session.request(
                    method,
                    url,
                    headers=hdrs,
                    auth=(auth.username, auth.password),
                    timeout=self.timeout,
                    verify=self.verify_tls,
                )
            return resp
        except requests.RequestException as e:
            raise _access_error(e) from e

    def check_access(self, ref: ImageRef, auth: Optional[RegistryAuthConfig]) -> None:
        try:
            resp = self.session.get(
                f"{_registry_base(ref.registry_host)}/v2/", timeout=self.timeout, verify=self.verify_tls
            )
        except requests.RequestException as e:
            raise _access_error(e) from e
        # 401 is the auth challenge: the registry is there.
        if resp.status_code not in (200, 401):
            raise RegistryAccessError(f"unexpected status {resp.status_code} from {ref.registry_host}")

    def _resolve_digest(self, ref: ImageRef, auth: Optional[RegistryAuthConfig]) -> str:
        if ref.digest:
            return ref.digest
        url = f"{_registry_base(ref.registry_host)}/v2/{ref.repository}/manifests/{ref.reference}"
        resp = self._request("HEAD", url, auth, headers={"Accept": _MANIFEST_ACCEPT})
        digest = resp.headers.get("Docker-Content-Digest")
        if resp.status_code != 200 or not digest:
            raise RegistryAccessError(f"failed to resolve digest for {ref}: status {resp.status_code}")
        return digest

    def fetch_signatures(self, ref: ImageRef, auth: Optional[RegistryAuthConfig]) -> List[SignatureInfo]:
        digest = self._resolve_digest(ref, auth)
        sig_tag = digest.replace(":", "-") + ".sig"
        url = f"{_registry_base(ref.registry_host)}/v2/{ref.repository}/manifests/{sig_tag}"
        resp = self._request("GET", url, auth, headers={"Accept": _MANIFEST_ACCEPT})
        if resp.status_code == 404:
            logger.debug("No signatures found for %s", ref)
            return []
        if resp.status_code != 200:
            raise RegistryAccessError(f"failed to fetch signature manifest for {ref}: status {resp.status_code}")

        try:
            manifest = resp.json()
        except ValueError as e:
            raise RegistryAccessError(f"invalid signature manifest for {ref}: {e}") from e
        if not isinstance(manifest, dict):
            raise RegistryAccessError(f"invalid signature manifest for {ref}: expected an object")
        layers = manifest.get("layers") or []
        if not isinstance(layers, list):
            raise RegistryAccessError(f"invalid signature manifest for {ref}: layers is not a list")

        out: List[SignatureInfo] = []
        for layer in layers:
            annotations = layer.get("annotations") if isinstance(layer, dict) else None
            sig = annotations.get(COSIGN_SIGNATURE_ANNOTATION) if isinstance(annotations, dict) else None
            if isinstance(sig, str) and sig:
                out.append(SignatureInfo(signature=sig))
            else:
                out.append(SignatureInfo(signature="", error="empty signature payload"))
        logger.debug("Found %d signatures for image %s", len(out), ref)
        return out
