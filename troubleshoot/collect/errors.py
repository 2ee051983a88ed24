"""Stable classification of low-level collection errors (deterministic, operator-facing messages)."""

from __future__ import annotations

import ipaddress
from typing import Tuple

# Hostname fragments that usually mean an internal/offline registry.
_AIR_GAPPED_HOST_PATTERNS = (
    "internal-registry",
    "harbor.internal",
    "registry.internal",
    "artifactory.internal",
    ".company.com",
)
_AIR_GAPPED_SUFFIXES = (".internal", ".local", ".corp", ".localdomain")


def classify_reference_error(image: str, err: Exception) -> str:
    if "invalid reference format" in str(err):
        return f"invalid image name format: {image}"
    return f"failed to parse image name: {err}"


def classify_auth_error(err: Exception) -> str:
    s = str(err)
    sl = s.lower()
    if "connection refused" in sl:
        return "registry authentication failed: unable to connect to Kubernetes API"
    if "secret" in sl and "not found" in sl:
        return "registry authentication failed: specified secret not found"
    if "not supported" in sl:
        return "registry authentication failed: invalid secret format"
    return f"registry authentication failed: {s}"


def classify_registry_error(err: Exception) -> Tuple[str, str]:
    """
    Map a registry access error into a stable bucket.
    Returns: (bucket, message)
    """
    s = str(err)
    sl = s.lower()

    if "timeout" in sl or "timed out" in sl:
        return "timeout", "registry access failed: connection timeout"

    if "connection refused" in sl:
        return "connection_refused", "registry access failed: connection refused (registry may be down or unreachable)"

    if any(x in sl for x in ("no such host", "name or service not known", "nodename nor servname", "getaddrinfo")):
        return (
            "dns",
            "registry access failed: registry hostname not found (check network or air-gapped environment)",
        )

    if any(x in sl for x in ("certificate", "tls", "x509", "ssl")):
        return (
            "tls",
            "registry access failed: TLS/certificate error (check registry certificate configuration)",
        )

    return "unknown", f"registry access failed: {s}"


def is_air_gapped_registry(host: str) -> bool:
    """
    Best-effort guess whether a registry host is internal/offline.

    Matches localhost, loopback and private IPs, and common internal domain names.
    """
    h = (host or "").strip().lower()
    if not h:
        return False
    hostname = h.rsplit(":", 1)[0] if h.count(":") == 1 else h

    if hostname == "localhost":
        return True
    try:
        ip = ipaddress.ip_address(hostname)
        return ip.is_private or ip.is_loopback
    except ValueError:
        pass

    if any(p in h for p in _AIR_GAPPED_HOST_PATTERNS):
        return True
    return hostname.endswith(_AIR_GAPPED_SUFFIXES)
