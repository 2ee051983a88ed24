"""Resolve registry credentials for an image from image pull secrets.

Credentials can come from inline `.dockerconfigjson` data in the collector spec, or from a named
`kubernetes.io/dockerconfigjson` Secret read from the cluster.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from troubleshoot.collect.images import DEFAULT_DOMAIN, ImageRef
from troubleshoot.core.constants import DOCKER_CONFIG_JSON_KEY, DOCKER_CONFIG_JSON_SECRET_TYPE
from troubleshoot.core.errors import RegistryAuthError
from troubleshoot.core.models import ImagePullSecrets
from troubleshoot.k8s import get_core_v1, is_not_found

logger = logging.getLogger(__name__)

_DOCKER_HUB_ALIASES = ("docker.io", "index.docker.io", "registry-1.docker.io", "https://index.docker.io/v1/")


@dataclass(frozen=True)
class RegistryAuthConfig:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"RegistryAuthConfig(username={self.username!r}, password=***)"


def _b64decode(raw: str) -> bytes:
    return base64.b64decode("".join((raw or "").split()), validate=True)


def _registry_keys(domain: str) -> List[str]:
    if domain == DEFAULT_DOMAIN:
        return list(_DOCKER_HUB_ALIASES)
    return [domain, f"https://{domain}", f"http://{domain}"]


def auth_config_from_docker_config(image_ref: ImageRef, docker_config_json: bytes) -> Optional[RegistryAuthConfig]:
    """Pick the credentials for `image_ref`'s registry. None when the config has no entry for it."""
    try:
        cfg = json.loads(docker_config_json)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RegistryAuthError(f"failed to unmarshal docker config json: {e}") from e
    if not isinstance(cfg, dict):
        raise RegistryAuthError("docker config json must be an object")

    auths: Dict[str, Any] = cfg.get("auths") or {}
    entry = None
    for key in _registry_keys(image_ref.registry_host):
        if isinstance(auths.get(key), dict):
            entry = auths[key]
            break
    if entry is None:
        return None

    auth = entry.get("auth") or ""
    if auth:
        try:
            auth = _b64decode(auth).decode("utf-8")
        except (binascii.Error, ValueError):
            # Not base64: some tools write "user:password" verbatim.
            pass
        parts = auth.split(":")
        if len(parts) != 2:
            raise RegistryAuthError(f"expected 2 parts in the auth string, but found {len(parts)}")
        return RegistryAuthConfig(username=parts[0], password=parts[1])

    username = entry.get("username") or ""
    password = entry.get("password") or ""
    if not (username or password):
        return None
    return RegistryAuthConfig(username=username, password=password)


def get_image_auth_config_from_data(
    image_ref: ImageRef, pull_secrets: ImagePullSecrets
) -> Optional[RegistryAuthConfig]:
    if pull_secrets.secret_type != DOCKER_CONFIG_JSON_SECRET_TYPE:
        raise RegistryAuthError(f"ImagePullSecret type {pull_secrets.secret_type} is not supported")

    encoded = pull_secrets.data.get(DOCKER_CONFIG_JSON_KEY)
    if encoded is None:
        raise RegistryAuthError(f"secret data is missing the {DOCKER_CONFIG_JSON_KEY} key")
    try:
        raw = _b64decode(encoded)
    except (binascii.Error, ValueError) as e:
        raise RegistryAuthError(f"failed to decode {DOCKER_CONFIG_JSON_KEY}: {e}") from e

    return auth_config_from_docker_config(image_ref, raw)


def get_image_auth_config_from_secret(
    image_ref: ImageRef, namespace: str, secret_name: str, client: Optional[Any] = None
) -> Optional[RegistryAuthConfig]:
    v1 = client if client is not None else get_core_v1()
    try:
        secret = v1.read_namespaced_secret(name=secret_name, namespace=namespace)
    except Exception as e:
        if is_not_found(e):
            raise RegistryAuthError(f"secret {namespace}/{secret_name} not found") from e
        raise RegistryAuthError(f"failed to get secret {namespace}/{secret_name}: {e}") from e

    secret_type = getattr(secret, "type", None)
    if secret_type != DOCKER_CONFIG_JSON_SECRET_TYPE:
        raise RegistryAuthError(f"ImagePullSecret type {secret_type} is not supported")

    data = secret.data or {}
    encoded = data.get(DOCKER_CONFIG_JSON_KEY)
    if encoded is None:
        raise RegistryAuthError(f"secret {namespace}/{secret_name} is missing the {DOCKER_CONFIG_JSON_KEY} key")
    try:
        raw = _b64decode(encoded)
    except (binascii.Error, ValueError) as e:
        raise RegistryAuthError(f"failed to decode {DOCKER_CONFIG_JSON_KEY}: {e}") from e
    return auth_config_from_docker_config(image_ref, raw)


def get_image_auth_config(
    namespace: str,
    pull_secrets: Optional[ImagePullSecrets],
    image_ref: ImageRef,
    client: Optional[Any] = None,
) -> Optional[RegistryAuthConfig]:
    """
    Resolve credentials for `image_ref`.

    Returns None when no pull secret is configured or it has no entry for the registry.

    Raises:
        RegistryAuthError: the pull secret is missing, of the wrong type or malformed.
    """
    if pull_secrets is None:
        return None
    if pull_secrets.data:
        return get_image_auth_config_from_data(image_ref, pull_secrets)
    if pull_secrets.name:
        logger.debug("Reading image pull secret %s/%s", namespace, pull_secrets.name)
        return get_image_auth_config_from_secret(image_ref, namespace, pull_secrets.name, client=client)
    return None
