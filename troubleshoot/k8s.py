"""Kubernetes API client access (read-only)."""

from __future__ import annotations

import threading

_core_v1_api = None
_config_loaded = False
_init_lock = threading.Lock()


def get_core_v1():
    """
    Return a cached CoreV1Api client.

    Config loading (in-cluster or kubeconfig) and the API client object are both cached so
    repeated secret lookups don't re-initialize.
    """
    global _core_v1_api, _config_loaded

    if _core_v1_api is not None:
        return _core_v1_api

    with _init_lock:
        if _core_v1_api is not None:
            return _core_v1_api

        from kubernetes import client, config

        if not _config_loaded:
            try:
                config.load_incluster_config()
            except config.ConfigException:
                config.load_kube_config()
            _config_loaded = True

        _core_v1_api = client.CoreV1Api()
        return _core_v1_api


def is_not_found(e: Exception) -> bool:
    from kubernetes.client.rest import ApiException

    return isinstance(e, ApiException) and getattr(e, "status", None) == 404
