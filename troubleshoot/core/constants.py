"""Shared constants (API groups, wrapper keys, exit codes)."""

from __future__ import annotations

# Current (canonical) and legacy troubleshoot API group versions.
TROUBLESHOOT_V1BETA2_API_VERSION = "troubleshoot.sh/v1beta2"
TROUBLESHOOT_V1BETA1_API_VERSION = "troubleshoot.replicated.com/v1beta1"

TROUBLESHOOT_API_VERSIONS = (TROUBLESHOOT_V1BETA2_API_VERSION, TROUBLESHOOT_V1BETA1_API_VERSION)

# Keys under which specs are embedded in Secrets/ConfigMaps.
SUPPORT_BUNDLE_KEY = "support-bundle-spec"
REDACTOR_KEY = "redactor-spec"
PREFLIGHT_KEY = "preflight.yaml"
PREFLIGHT_KEY_2 = "preflight-spec"

WRAPPER_KEYS = (SUPPORT_BUNDLE_KEY, REDACTOR_KEY, PREFLIGHT_KEY, PREFLIGHT_KEY_2)

DOCKER_CONFIG_JSON_KEY = ".dockerconfigjson"
DOCKER_CONFIG_JSON_SECRET_TYPE = "kubernetes.io/dockerconfigjson"

# Process exit codes
EXIT_CODE_CATCH_ALL = 1
EXIT_CODE_SPEC_ISSUES = 2
EXIT_CODE_FAIL = 3
EXIT_CODE_WARN = 4
