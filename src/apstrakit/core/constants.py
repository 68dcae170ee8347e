"""apstrakit constants: API paths, retry defaults, and filesystem layout."""

from __future__ import annotations

from enum import IntEnum

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    PARSE_ERROR = 3


# ---------------------------------------------------------------------------
# Filesystem layout
# ---------------------------------------------------------------------------

APSTRAKIT_DIR_NAME = ".apstrakit"
CONFIG_FILENAME = "config.toml"

# ---------------------------------------------------------------------------
# API paths
# ---------------------------------------------------------------------------

API_URL_BLUEPRINT_BY_ID = "/api/blueprints/{blueprint_id}"
API_URL_POLICIES = API_URL_BLUEPRINT_BY_ID + "/policies"
API_URL_POLICY_BY_ID = API_URL_POLICIES + "/{policy_id}"
API_URL_QUERY_ENGINE = API_URL_BLUEPRINT_BY_ID + "/qe"
API_URL_OBJ_POLICY_IMPORT = API_URL_BLUEPRINT_BY_ID + "/obj-policy-import"
API_URL_OBJ_POLICY_EXPORT = API_URL_BLUEPRINT_BY_ID + "/obj-policy-export"
API_URL_ENDPOINT_POLICY_BY_ID = API_URL_BLUEPRINT_BY_ID + "/endpoint-policies/{policy_id}"

MUTEX_KEY_SEPARATOR = ":"

# ---------------------------------------------------------------------------
# Retries
# ---------------------------------------------------------------------------

RULE_LOOKUP_MAX_RETRIES = 10
RULE_LOOKUP_BACKOFF_SECONDS = 0.1  # wait before attempt i is i * backoff

# ---------------------------------------------------------------------------
# Ports
# ---------------------------------------------------------------------------

PORT_ANY = "any"
PORT_RANGE_SEP = "-"
PORT_RANGES_SEP = ","
PORT_MAX = 65535
