"""Centralized constants for the stack controller.

Default ports, credentials, retry budgets and exit codes live here so the
CLI, the config models and the workflows agree on them.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Host-mapped ports (defaults for StackConfig; users may override them)
# ---------------------------------------------------------------------------
DEFAULT_HOST_PORTS: dict[str, int] = {
    "elasticsearch": 9200,
    "kibana": 5601,
}

DEFAULT_STACK_VERSION = "9.2.0"
DEFAULT_PROJECT_NAME = "elk"

# ---------------------------------------------------------------------------
# Credentials. The elastic superuser is fixed; its password is configurable.
# kibana_system is provisioned by the one-shot setup service.
# ---------------------------------------------------------------------------
ELASTIC_USERNAME = "elastic"
DEFAULT_ELASTIC_PASSWORD = "elastic_password_123"
KIBANA_SYSTEM_USERNAME = "kibana_system"
DEFAULT_KIBANA_SYSTEM_PASSWORD = "kibana_password_123"
DEFAULT_ENCRYPTION_KEY = "a7c9f2e4b6d8a0c2e4f6b8d0a2c4e6f8"
MIN_ENCRYPTION_KEY_LENGTH = 32

# ---------------------------------------------------------------------------
# Elasticsearch HTTP endpoints
# ---------------------------------------------------------------------------
CLUSTER_HEALTH_PATH = "/_cluster/health"
ROOT_INFO_PATH = "/"

# ---------------------------------------------------------------------------
# Polling budgets
# ---------------------------------------------------------------------------
DEFAULT_HEALTH_MAX_ATTEMPTS = 30
DEFAULT_HEALTH_INTERVAL = 10.0  # seconds
DEFAULT_REQUEST_TIMEOUT = 5.0  # seconds
DEFAULT_EXIT_POLL_INTERVAL = 5.0  # seconds

LOOPBACK_ADDRESS = "127.0.0.1"

# ---------------------------------------------------------------------------
# Process exit codes
# ---------------------------------------------------------------------------
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_COMMAND_NOT_FOUND = 127
EXIT_INTERRUPTED = 130

# Placeholders used when the runtime does not report a field.
MISSING_VALUE = "n/a"
MISSING_MARKER = "-"

LOGS_HINT = "docker compose logs -f"
