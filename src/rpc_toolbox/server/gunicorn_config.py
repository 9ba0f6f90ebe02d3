# gunicorn_config.py
import logging
import os

import yaml

from rpc_toolbox.server.config import DEFAULT_SERVICES_CONFIG, SERVICES_CONFIG_ENV, load_registry

# ------------------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------------------

# Per-service locks and in-memory service instances live in one process, so
# concurrency comes from threads, never from extra workers.
workers = 1
worker_class = "gthread"
threads = int(os.environ.get("RPC_THREADS", 8))
timeout = int(os.environ.get("RPC_TIMEOUT", 600))
SERVICES_CONFIG = os.environ.get(SERVICES_CONFIG_ENV, DEFAULT_SERVICES_CONFIG)

LOG_CONFIG = os.environ.get("RPC_LOG_CONFIG")
if LOG_CONFIG:
    with open(LOG_CONFIG) as f:
        logconfig_dict = yaml.safe_load(f)

logger = logging.getLogger("gunicorn.error")

# ------------------------------------------------------------------------------
# Gunicorn hooks
# ------------------------------------------------------------------------------

def on_starting(server):
    """Fail before forking if the services configuration cannot be loaded."""
    registry = load_registry(SERVICES_CONFIG)
    logger.info("[rpc] %d services configured from %s: %s",
                len(registry), SERVICES_CONFIG, ", ".join(registry.names()))

def on_exit(server):
    """Called just before exiting Gunicorn master process."""
    logger.info("[rpc] Server stopped")
