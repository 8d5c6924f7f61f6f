"""OpenRPC discovery for Python JSON-RPC services."""

from .utils.env import load_env

# Ensure environment defaults from `.env` are available to all modules on import.
load_env()
