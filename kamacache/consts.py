"""Names shared across the cache package."""

FROM_PEER = "from_peer"
"""Marker telling a group that a write came from another node."""

DEFAULT_CLIENT_NAME = "zuo-cache"
"""Service name used for registration and discovery."""

DATA_ID = "config.yaml"
"""Identifier of the remote configuration document."""

GROUP = "dev"
"""Configuration group of the remote configuration document."""