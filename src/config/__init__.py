"""Configuration loading for the inventory API gateway.

Configuration Structure
-----------------------

config/
    config.yaml          # Optional; gateway.auth / gateway.api / gateway.pacing

Environment variables (ZOHO_REFRESH_TOKEN, ZOHO_CLIENT_ID, ZOHO_CLIENT_SECRET,
ZOHO_ORGANIZATION_ID, ZOHO_MIN_GAP_MS, ...) override the file.

Usage Examples
--------------

Load configuration:
    >>> from config import load_config
    >>> config = load_config()
    >>> config.token_url
    'https://accounts.zoho.com/oauth/v2/token'

Override values (tests, tooling):
    >>> config = load_config(overrides={"min_gap_ms": 0}, validate=False)
"""

from config.config import (
    DEFAULT_CONFIG_FILE,
    ENV_OVERRIDES,
    GatewayConfig,
    load_config,
    load_yaml,
)

__all__ = [
    "load_config",
    "load_yaml",
    "GatewayConfig",
    "DEFAULT_CONFIG_FILE",
    "ENV_OVERRIDES",
]
