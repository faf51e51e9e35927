"""Gateway configuration from YAML file and environment.

Loads from config/config.yaml (optional) with all settings in one place:
- OAuth token endpoint and refresh credentials
- Resource API base URL and product path
- Pacing and backoff tuning

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files,
and the ZOHO_* variables override whatever the file says.
"""

import logging
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

# Configure module logger
logger = logging.getLogger(__name__)


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        # Support both ${VAR} and ${VAR:-default} syntax
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Merge overlay into a copy of base, recursing into nested dicts."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# Default config file: config/config.yaml in src/ directory
DEFAULT_CONFIG_FILE = Path(__file__).parent / "config.yaml"

# Environment variable -> GatewayConfig field
ENV_OVERRIDES = {
    "ZOHO_DC_BASE": "auth_base_url",
    "ZOHO_API_BASE": "api_base_url",
    "ZOHO_PRODUCT": "product",
    "ZOHO_REFRESH_TOKEN": "refresh_token",
    "ZOHO_CLIENT_ID": "client_id",
    "ZOHO_CLIENT_SECRET": "client_secret",
    "ZOHO_ORGANIZATION_ID": "organization_id",
    "ZOHO_AUTH_SCHEME": "auth_scheme",
    "ZOHO_MIN_GAP_MS": "min_gap_ms",
    "ZOHO_BACKOFF_MIN_SECONDS": "backoff_min_seconds",
    "ZOHO_BACKOFF_MAX_SECONDS": "backoff_max_seconds",
    "ZOHO_MAX_RETRY_AFTER_SECONDS": "max_retry_after_seconds",
    "ZOHO_REQUEST_TIMEOUT_SECONDS": "request_timeout_seconds",
    "ZOHO_MAX_CONCURRENT": "max_concurrent",
}

_SECRET_FIELDS = {"refresh_token", "client_secret"}


@dataclass
class GatewayConfig:
    """Outbound API gateway configuration.

    Configuration structure (config.yaml):
        gateway:
          auth:
            base_url: https://accounts.zoho.com
            refresh_token: ${ZOHO_REFRESH_TOKEN}
            client_id: ${ZOHO_CLIENT_ID}
            client_secret: ${ZOHO_CLIENT_SECRET}
            scheme: Zoho-oauthtoken
          api:
            base_url: https://www.zohoapis.com
            product: inventory
            organization_id: ${ZOHO_ORGANIZATION_ID}
            timeout_seconds: 30
            max_concurrent: 20
          pacing:
            min_gap_ms: 300
            backoff_min_seconds: 15
            backoff_max_seconds: 45
            max_retry_after_seconds: 300

    Values are read-only inputs to the gateway once loaded.
    """

    # =========================================================================
    # AUTH
    # =========================================================================
    auth_base_url: str = "https://accounts.zoho.com"
    refresh_token: str = ""
    client_id: str = ""
    client_secret: str = ""
    auth_scheme: str = "Zoho-oauthtoken"

    # =========================================================================
    # RESOURCE API
    # =========================================================================
    api_base_url: str = "https://www.zohoapis.com"
    product: str = "inventory"
    organization_id: str = ""
    request_timeout_seconds: float = 30.0
    max_concurrent: int = 20

    # =========================================================================
    # PACING AND BACKOFF
    # =========================================================================
    min_gap_ms: int = 300
    backoff_min_seconds: float = 15.0
    backoff_max_seconds: float = 45.0
    max_retry_after_seconds: Optional[float] = 300.0

    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.min_gap_ms = int(self.min_gap_ms)
        self.max_concurrent = int(self.max_concurrent)
        self.backoff_min_seconds = float(self.backoff_min_seconds)
        self.backoff_max_seconds = float(self.backoff_max_seconds)
        self.request_timeout_seconds = float(self.request_timeout_seconds)
        if self.max_retry_after_seconds is not None:
            self.max_retry_after_seconds = float(self.max_retry_after_seconds)
        self.organization_id = str(self.organization_id or "")

    @property
    def token_url(self) -> str:
        return f"{self.auth_base_url.rstrip('/')}/oauth/v2/token"

    @property
    def resource_base_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/{self.product.strip('/')}/v1"

    @property
    def min_gap_seconds(self) -> float:
        return self.min_gap_ms / 1000.0

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            ValueError: If a required value is missing or out of range
        """
        missing = [
            name
            for name in ("refresh_token", "client_id", "client_secret")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(
                f"Missing required gateway settings: {', '.join(missing)}. "
                "Set ZOHO_REFRESH_TOKEN, ZOHO_CLIENT_ID and ZOHO_CLIENT_SECRET."
            )

        for name in ("auth_base_url", "api_base_url"):
            value = getattr(self, name)
            if not value.startswith(("http://", "https://")):
                raise ValueError(f"{name} must start with http:// or https://, got: {value!r}")

        if self.min_gap_ms < 0:
            raise ValueError(f"min_gap_ms must be >= 0, got {self.min_gap_ms}")
        if not 0 <= self.backoff_min_seconds <= self.backoff_max_seconds:
            raise ValueError(
                f"Invalid backoff range: [{self.backoff_min_seconds}, {self.backoff_max_seconds}]"
            )
        if self.max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {self.max_concurrent}")

    def to_safe_dict(self) -> Dict[str, Any]:
        """Config as dict with secrets masked, for logging."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in _SECRET_FIELDS and value:
                value = "***"
            result[f.name] = value
        return result


def _flatten_gateway_section(section: Dict[str, Any]) -> Dict[str, Any]:
    """Map the nested YAML layout onto GatewayConfig field names."""
    auth = section.get("auth", {}) or {}
    api = section.get("api", {}) or {}
    pacing = section.get("pacing", {}) or {}

    mapping = {
        "auth_base_url": auth.get("base_url"),
        "refresh_token": auth.get("refresh_token"),
        "client_id": auth.get("client_id"),
        "client_secret": auth.get("client_secret"),
        "auth_scheme": auth.get("scheme"),
        "api_base_url": api.get("base_url"),
        "product": api.get("product"),
        "organization_id": api.get("organization_id"),
        "request_timeout_seconds": api.get("timeout_seconds"),
        "max_concurrent": api.get("max_concurrent"),
        "min_gap_ms": pacing.get("min_gap_ms"),
        "backoff_min_seconds": pacing.get("backoff_min_seconds"),
        "backoff_max_seconds": pacing.get("backoff_max_seconds"),
        "max_retry_after_seconds": pacing.get("max_retry_after_seconds"),
    }
    return {key: value for key, value in mapping.items() if value not in (None, "")}


def _unexpanded(value: Any) -> bool:
    # ${VAR} left in place because VAR is unset
    return isinstance(value, str) and value.startswith("${")


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    validate: bool = True,
) -> GatewayConfig:
    """Load gateway configuration.

    Priority (highest to lowest):
    1. overrides argument (GatewayConfig field names)
    2. ZOHO_* environment variables
    3. config.yaml (with ${VAR} expansion)
    4. GatewayConfig defaults

    A missing config file is not an error: the environment alone may be enough.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    values: Dict[str, Any] = {}
    if config_path.exists():
        logger.info(f"Loading configuration from file: {config_path}")
        yaml_data = _expand_env_vars(load_yaml(config_path))
        values = _flatten_gateway_section(yaml_data.get("gateway", {}) or {})
        values = {key: value for key, value in values.items() if not _unexpanded(value)}
    else:
        logger.debug(f"No configuration file at {config_path}, using environment only")

    for env_name, field_name in ENV_OVERRIDES.items():
        env_value = os.getenv(env_name)
        if env_value:
            values[field_name] = env_value

    if overrides:
        logger.debug(f"Applying overrides: {list(overrides.keys())}")
        values = _deep_merge(values, overrides)

    config = GatewayConfig(**values)

    logger.debug("Configuration loaded", extra={"config": config.to_safe_dict()})

    if validate:
        config.validate()

    return config


__all__ = [
    "GatewayConfig",
    "load_config",
    "load_yaml",
    "DEFAULT_CONFIG_FILE",
    "ENV_OVERRIDES",
]
