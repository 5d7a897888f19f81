"""Federation layout configuration."""

from fedstore.config.federation import (
    AdapterSettings,
    FederationConfig,
    StoreSettings,
    default_config_path,
    load_federation_config,
)

__all__ = [
    "AdapterSettings",
    "FederationConfig",
    "StoreSettings",
    "default_config_path",
    "load_federation_config",
]
