"""
Federation Configuration Models
===============================

Pydantic models for the federation layout: which stores exist, which store
is primary, the dedup priority order, and which adapters serve each record
type.

The layout is loaded from YAML (``federation.yaml`` next to this module, or
the file named by ``FEDSTORE_CONFIG``) and validated as a whole, so a typo
in a store tag or profile name fails at startup rather than on first read.

Example:
    >>> config = load_federation_config()
    >>> config.primary
    'default'
    >>> [a.store for a in config.adapters_for(RecordType.REGISTRATIONS)]
    ['default', 'techday', 'dc']
"""

import os
from pathlib import Path
from typing import Dict, List, Optional, Union

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from fedstore.models import RecordType
from fedstore.storage.adapters import PROFILES
from fedstore.storage.client.config import DEFAULT_CREDENTIALS_ENV, DEFAULT_DATABASE, FirestoreConfig

log = structlog.get_logger()

CONFIG_ENV = "FEDSTORE_CONFIG"
TIMEOUT_ENV = "FEDSTORE_ADAPTER_TIMEOUT"


class StoreSettings(BaseModel):
    """
    Connection settings of one backing store.

    Attributes:
        project_id: Cloud project (None = from credentials or env)
        database_id: Named database, "(default)" for the project default
        credentials_env: Env var holding the service-account JSON
    """
    project_id: Optional[str] = None
    database_id: str = DEFAULT_DATABASE
    credentials_env: str = DEFAULT_CREDENTIALS_ENV

    def to_firestore_config(self) -> FirestoreConfig:
        kwargs = {"database_id": self.database_id, "credentials_env": self.credentials_env}
        if self.project_id:
            kwargs["project_id"] = self.project_id
        return FirestoreConfig(**kwargs)


class AdapterSettings(BaseModel):
    """One (store, collection, profile) binding for a record type."""
    store: str = Field(..., min_length=1)
    collection: str = Field(..., min_length=1)
    profile: str = Field(..., min_length=1)

    @field_validator("profile")
    @classmethod
    def profile_must_exist(cls, v: str) -> str:
        if v not in PROFILES:
            raise ValueError(f"unknown adapter profile '{v}' (known: {sorted(PROFILES)})")
        return v


class FederationConfig(BaseModel):
    """
    Complete federation layout.

    Attributes:
        stores: Store settings keyed by tag
        primary: Tag of the store receiving new records
        priority: Dedup priority, highest first
        adapter_timeout_seconds: Per-adapter read timeout
        record_types: Adapter bindings per record type
    """
    version: str = "1.0"
    stores: Dict[str, StoreSettings]
    primary: str
    priority: List[str]
    adapter_timeout_seconds: float = Field(default=8.0, gt=0.0)
    record_types: Dict[RecordType, List[AdapterSettings]]

    @field_validator("stores")
    @classmethod
    def tags_must_be_valid(cls, v: Dict[str, StoreSettings]) -> Dict[str, StoreSettings]:
        if not v:
            raise ValueError("at least one store is required")
        for tag in v:
            if not tag or ":" in tag:
                raise ValueError(f"invalid store tag {tag!r}: must be non-empty and contain no ':'")
        return v

    @field_validator("primary")
    @classmethod
    def primary_must_be_store(cls, v: str, info) -> str:
        if "stores" in info.data and v not in info.data["stores"]:
            raise ValueError(f"primary store '{v}' is not declared in stores")
        return v

    @field_validator("priority")
    @classmethod
    def priority_must_cover_stores(cls, v: List[str], info) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError(f"priority lists a store more than once: {v}")
        if "stores" in info.data and set(v) != set(info.data["stores"]):
            raise ValueError(
                f"priority must list every store exactly once: "
                f"got {v}, stores are {sorted(info.data['stores'])}"
            )
        if "primary" in info.data and v and v[0] != info.data["primary"]:
            raise ValueError(f"priority must start with the primary store '{info.data['primary']}'")
        return v

    @model_validator(mode="after")
    def adapters_must_be_consistent(self) -> "FederationConfig":
        for record_type, adapters in self.record_types.items():
            tags = [a.store for a in adapters]
            if len(set(tags)) != len(tags):
                raise ValueError(f"{record_type.value}: a store is bound more than once ({tags})")
            for adapter in adapters:
                if adapter.store not in self.stores:
                    raise ValueError(f"{record_type.value}: unknown store '{adapter.store}'")
                profile = PROFILES[adapter.profile]
                if profile.record_type != record_type:
                    raise ValueError(
                        f"{record_type.value}: profile '{adapter.profile}' "
                        f"maps {profile.record_type.value}"
                    )
            if tags.count(self.primary) != 1:
                raise ValueError(f"{record_type.value}: exactly one adapter must use the primary store")
        return self

    def adapters_for(self, record_type: RecordType) -> List[AdapterSettings]:
        return self.record_types.get(RecordType(record_type), [])


def default_config_path() -> Path:
    return Path(__file__).parent / "federation.yaml"


def load_federation_config(path: Optional[Union[str, Path]] = None) -> FederationConfig:
    """
    Load and validate the federation layout.

    Args:
        path: YAML file; defaults to $FEDSTORE_CONFIG, then the bundled file

    Returns:
        Validated FederationConfig

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the layout is inconsistent
    """
    config_path = Path(path or os.environ.get(CONFIG_ENV) or default_config_path())

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    timeout_override = os.environ.get(TIMEOUT_ENV)
    if timeout_override:
        data["adapter_timeout_seconds"] = float(timeout_override)

    config = FederationConfig.model_validate(data)
    log.debug(
        "Loaded federation config",
        path=str(config_path),
        stores=list(config.stores),
        timeout=config.adapter_timeout_seconds,
    )
    return config
