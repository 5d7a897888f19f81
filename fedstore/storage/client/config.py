"""
Firestore Configuration
=======================

Connection settings for one backing document store.

Each store gets its own FirestoreConfig. A store is either the default
database of a project, a named database inside the same project
("techday", "aimsatx"), or the default database of a different project
entirely (credentials come from a different service account).

Usage:
    from fedstore.storage.client import FirestoreConfig

    # Default store (env vars or defaults)
    config = FirestoreConfig()

    # Named database in the same project
    config = FirestoreConfig(database_id="techday")

    # Other project, separate service account
    config = FirestoreConfig(credentials_env="DIGITALCANVAS_SERVICE_ACCOUNT_KEY")

Environment Variables:
    GOOGLE_SERVICE_ACCOUNT_KEY: Full service-account JSON (default store)
    FIREBASE_PROJECT_ID: Project id when no JSON key is set
    FIREBASE_CLIENT_EMAIL: Service-account email when no JSON key is set
    FIREBASE_PRIVATE_KEY: Private key when no JSON key is set
    FEDSTORE_TIMEOUT_MS: Per-call timeout in ms (default: 8000)
"""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

DEFAULT_DATABASE = "(default)"
DEFAULT_CREDENTIALS_ENV = "GOOGLE_SERVICE_ACCOUNT_KEY"


def _get_env_str(key: str, default: str) -> str:
    """Read an environment variable as a string."""
    return os.environ.get(key, default)


def _get_env_int(key: str, default: int) -> int:
    """Read an environment variable as an integer."""
    return int(os.environ.get(key, default))


def _sanitize_key_json(raw: str) -> str:
    # Keys pasted into env files often carry literal newlines inside private_key
    return raw.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")


def _clean_private_key(value: str) -> str:
    value = value.replace("\\n", "\n")
    if value.startswith('"') and value.endswith('"'):
        value = value[1:-1].replace("\\n", "\n")
    return value


@dataclass
class FirestoreConfig:
    """
    Connection settings for a single backing store.

    Attributes:
        project_id: GCP project (None = take it from the credentials)
        database_id: Firestore database id ("(default)" or a named database)
        credentials_env: Name of the env var holding the service-account JSON
        timeout_ms: Per-call timeout passed to the SDK
    """
    project_id: Optional[str] = field(default_factory=lambda: _get_env_str("FIREBASE_PROJECT_ID", "") or None)
    database_id: str = DEFAULT_DATABASE
    credentials_env: str = DEFAULT_CREDENTIALS_ENV
    timeout_ms: int = field(default_factory=lambda: _get_env_int("FEDSTORE_TIMEOUT_MS", 8000))

    def service_account_info(self) -> Dict[str, Any]:
        """
        Resolve service-account credentials from the environment.

        Order of precedence:
        1. Full JSON key in ``credentials_env``
        2. Separate FIREBASE_* variables (default credentials env only)

        Raises:
            ValueError: If no usable credentials are configured
        """
        raw = os.environ.get(self.credentials_env)
        if raw:
            for candidate in (raw, _sanitize_key_json(raw)):
                try:
                    return json.loads(candidate)
                except json.JSONDecodeError:
                    continue
            if self.credentials_env != DEFAULT_CREDENTIALS_ENV:
                raise ValueError(f"{self.credentials_env} is not valid JSON")

        if self.credentials_env == DEFAULT_CREDENTIALS_ENV:
            project_id = os.environ.get("FIREBASE_PROJECT_ID")
            client_email = os.environ.get("FIREBASE_CLIENT_EMAIL")
            private_key = os.environ.get("FIREBASE_PRIVATE_KEY")
            if project_id and client_email and private_key:
                return {
                    "type": "service_account",
                    "project_id": project_id,
                    "client_email": client_email,
                    "private_key": _clean_private_key(private_key),
                    "token_uri": "https://oauth2.googleapis.com/token",
                }

        raise ValueError(
            f"Firestore credentials missing: set {self.credentials_env} (JSON)"
            + (
                " or FIREBASE_PROJECT_ID, FIREBASE_CLIENT_EMAIL and FIREBASE_PRIVATE_KEY"
                if self.credentials_env == DEFAULT_CREDENTIALS_ENV else ""
            )
        )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0
