"""Provider configuration: credentials and control-plane endpoints."""

import json
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, model_validator

from streamnative_provider.schema.descriptions import describe

DEFAULT_ISSUER = "https://auth.streamnative.cloud/"
DEFAULT_AUDIENCE = "https://api.streamnative.cloud"
DEFAULT_API_SERVER = "https://api.streamnative.cloud"


class ProviderConfigError(ValueError):
    """Credentials are missing or unreadable."""
    pass


class ClientCredentials(BaseModel):
    client_id: str
    client_secret: str


class ProviderConfig(BaseModel):
    """Configuration for the provider."""

    key_file_path: Optional[str] = Field(default=None, description=describe("key_file_path"))
    client_id: Optional[str] = Field(default=None, description=describe("client_id"))
    client_secret: Optional[str] = Field(default=None, description=describe("client_secret"))
    issuer: str = DEFAULT_ISSUER
    audience: str = DEFAULT_AUDIENCE
    api_server: str = DEFAULT_API_SERVER
    request_timeout_seconds: float = Field(gt=0, default=30.0)

    @model_validator(mode="after")
    def _credentials_given(self) -> "ProviderConfig":
        if self.client_id and self.client_secret:
            return self
        if self.key_file_path:
            return self
        raise ProviderConfigError(
            "either key_file_path or both client_id and client_secret must be set"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ProviderConfig":
        """Build a configuration from the environment; explicit values win."""
        env = os.environ if environ is None else environ
        values = {
            "key_file_path": env.get("KEY_FILE_PATH") or None,
            "client_id": env.get("GLOBAL_DEFAULT_CLIENT_ID") or None,
            "client_secret": env.get("GLOBAL_DEFAULT_CLIENT_SECRET") or None,
            "issuer": env.get("GLOBAL_DEFAULT_ISSUER") or DEFAULT_ISSUER,
            "audience": env.get("GLOBAL_DEFAULT_AUDIENCE") or DEFAULT_AUDIENCE,
            "api_server": env.get("GLOBAL_DEFAULT_API_SERVER") or DEFAULT_API_SERVER,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def credentials(self) -> ClientCredentials:
        """Client id and secret, from the inline pair or the key file."""
        if self.client_id and self.client_secret:
            return ClientCredentials(client_id=self.client_id, client_secret=self.client_secret)
        return load_key_file(self.key_file_path)


def load_key_file(path: str) -> ClientCredentials:
    """Read a service account key file (JSON with client_id and client_secret)."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise ProviderConfigError(f"cannot read key file {path!r}: {exc}") from exc
    if not data.get("client_id") or not data.get("client_secret"):
        raise ProviderConfigError(f"key file {path!r} has no client_id/client_secret")
    return ClientCredentials(client_id=data["client_id"], client_secret=data["client_secret"])
