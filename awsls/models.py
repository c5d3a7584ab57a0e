"""Pydantic models and capability protocols shared across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field


# ──────────────────────────── Identity ────────────────────────────────────────


class ClientKey(BaseModel):
    """The (profile, region) pair identifying one client/provider pairing."""

    model_config = ConfigDict(frozen=True)

    profile: str = Field(default="", description="Named AWS profile. Empty = ambient default.")
    region: str = ""

    @property
    def label(self) -> str:
        return f"{self.profile or 'default'}/{self.region}"


# ──────────────────────────── Resources ───────────────────────────────────────


class Resource(BaseModel):
    """A live AWS resource discovered by a client."""

    resource_type: str = Field(description="Terraform resource type, e.g. 'aws_instance'")
    id: str
    profile: str = ""
    region: str = ""
    account_id: str = ""
    created_at: datetime | None = None
    state: dict[str, Any] | None = Field(
        default=None,
        description="Attribute values read back from the provider. None = not hydrated.",
    )

    @property
    def key(self) -> ClientKey:
        return ClientKey(profile=self.profile, region=self.region)


@dataclass
class TypeCollection:
    """Resources of one type gathered from every client, plus per-client support maps."""

    resource_type: str
    resources: list[Resource] = field(default_factory=list)
    support: dict[ClientKey, dict[str, bool]] = field(default_factory=dict)

    def support_for(self, key: ClientKey) -> dict[str, bool]:
        return self.support.get(key, {})

    @property
    def supported_attributes(self) -> set[str]:
        """Attributes supported by at least one client's provider."""
        names: set[str] = set()
        for attrs in self.support.values():
            names.update(name for name, ok in attrs.items() if ok)
        return names


# ──────────────────────────── Capabilities ────────────────────────────────────


class ResourceClient(Protocol):
    key: ClientKey
    account_id: str

    def set_account_id(self) -> str: ...

    def list_resources(self, resource_type: str) -> list[Resource]: ...


class SchemaProvider(Protocol):
    key: ClientKey

    def has_attributes(self, resource_type: str, attributes: list[str]) -> dict[str, bool]: ...

    def hydrate(self, resources: list[Resource]) -> None: ...

    def close(self) -> None: ...
