"""Attribute support checks, state hydration and attribute extraction."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from awsls.models import ClientKey, Resource, SchemaProvider
from awsls.provider import ProviderError

logger = logging.getLogger(__name__)


class AttributeLookupError(KeyError):
    """Raised when an attribute value cannot be read from a resource's state."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


def resolve_attributes(
    attributes: list[str], resource_type: str, provider: SchemaProvider
) -> dict[str, bool] | None:
    """Return the requested attributes the provider's schema defines for *resource_type*.

    A failed schema query is logged and returns ``None``.
    """
    try:
        return provider.has_attributes(resource_type, attributes)
    except ProviderError as exc:
        logger.error(
            "Failed to check if resource type %s has attributes (%s): %s",
            resource_type,
            provider.key.label,
            exc,
        )
        return None


def hydrate_states(resources: list[Resource], providers: Mapping[ClientKey, SchemaProvider]) -> None:
    """Populate ``state`` for each resource using the provider of its originating client."""
    groups: dict[ClientKey, list[Resource]] = {}
    for r in resources:
        groups.setdefault(r.key, []).append(r)

    for key, group in groups.items():
        provider = providers.get(key)
        if provider is None:
            logger.debug("No provider for %s; leaving %d resource(s) unhydrated", key.label, len(group))
            continue
        try:
            provider.hydrate(group)
        except ProviderError as exc:
            logger.error("Failed to read state for %d resource(s) in %s: %s", len(group), key.label, exc)


def format_value(value: Any) -> str:
    """Render a state value as a single CSV cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return ",".join(f"{k}={format_value(v)}" for k, v in sorted(value.items()))
    if isinstance(value, (list, tuple, set)):
        return ",".join(format_value(v) for v in value)
    return str(value)


def get_attribute(name: str, resource: Resource) -> str:
    """Return the formatted value of attribute *name* from the resource's state.

    Raises:
        AttributeLookupError: if the resource has no state or no such attribute.
    """
    if resource.state is None:
        raise AttributeLookupError("state is nil")
    if name not in resource.state:
        raise AttributeLookupError(f"attribute {name} not found in state")
    return format_value(resource.state[name])
