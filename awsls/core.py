"""Per-pattern pipeline: match types, list resources, check attributes, hydrate, export.

Clients are visited one after another for each matched resource type.
Failures are contained at the narrowest useful scope:

  • an invalid or unmatched pattern produces no output;
  • a listing failure drops that client's resources for the current type;
  • a schema query failure also drops that client's resources for the type;
  • account identity failures are fatal and propagate to the caller.
"""

from __future__ import annotations

import logging
from pathlib import Path

from awsls.attributes import hydrate_states, resolve_attributes
from awsls.exporter import export_collection
from awsls.models import TypeCollection
from awsls.pool import ClientPool
from awsls.registry import InvalidPatternError, match_supported_types

logger = logging.getLogger(__name__)


def collect_resources(resource_type: str, attributes: list[str], pool: ClientPool) -> TypeCollection:
    """List *resource_type* with every client and record each client's attribute support."""
    collection = TypeCollection(resource_type=resource_type)

    for key in pool.keys:
        client = pool.clients[key]
        client.set_account_id()

        try:
            found = client.list_resources(resource_type)
        except Exception as exc:
            logger.error("Error %s (%s): %s", resource_type, key.label, exc)
            continue

        support = resolve_attributes(attributes, resource_type, pool.providers[key])
        if support is None:
            continue

        collection.support[key] = support
        collection.resources.extend(found)

    return collection


def export_resource_type(
    pattern: str,
    attributes: list[str],
    pool: ClientPool,
    output_dir: Path,
) -> list[Path]:
    """Export every supported resource type matching *pattern* to CSV.

    Returns the paths of the files written.

    Raises:
        AccountIdentityError: if a client cannot resolve its account.
    """
    try:
        matched = match_supported_types(pattern)
    except InvalidPatternError as exc:
        logger.error("Invalid glob pattern %r: %s", pattern, exc)
        return []

    if not matched:
        logger.warning("No resource type found: %s", pattern)
        return []

    written: list[Path] = []
    for resource_type in matched:
        collection = collect_resources(resource_type, attributes, pool)
        if not collection.resources:
            logger.info("No %s resources found", resource_type)
            continue

        # Reading live state is slow: only do it when some column needs it.
        if collection.supported_attributes:
            hydrate_states(collection.resources, pool.providers)

        written.append(export_collection(collection, attributes, output_dir))

    return written
