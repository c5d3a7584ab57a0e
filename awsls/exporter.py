"""Build CSV rows for discovered resources and write them to disk."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from awsls.attributes import AttributeLookupError, get_attribute
from awsls.models import Resource, TypeCollection

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
ERROR_VALUE = "error"
CREATED_FORMAT = "%Y-%m-%d %H:%M:%S"


def header_row(attributes: list[str]) -> list[str]:
    return ["TYPE", "ID", "CREATED", *attributes]


def resource_row(resource: Resource, attributes: list[str], supported: dict[str, bool]) -> list[str]:
    """One CSV row: type, id, created, then one value per requested attribute.

    Attributes missing from *supported* read ``N/A``; attributes that fail to
    extract read ``error``.
    """
    created = resource.created_at.strftime(CREATED_FORMAT) if resource.created_at else ""
    row = [resource.resource_type, resource.id, created]

    for attr in attributes:
        if attr not in supported:
            row.append(NOT_AVAILABLE)
            continue
        try:
            row.append(get_attribute(attr, resource))
        except AttributeLookupError as exc:
            logger.debug(
                "failed to get attribute %s (type=%s id=%s): %s",
                attr,
                resource.resource_type,
                resource.id,
                exc,
            )
            row.append(ERROR_VALUE)
    return row


def build_rows(collection: TypeCollection, attributes: list[str]) -> list[list[str]]:
    """Rows for every resource, each judged against its own client's support map."""
    return [
        resource_row(r, attributes, collection.support_for(r.key))
        for r in collection.resources
    ]


def write_csv(path: Path, attributes: list[str], rows: list[list[str]]) -> Path:
    """Write header + rows to *path*, replacing any existing file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(header_row(attributes))
        writer.writerows(rows)
    logger.info("Wrote %s (%d rows)", path, len(rows))
    return path


def export_collection(collection: TypeCollection, attributes: list[str], output_dir: Path) -> Path:
    """Write ``<output_dir>/<type>.csv`` for one resource type."""
    path = output_dir / f"{collection.resource_type}.csv"
    return write_csv(path, attributes, build_rows(collection, attributes))
