"""Live AWS resource listing via boto3.

One :class:`AwsClient` is bound to one (profile, region) pair. It resolves
the caller's account once per run and lists instances of any resource type
in the registry.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import boto3
import jmespath
from botocore.exceptions import BotoCoreError, ClientError

from awsls.models import ClientKey, Resource
from awsls.registry import ResourceTypeSpec, get_spec

logger = logging.getLogger(__name__)


class AccountIdentityError(RuntimeError):
    """Raised when the caller identity of a client cannot be resolved."""


def _get_boto3_session(profile: str = "", region: str = "") -> boto3.Session:
    kwargs: dict[str, str] = {}
    if profile:
        kwargs["profile_name"] = profile
    if region:
        kwargs["region_name"] = region
    return boto3.Session(**kwargs)


def _as_datetime(value: Any) -> datetime | None:
    """Normalise a creation timestamp from an AWS response."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        # CloudWatch Logs and friends report epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        text = value.replace("Z", "+00:00")
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
        try:
            # Lambda: 2024-01-02T03:04:05.000+0000
            return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%f%z")
        except ValueError:
            logger.debug("Unparseable creation time %r", value)
    return None


class AwsClient:
    """boto3-backed client for one profile/region."""

    def __init__(self, key: ClientKey, session: Any) -> None:
        self.key = key
        self.session = session
        self.account_id = ""

    @classmethod
    def from_key(cls, key: ClientKey) -> AwsClient:
        """Create a client, resolving an empty region from the profile config.

        Raises:
            ValueError: if no region is given or configured for the profile.
        """
        session = _get_boto3_session(profile=key.profile, region=key.region)
        region = key.region or session.region_name or ""
        if not region:
            raise ValueError(f"no region configured for profile {key.profile or 'default'!r}")
        return cls(ClientKey(profile=key.profile, region=region), session)

    def __repr__(self) -> str:
        return f"AwsClient({self.key.label})"

    # ── Account identity ──────────────────────────────────────────────────

    def set_account_id(self) -> str:
        """Resolve and cache the AWS account ID via STS (once per client)."""
        if self.account_id:
            return self.account_id

        try:
            sts = self.session.client("sts", region_name=self.key.region)
            ident = sts.get_caller_identity()
        except (BotoCoreError, ClientError) as exc:
            raise AccountIdentityError(
                f"failed to resolve account ID for {self.key.label}: {exc}"
            ) from exc

        self.account_id = str(ident.get("Account", ""))
        logger.debug("Resolved account %s for %s", self.account_id, self.key.label)
        return self.account_id

    # ── Listing ───────────────────────────────────────────────────────────

    def _fetch_items(self, spec: ResourceTypeSpec) -> list[Any]:
        client = self.session.client(spec.service, region_name=self.key.region)
        if spec.paginated:
            paginator = client.get_paginator(spec.operation)
            return [
                item
                for item in paginator.paginate(**dict(spec.params)).search(spec.search)
                if item is not None
            ]

        response = getattr(client, spec.operation)(**dict(spec.params))
        return jmespath.search(spec.search, response) or []

    def list_resources(self, resource_type: str) -> list[Resource]:
        """List all instances of *resource_type* visible to this client.

        AWS errors propagate to the caller. Raises ``KeyError`` for types not
        in the registry.
        """
        spec = get_spec(resource_type)
        logger.info("Listing %s in %s …", resource_type, self.key.label)

        resources: list[Resource] = []
        for item in self._fetch_items(spec):
            if spec.id_field:
                rid = item.get(spec.id_field, "")
                created = item.get(spec.created_field) if spec.created_field else None
            else:
                rid, created = item, None
            if not rid:
                continue

            resources.append(Resource(
                resource_type=resource_type,
                id=str(rid),
                profile=self.key.profile,
                region=self.key.region,
                account_id=self.account_id,
                created_at=_as_datetime(created),
            ))

        logger.info("  %s: found %d in %s", resource_type, len(resources), self.key.label)
        return resources
