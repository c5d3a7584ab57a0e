"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest

from awsls.config import Settings
from awsls.models import ClientKey, Resource
from awsls.provider import ProviderError


class FakeClient:
    """In-memory stand-in for AwsClient."""

    def __init__(
        self,
        key: ClientKey,
        resources: dict[str, list[str]] | None = None,
        list_error: Exception | None = None,
        identity_error: Exception | None = None,
    ) -> None:
        self.key = key
        self.account_id = ""
        self.resources = resources or {}
        self.list_error = list_error
        self.identity_error = identity_error
        self.identity_calls = 0

    def set_account_id(self) -> str:
        self.identity_calls += 1
        if self.identity_error is not None:
            raise self.identity_error
        self.account_id = "123456789012"
        return self.account_id

    def list_resources(self, resource_type: str) -> list[Resource]:
        if self.list_error is not None:
            raise self.list_error
        return [
            Resource(
                resource_type=resource_type,
                id=rid,
                profile=self.key.profile,
                region=self.key.region,
                account_id=self.account_id,
                created_at=datetime(2020, 6, 1, 12, 30, 45),
            )
            for rid in self.resources.get(resource_type, [])
        ]


class FakeProvider:
    """In-memory stand-in for TerraformProvider."""

    def __init__(
        self,
        key: ClientKey,
        supported: list[str] | None = None,
        states: dict[str, dict[str, Any]] | None = None,
        schema_error: bool = False,
    ) -> None:
        self.key = key
        self.supported = supported or []
        self.states = states or {}
        self.schema_error = schema_error
        self.hydrated: list[list[str]] = []
        self.closed = False

    def has_attributes(self, resource_type: str, attributes: list[str]) -> dict[str, bool]:
        if self.schema_error:
            raise ProviderError("schema unavailable")
        return {a: True for a in attributes if a in self.supported}

    def hydrate(self, resources: list[Resource]) -> None:
        self.hydrated.append([r.id for r in resources])
        for r in resources:
            if r.id in self.states:
                r.state = dict(self.states[r.id])

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def dev_key() -> ClientKey:
    return ClientKey(profile="dev", region="us-east-1")


@pytest.fixture()
def prod_key() -> ClientKey:
    return ClientKey(profile="prod", region="eu-west-1")


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        aws_profile="",
        aws_config_file="",
        cache_dir=str(tmp_path / "cache"),
        output_dir=str(tmp_path / "aws-resources"),
    )
