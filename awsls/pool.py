"""Build one AWS client and one Terraform provider per (profile, region).

The pool is all-or-nothing: if any client or provider fails to build, the
providers started so far are closed and :class:`PoolBuildError` is raised.
A successfully built pool is a context manager that closes every provider
on exit, including exits through an exception.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Any, Callable

from awsls.aws import AwsClient
from awsls.config import Settings
from awsls.models import ClientKey, ResourceClient, SchemaProvider
from awsls.provider import TerraformProvider

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ClientKey], ResourceClient]
ProviderFactory = Callable[[ClientKey, Settings], SchemaProvider]


class PoolBuildError(RuntimeError):
    """Raised when a client or provider cannot be constructed."""


class ClientPool:
    """Clients and providers keyed by the same :class:`ClientKey` set."""

    def __init__(
        self,
        clients: dict[ClientKey, ResourceClient],
        providers: dict[ClientKey, SchemaProvider],
    ) -> None:
        if clients.keys() != providers.keys():
            raise ValueError("client and provider pools must share the same keys")
        self.clients = clients
        self.providers = providers
        self._stack = ExitStack()
        for provider in providers.values():
            self._stack.callback(_close_quietly, provider)

    @property
    def keys(self) -> list[ClientKey]:
        return list(self.clients)

    def close(self) -> None:
        self._stack.close()

    def __enter__(self) -> ClientPool:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def _close_quietly(provider: SchemaProvider) -> None:
    try:
        provider.close()
    except Exception as exc:
        logger.warning("Failed to close provider %r: %s", provider, exc)


def requested_keys(profiles: list[str], regions: list[str]) -> list[ClientKey]:
    """Cross product of profiles × regions; empty lists mean the ambient default."""
    keys = [
        ClientKey(profile=profile, region=region)
        for profile in (profiles or [""])
        for region in (regions or [""])
    ]
    return list(dict.fromkeys(keys))


def default_provider_factory(key: ClientKey, settings: Settings) -> TerraformProvider:
    provider = TerraformProvider(
        key,
        version=settings.provider_version,
        cache_dir=settings.cache_dir,
        startup_timeout=settings.provider_startup_timeout,
        install_timeout=settings.provider_install_timeout,
        import_timeout=settings.import_timeout,
        terraform_bin=settings.terraform_bin,
    )
    try:
        provider.start()
    except BaseException:
        provider.close()
        raise
    return provider


def build_pool(
    profiles: list[str],
    settings: Settings,
    client_factory: ClientFactory = AwsClient.from_key,
    provider_factory: ProviderFactory = default_provider_factory,
) -> ClientPool:
    """Construct the client and provider pools for every requested key.

    Raises:
        PoolBuildError: if any client or provider could not be built.
    """
    clients: dict[ClientKey, ResourceClient] = {}
    providers: dict[ClientKey, SchemaProvider] = {}

    with ExitStack() as stack:
        for requested in requested_keys(profiles, settings.regions):
            try:
                client = client_factory(requested)
            except Exception as exc:
                raise PoolBuildError(
                    f"failed to create AWS client for {requested.label}: {exc}"
                ) from exc

            # An empty region resolves to the profile's configured one.
            key = client.key
            if key in clients:
                continue

            try:
                provider = provider_factory(key, settings)
            except Exception as exc:
                raise PoolBuildError(
                    f"failed to start terraform provider for {key.label}: {exc}"
                ) from exc

            stack.callback(_close_quietly, provider)
            clients[key] = client
            providers[key] = provider

        logger.info("Built %d client/provider pair(s)", len(clients))
        pool = ClientPool(clients, providers)
        # The pool now owns provider release.
        stack.pop_all()
        return pool
