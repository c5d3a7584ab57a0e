"""Application configuration and settings."""

from __future__ import annotations

import os

import botocore.session
from botocore.exceptions import BotoCoreError
from pydantic import BaseModel, Field


DEFAULT_ATTRIBUTES = ["private_ip", "public_ip", "tags"]
DEFAULT_OUTPUT_DIR = "aws-resources"
DEFAULT_PROVIDER_VERSION = "2.68.0"
DEFAULT_CACHE_DIR = "~/.awsls"


class ProfileDiscoveryError(RuntimeError):
    """Raised when profiles cannot be loaded from the AWS config file."""


class Settings(BaseModel):
    """Runtime settings resolved from env vars and CLI flags."""

    # AWS
    aws_profile: str = Field(default_factory=lambda: os.environ.get("AWS_PROFILE", ""))
    aws_config_file: str = Field(
        default_factory=lambda: os.environ.get("AWS_CONFIG_FILE", ""),
        description="Alternate AWS config file used by --all-profiles.",
    )
    profiles: list[str] = Field(default_factory=list)
    all_profiles: bool = False
    regions: list[str] = Field(default_factory=list)

    # Export
    attributes: list[str] = Field(default_factory=lambda: list(DEFAULT_ATTRIBUTES))
    output_dir: str = DEFAULT_OUTPUT_DIR

    # ── Terraform provider ───────────────────────────────────────────
    provider_version: str = DEFAULT_PROVIDER_VERSION
    cache_dir: str = DEFAULT_CACHE_DIR
    terraform_bin: str = "terraform"
    provider_startup_timeout: float = Field(
        default=10.0,
        description="Seconds allowed for a provider to start and report its schema.",
    )
    provider_install_timeout: float = Field(
        default=300.0,
        description="Seconds allowed for `terraform init` (first run downloads the provider).",
    )
    import_timeout: float = Field(
        default=120.0,
        description="Seconds allowed per resource when reading live state.",
    )

    # Behaviour
    debug: bool = False


def _profiles_from_config(config_file: str) -> list[str]:
    session = botocore.session.Session()
    if config_file:
        session.set_config_variable("config_file", config_file)
    return list(session.available_profiles)


def resolve_profiles(settings: Settings) -> list[str]:
    """Decide which named profiles to list resources in.

    Returns an empty list when the ambient default credentials should be used.

    Raises:
        ValueError: if ``profiles`` and ``all_profiles`` are both set.
        ProfileDiscoveryError: if ``all_profiles`` finds no usable profiles.
    """
    if settings.profiles and settings.all_profiles:
        raise ValueError("--profiles and --all-profiles flag cannot be used together")

    if settings.profiles:
        return list(settings.profiles)

    if not settings.all_profiles:
        return [settings.aws_profile] if settings.aws_profile else []

    try:
        profiles = _profiles_from_config(settings.aws_config_file)
    except (BotoCoreError, OSError) as exc:
        raise ProfileDiscoveryError(f"failed to load all profiles: {exc}") from exc

    if not profiles:
        raise ProfileDiscoveryError(
            f"no profiles found in {settings.aws_config_file or '~/.aws/config'}"
        )
    return profiles
