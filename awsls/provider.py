"""Terraform AWS provider driven through the ``terraform`` CLI.

Each :class:`TerraformProvider` owns a working directory configured for one
(profile, region) pair and a pinned ``hashicorp/aws`` provider version.  It
reports which attributes a resource type's schema defines and reads live
state for resources by importing them into a scratch state file.

Lifecycle:
  • ``start()`` installs the provider and loads its schema (bounded by the
    startup timeout).  Failures raise :class:`ProviderError`.
  • ``close()`` removes the scratch state.  Commands run synchronously and
    are bounded by their timeouts, so none is left running.  It is
    idempotent; the provider is unusable afterwards.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from awsls.models import ClientKey, Resource

logger = logging.getLogger(__name__)

# Maximum output we'll capture from terraform; the AWS schema alone is several MB.
_MAX_OUTPUT_BYTES = 64 * 1024 * 1024

_CONFIG_FILE = "main.tf.json"
_IMPORT_FILE = "import.tf.json"
_SCRATCH_STATE = "import.tfstate"


class ProviderError(RuntimeError):
    """Raised when the provider cannot be started or queried."""


@dataclass
class CommandResult:
    """Result of a terraform command execution."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def summary(self) -> str:
        if self.ok:
            return self.stdout[:2000] if len(self.stdout) > 2000 else self.stdout
        return f"ERROR (rc={self.returncode}): {self.stderr[:1000]}"


def _safe_dirname(value: str) -> str:
    return re.sub(r"[^\w.-]", "_", value) or "default"


class TerraformProvider:
    """A terraform-aws provider bound to one client key.

    Parameters
    ----------
    key : ClientKey
        Profile and region the provider is configured for.
    version : str
        Exact ``hashicorp/aws`` provider version to install.
    cache_dir : str | Path
        Root directory for working directories and the shared plugin cache.
    startup_timeout : float
        Seconds allowed for launching the provider to load its schema.
    """

    def __init__(
        self,
        key: ClientKey,
        version: str,
        cache_dir: str | Path,
        startup_timeout: float = 10.0,
        install_timeout: float = 300.0,
        import_timeout: float = 120.0,
        terraform_bin: str = "terraform",
    ) -> None:
        self.key = key
        self.version = version
        self.cache_dir = Path(cache_dir).expanduser()
        self.startup_timeout = startup_timeout
        self.install_timeout = install_timeout
        self.import_timeout = import_timeout
        self.terraform_bin = terraform_bin

        self.work_dir = (
            self.cache_dir / _safe_dirname(key.profile or "default") / _safe_dirname(key.region)
        )
        self._schemas: dict[str, Any] | None = None
        self._closed = False

    def __repr__(self) -> str:
        return f"TerraformProvider({self.key.label}, aws {self.version})"

    # ── Low-level executor ────────────────────────────────────────────────

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["TF_IN_AUTOMATION"] = "1"
        env["TF_INPUT"] = "0"
        env["TF_PLUGIN_CACHE_DIR"] = str(self.cache_dir / "plugins")
        return env

    def _run(self, args: list[str], timeout: float = 30) -> CommandResult:
        """Run a terraform command in the working directory."""
        cmd = [self.terraform_bin, *args]
        cmd_str = shlex.join(cmd)
        logger.debug("terraform [%s]: %s", self.key.label, cmd_str)

        try:
            proc = subprocess.run(
                cmd,
                cwd=self.work_dir,
                env=self._env(),
                capture_output=True,
                text=True,
                timeout=timeout,
            )
            return CommandResult(
                command=cmd_str,
                returncode=proc.returncode,
                stdout=proc.stdout[:_MAX_OUTPUT_BYTES],
                stderr=proc.stderr[:_MAX_OUTPUT_BYTES],
            )
        except subprocess.TimeoutExpired:
            return CommandResult(
                command=cmd_str,
                returncode=-1,
                stdout="",
                stderr=f"Command timed out after {timeout}s",
            )
        except FileNotFoundError:
            return CommandResult(
                command=cmd_str,
                returncode=-1,
                stdout="",
                stderr=f"{self.terraform_bin} not found. Is it installed and on the PATH?",
            )

    def _check_open(self) -> None:
        if self._closed:
            raise ProviderError(f"provider for {self.key.label} is closed")

    # ── Configuration ─────────────────────────────────────────────────────

    def provider_config(self) -> dict[str, Any]:
        """The terraform JSON configuration pinning and configuring the provider."""
        aws: dict[str, Any] = {"region": self.key.region}
        if self.key.profile:
            aws["profile"] = self.key.profile
        return {
            "terraform": {
                "required_providers": {
                    "aws": {"source": "hashicorp/aws", "version": self.version},
                },
            },
            "provider": {"aws": aws},
        }

    # ── Lifecycle ─────────────────────────────────────────────────────────

    def start(self) -> None:
        """Install the provider and load its schema."""
        self._check_open()
        self.work_dir.mkdir(parents=True, exist_ok=True)
        (self.cache_dir / "plugins").mkdir(parents=True, exist_ok=True)
        (self.work_dir / _CONFIG_FILE).write_text(
            json.dumps(self.provider_config(), indent=2), encoding="utf-8"
        )

        init = self._run(["init", "-input=false", "-no-color"], timeout=self.install_timeout)
        if not init.ok:
            raise ProviderError(
                f"failed to install aws provider {self.version} for {self.key.label}: "
                f"{init.stderr.strip() or init.summary}"
            )

        result = self._run(["providers", "schema", "-json"], timeout=self.startup_timeout)
        if not result.ok:
            raise ProviderError(
                f"failed to start aws provider for {self.key.label}: {result.stderr.strip()}"
            )
        self._schemas = self._parse_schemas(result.stdout)
        logger.info(
            "Started aws provider %s for %s (%d resource types)",
            self.version,
            self.key.label,
            len(self._schemas),
        )

    @staticmethod
    def _parse_schemas(raw: str) -> dict[str, Any]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ProviderError(f"invalid provider schema output: {exc}") from exc

        for source, schema in (data.get("provider_schemas") or {}).items():
            if source.rsplit("/", 1)[-1] == "aws":
                return schema.get("resource_schemas") or {}
        raise ProviderError("aws provider schema not found in terraform output")

    def close(self) -> None:
        """Discard the loaded schema and scratch state."""
        if self._closed:
            return
        self._closed = True
        self._schemas = None
        self._remove_scratch()

    def _remove_scratch(self) -> None:
        for name in (_IMPORT_FILE, _SCRATCH_STATE, _SCRATCH_STATE + ".backup"):
            (self.work_dir / name).unlink(missing_ok=True)

    # ── Schema queries ────────────────────────────────────────────────────

    def has_attributes(self, resource_type: str, attributes: list[str]) -> dict[str, bool]:
        """Return the subset of *attributes* defined by the schema of *resource_type*.

        Attributes absent from the schema are not keys of the result.
        """
        self._check_open()
        if self._schemas is None:
            raise ProviderError(f"provider for {self.key.label} has not been started")

        schema = self._schemas.get(resource_type)
        if schema is None:
            raise ProviderError(f"resource type {resource_type} not found in aws provider schema")

        block = schema.get("block") or {}
        known = set(block.get("attributes") or {}) | set(block.get("block_types") or {})
        return {name: True for name in attributes if name in known}

    # ── State hydration ───────────────────────────────────────────────────

    @staticmethod
    def _address(resource: Resource, index: int) -> str:
        return f"{resource.resource_type}.r{index}"

    def hydrate(self, resources: list[Resource]) -> None:
        """Read live state for *resources* and store it on each ``Resource.state``."""
        self._check_open()
        if not resources:
            return

        addresses = {self._address(r, i): r for i, r in enumerate(resources)}
        blocks: dict[str, dict[str, Any]] = {}
        for address in addresses:
            rtype, name = address.split(".", 1)
            blocks.setdefault(rtype, {})[name] = {}

        self._remove_scratch()
        (self.work_dir / _IMPORT_FILE).write_text(
            json.dumps({"resource": blocks}, indent=2), encoding="utf-8"
        )

        try:
            imported = 0
            for address, resource in addresses.items():
                result = self._run(
                    [
                        "import", "-input=false", "-no-color", "-lock=false",
                        f"-state={_SCRATCH_STATE}", address, resource.id,
                    ],
                    timeout=self.import_timeout,
                )
                if not result.ok:
                    logger.debug(
                        "Failed to import %s %s in %s: %s",
                        resource.resource_type,
                        resource.id,
                        self.key.label,
                        result.stderr.strip(),
                    )
                    continue
                imported += 1

            if not imported:
                return

            show = self._run(["show", "-json", "-no-color", _SCRATCH_STATE], timeout=self.import_timeout)
            if not show.ok:
                raise ProviderError(
                    f"failed to read imported state for {self.key.label}: {show.stderr.strip()}"
                )
            self._apply_state(show.stdout, addresses)
        finally:
            self._remove_scratch()

    @staticmethod
    def _apply_state(raw: str, addresses: dict[str, Resource]) -> None:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ProviderError(f"invalid state output: {exc}") from exc

        root = (data.get("values") or {}).get("root_module") or {}
        for entry in root.get("resources") or []:
            resource = addresses.get(entry.get("address", ""))
            if resource is not None:
                resource.state = dict(entry.get("values") or {})
