"""Tests for the awsls command line."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from awsls import __version__
from awsls.aws import AccountIdentityError
from awsls.cli import main
from awsls.config import ProfileDiscoveryError
from awsls.models import ClientKey
from awsls.pool import ClientPool, PoolBuildError
from tests.conftest import FakeClient, FakeProvider


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _no_aws_env(monkeypatch):
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("AWS_CONFIG_FILE", raising=False)


class TestFlags:
    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_profiles_and_all_profiles_exclusive(self, runner):
        result = runner.invoke(main, ["--profiles", "dev", "--all-profiles"])
        assert result.exit_code == 1
        assert "cannot be used together" in result.output

    @patch("awsls.cli.build_pool")
    def test_comma_separated_lists(self, mock_build, runner):
        mock_build.side_effect = PoolBuildError("stop here")
        runner.invoke(main, ["-p", "dev,prod", "-r", "us-east-1,eu-west-1"])

        profiles, settings = mock_build.call_args.args
        assert profiles == ["dev", "prod"]
        assert settings.regions == ["us-east-1", "eu-west-1"]

    @pytest.mark.parametrize("args,expected", [(["--debug"], True), ([], False)])
    @patch("awsls.cli._configure_logging")
    @patch("awsls.cli.build_pool", side_effect=PoolBuildError("stop here"))
    def test_logging_follows_debug_setting(self, mock_build, mock_logging, runner, args, expected):
        runner.invoke(main, args)

        mock_logging.assert_called_once_with(expected)
        assert mock_build.call_args.args[1].debug is expected

    @patch("awsls.cli.resolve_profiles", side_effect=ProfileDiscoveryError("no profiles found"))
    def test_profile_discovery_failure(self, _mock_resolve, runner):
        result = runner.invoke(main, ["--all-profiles"])
        assert result.exit_code == 1
        assert "no profiles found" in result.output


class TestRun:
    @patch("awsls.cli.build_pool", side_effect=PoolBuildError("failed to start terraform provider for dev/us-east-1"))
    def test_pool_failure_exits_1_without_output(self, _mock_build, runner, tmp_path):
        out = tmp_path / "aws-resources"
        result = runner.invoke(main, ["-p", "dev", "-r", "us-east-1", "-o", str(out)])

        assert result.exit_code == 1
        assert result.output.count("failed to start terraform provider") == 1
        assert not out.exists()

    @patch("awsls.cli.build_pool")
    def test_exports_and_releases_providers(self, mock_build, runner, tmp_path):
        key = ClientKey(profile="dev", region="us-east-1")
        provider = FakeProvider(key, supported=["tags"], states={"i-1": {"tags": {"Name": "web"}}})
        mock_build.return_value = ClientPool(
            {key: FakeClient(key, {"aws_instance": ["i-1"]})}, {key: provider}
        )
        out = tmp_path / "aws-resources"

        result = runner.invoke(main, ["aws_instance", "-p", "dev", "-a", "tags", "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert (out / "aws_instance.csv").read_text(encoding="utf-8").splitlines() == [
            "TYPE,ID,CREATED,tags",
            "aws_instance,i-1,2020-06-01 12:30:45,Name=web",
        ]
        assert provider.closed is True

    @patch("awsls.cli.build_pool")
    def test_account_identity_failure_exits_1_and_releases(self, mock_build, runner, tmp_path):
        key = ClientKey(profile="dev", region="us-east-1")
        provider = FakeProvider(key)
        client = FakeClient(key, identity_error=AccountIdentityError("expired token"))
        mock_build.return_value = ClientPool({key: client}, {key: provider})

        result = runner.invoke(main, ["aws_instance", "-o", str(tmp_path / "out")])

        assert result.exit_code == 1
        assert "expired token" in result.output
        assert provider.closed is True

    @patch("awsls.cli.build_pool")
    def test_no_match_is_not_an_error(self, mock_build, runner, tmp_path):
        key = ClientKey(region="us-east-1")
        mock_build.return_value = ClientPool({key: FakeClient(key)}, {key: FakeProvider(key)})
        out = tmp_path / "aws-resources"

        result = runner.invoke(main, ["azure_*", "-o", str(out)])

        assert result.exit_code == 0
        assert not out.exists()
