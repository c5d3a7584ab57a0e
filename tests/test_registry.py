"""Tests for the supported-type registry and glob matching."""

from __future__ import annotations

import pytest

from awsls.registry import (
    SUPPORTED_TYPES,
    InvalidPatternError,
    get_spec,
    match_supported_types,
)


class TestRegistry:
    def test_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            SUPPORTED_TYPES["aws_new"] = SUPPORTED_TYPES["aws_vpc"]  # type: ignore[index]

    def test_all_types_are_terraform_names(self) -> None:
        assert all(t.startswith("aws_") for t in SUPPORTED_TYPES)

    def test_get_spec(self) -> None:
        spec = get_spec("aws_instance")
        assert spec.service == "ec2"
        assert spec.id_field == "InstanceId"

    def test_get_spec_unknown(self) -> None:
        with pytest.raises(KeyError):
            get_spec("aws_does_not_exist")


class TestMatchSupportedTypes:
    def test_exact_match(self) -> None:
        assert match_supported_types("aws_instance") == ["aws_instance"]

    def test_glob_star(self) -> None:
        matched = match_supported_types("aws_iam_*")
        assert matched == ["aws_iam_group", "aws_iam_policy", "aws_iam_role", "aws_iam_user"]

    def test_glob_question_and_class(self) -> None:
        assert match_supported_types("aws_[ev]pc") == ["aws_vpc"]
        assert match_supported_types("aws_ei?") == ["aws_eip"]

    def test_no_match_is_empty(self) -> None:
        assert match_supported_types("gcp_*") == []

    def test_unterminated_class_is_invalid(self) -> None:
        with pytest.raises(InvalidPatternError):
            match_supported_types("aws_[instance")

    def test_empty_pattern_is_invalid(self) -> None:
        with pytest.raises(InvalidPatternError):
            match_supported_types("")

    def test_trailing_backslash_is_invalid(self) -> None:
        with pytest.raises(InvalidPatternError, match="trailing escape"):
            match_supported_types("aws_\\")

    def test_escaped_backslash_is_valid(self) -> None:
        assert match_supported_types("aws_\\\\") == []

    def test_invalid_pattern_is_value_error(self) -> None:
        assert issubclass(InvalidPatternError, ValueError)
