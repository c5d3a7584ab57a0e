"""Registry of supported Terraform resource types and glob matching over it.

Each entry describes how to enumerate one resource type with boto3: the
service, the API operation, a JMESPath expression selecting the items from
the response, and which item fields hold the import ID and creation time.
The registry is built once at import time and is read-only afterwards.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


class InvalidPatternError(ValueError):
    """Raised when a resource type glob pattern is malformed."""


@dataclass(frozen=True)
class ResourceTypeSpec:
    """How to list one resource type."""

    service: str
    operation: str
    search: str
    id_field: str = ""  # empty: the selected item is the ID itself
    created_field: str = ""
    params: Mapping[str, Any] = field(default_factory=dict)
    paginated: bool = True


# ══════════════════════════════════════════════════════════════════════════════
#  SUPPORTED TYPES
# ══════════════════════════════════════════════════════════════════════════════

_SPECS: dict[str, ResourceTypeSpec] = {
    # ── EC2 ───────────────────────────────────────────────────────────
    "aws_instance": ResourceTypeSpec(
        "ec2", "describe_instances", "Reservations[].Instances[]",
        id_field="InstanceId", created_field="LaunchTime",
        params={"Filters": [{
            "Name": "instance-state-name",
            "Values": ["pending", "running", "shutting-down", "stopping", "stopped"],
        }]},
    ),
    "aws_ebs_volume": ResourceTypeSpec(
        "ec2", "describe_volumes", "Volumes[]",
        id_field="VolumeId", created_field="CreateTime",
    ),
    "aws_ebs_snapshot": ResourceTypeSpec(
        "ec2", "describe_snapshots", "Snapshots[]",
        id_field="SnapshotId", created_field="StartTime",
        params={"OwnerIds": ["self"]},
    ),
    "aws_ami": ResourceTypeSpec(
        "ec2", "describe_images", "Images[]",
        id_field="ImageId", created_field="CreationDate",
        params={"Owners": ["self"]},
    ),
    "aws_eip": ResourceTypeSpec(
        "ec2", "describe_addresses", "Addresses[]",
        id_field="AllocationId", paginated=False,
    ),
    "aws_key_pair": ResourceTypeSpec(
        "ec2", "describe_key_pairs", "KeyPairs[]",
        id_field="KeyName", created_field="CreateTime", paginated=False,
    ),
    "aws_vpc": ResourceTypeSpec("ec2", "describe_vpcs", "Vpcs[]", id_field="VpcId"),
    "aws_subnet": ResourceTypeSpec("ec2", "describe_subnets", "Subnets[]", id_field="SubnetId"),
    "aws_security_group": ResourceTypeSpec(
        "ec2", "describe_security_groups", "SecurityGroups[]", id_field="GroupId",
    ),
    "aws_route_table": ResourceTypeSpec(
        "ec2", "describe_route_tables", "RouteTables[]", id_field="RouteTableId",
    ),
    "aws_internet_gateway": ResourceTypeSpec(
        "ec2", "describe_internet_gateways", "InternetGateways[]", id_field="InternetGatewayId",
    ),
    "aws_nat_gateway": ResourceTypeSpec(
        "ec2", "describe_nat_gateways", "NatGateways[]",
        id_field="NatGatewayId", created_field="CreateTime",
    ),
    # ── IAM ───────────────────────────────────────────────────────────
    "aws_iam_user": ResourceTypeSpec(
        "iam", "list_users", "Users[]", id_field="UserName", created_field="CreateDate",
    ),
    "aws_iam_role": ResourceTypeSpec(
        "iam", "list_roles", "Roles[]", id_field="RoleName", created_field="CreateDate",
    ),
    "aws_iam_group": ResourceTypeSpec(
        "iam", "list_groups", "Groups[]", id_field="GroupName", created_field="CreateDate",
    ),
    "aws_iam_policy": ResourceTypeSpec(
        "iam", "list_policies", "Policies[]",
        id_field="Arn", created_field="CreateDate", params={"Scope": "Local"},
    ),
    # ── Storage / data ────────────────────────────────────────────────
    "aws_s3_bucket": ResourceTypeSpec(
        "s3", "list_buckets", "Buckets[]",
        id_field="Name", created_field="CreationDate", paginated=False,
    ),
    "aws_dynamodb_table": ResourceTypeSpec("dynamodb", "list_tables", "TableNames[]"),
    "aws_db_instance": ResourceTypeSpec(
        "rds", "describe_db_instances", "DBInstances[]",
        id_field="DBInstanceIdentifier", created_field="InstanceCreateTime",
    ),
    "aws_rds_cluster": ResourceTypeSpec(
        "rds", "describe_db_clusters", "DBClusters[]",
        id_field="DBClusterIdentifier", created_field="ClusterCreateTime",
    ),
    "aws_elasticache_cluster": ResourceTypeSpec(
        "elasticache", "describe_cache_clusters", "CacheClusters[]",
        id_field="CacheClusterId", created_field="CacheClusterCreateTime",
    ),
    # ── Compute / messaging ───────────────────────────────────────────
    "aws_lambda_function": ResourceTypeSpec(
        "lambda", "list_functions", "Functions[]",
        id_field="FunctionName", created_field="LastModified",
    ),
    "aws_eks_cluster": ResourceTypeSpec("eks", "list_clusters", "clusters[]"),
    "aws_sqs_queue": ResourceTypeSpec("sqs", "list_queues", "QueueUrls[]"),
    "aws_sns_topic": ResourceTypeSpec("sns", "list_topics", "Topics[]", id_field="TopicArn"),
    # ── Management ────────────────────────────────────────────────────
    "aws_cloudwatch_log_group": ResourceTypeSpec(
        "logs", "describe_log_groups", "logGroups[]",
        id_field="logGroupName", created_field="creationTime",
    ),
    "aws_kms_key": ResourceTypeSpec("kms", "list_keys", "Keys[]", id_field="KeyId"),
}

SUPPORTED_TYPES: Mapping[str, ResourceTypeSpec] = MappingProxyType(_SPECS)


# ══════════════════════════════════════════════════════════════════════════════
#  MATCHING
# ══════════════════════════════════════════════════════════════════════════════


def _validate_pattern(pattern: str) -> None:
    if not pattern:
        raise InvalidPatternError("empty pattern")

    i = 0
    while i < len(pattern):
        if pattern[i] == "\\":
            if i + 1 == len(pattern):
                raise InvalidPatternError(f"trailing escape in {pattern!r}")
            i += 2
            continue
        if pattern[i] == "[":
            # A class needs a closing bracket; "]" directly after "[" or "[!" is literal.
            j = i + 1
            if j < len(pattern) and pattern[j] == "!":
                j += 1
            if j < len(pattern) and pattern[j] == "]":
                j += 1
            close = pattern.find("]", j)
            if close == -1:
                raise InvalidPatternError(f"unterminated character class in {pattern!r}")
            i = close
        i += 1


def match_supported_types(pattern: str) -> list[str]:
    """Return the supported resource types matching a glob *pattern*, sorted.

    Raises:
        InvalidPatternError: if the pattern is not a valid glob.
    """
    _validate_pattern(pattern)
    return sorted(t for t in SUPPORTED_TYPES if fnmatch.fnmatchcase(t, pattern))


def get_spec(resource_type: str) -> ResourceTypeSpec:
    """Return the listing spec for *resource_type* (``KeyError`` if unsupported)."""
    return SUPPORTED_TYPES[resource_type]
