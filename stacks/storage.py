from __future__ import annotations

from aws_cdk import RemovalPolicy, aws_dynamodb as ddb, aws_s3 as s3
from constructs import Construct

from umbro_ops.stages import Stage

from .constants import (
    ASSETS_BUCKET_BASE_NAME,
    AVATAR_BUCKET_BASE_NAME,
    TABLES,
    TableSpec,
    assets_lifecycle_rule,
    avatar_lifecycle_rule,
    cors_rules,
)

BACKED_UP_STAGES = frozenset({Stage.BETA, Stage.PRODUCTION})


def removal_policy_for(stage: Stage) -> RemovalPolicy:
    return RemovalPolicy.RETAIN if stage is Stage.PRODUCTION else RemovalPolicy.DESTROY


def _string_attr(name: str) -> ddb.Attribute:
    return ddb.Attribute(name=name, type=ddb.AttributeType.STRING)


class UmbroTables(Construct):
    """Application DynamoDB tables, one per ``TableSpec``, named per stage."""

    def __init__(self, scope: Construct, construct_id: str, *, stage: Stage) -> None:
        super().__init__(scope, construct_id)

        stage_key = stage.value.lower()
        removal_policy = removal_policy_for(stage)
        point_in_time_recovery = stage in BACKED_UP_STAGES

        self.tables: dict[str, ddb.Table] = {}
        for spec in TABLES:
            self.tables[spec.output_key] = self._table(
                spec,
                stage_key=stage_key,
                removal_policy=removal_policy,
                point_in_time_recovery=point_in_time_recovery,
            )

    def _table(
        self,
        spec: TableSpec,
        *,
        stage_key: str,
        removal_policy: RemovalPolicy,
        point_in_time_recovery: bool,
    ) -> ddb.Table:
        table = ddb.Table(
            self,
            spec.construct_id,
            table_name=spec.table_name(stage_key),
            partition_key=_string_attr(spec.partition_key),
            sort_key=_string_attr(spec.sort_key) if spec.sort_key else None,
            billing_mode=ddb.BillingMode.PAY_PER_REQUEST,
            point_in_time_recovery_specification=ddb.PointInTimeRecoverySpecification(
                point_in_time_recovery_enabled=point_in_time_recovery,
            ),
            time_to_live_attribute=spec.ttl_attribute,
            removal_policy=removal_policy,
        )
        for index in spec.indexes:
            table.add_global_secondary_index(
                index_name=index.name,
                partition_key=_string_attr(index.partition_key),
                sort_key=_string_attr(index.sort_key) if index.sort_key else None,
                projection_type=ddb.ProjectionType.ALL,
            )
        return table

    @property
    def users_table(self) -> ddb.Table:
        return self.tables["UsersTableName"]

    @property
    def service_tokens_table(self) -> ddb.Table:
        return self.tables["ServiceTokensTableName"]

    @property
    def rate_limit_table(self) -> ddb.Table:
        return self.tables["RateLimitTableName"]


class UmbroBuckets(Construct):
    def __init__(self, scope: Construct, construct_id: str, *, stage: Stage) -> None:
        super().__init__(scope, construct_id)

        stage_key = stage.value.lower()
        is_production = stage is Stage.PRODUCTION
        removal_policy = removal_policy_for(stage)

        # Profile content: avatars, bio images, cover photos.
        self.avatar_bucket = self._bucket(
            "AvatarBucket",
            bucket_name=f"{AVATAR_BUCKET_BASE_NAME}-{stage_key}",
            lifecycle_rule=avatar_lifecycle_rule(),
            removal_policy=removal_policy,
            versioned=is_production,
        )
        self.assets_bucket = self._bucket(
            "AssetsBucket",
            bucket_name=f"{ASSETS_BUCKET_BASE_NAME}-{stage_key}",
            lifecycle_rule=assets_lifecycle_rule(),
            removal_policy=removal_policy,
            versioned=is_production,
        )

    def _bucket(
        self,
        construct_id: str,
        *,
        bucket_name: str,
        lifecycle_rule: s3.LifecycleRule,
        removal_policy: RemovalPolicy,
        versioned: bool,
    ) -> s3.Bucket:
        return s3.Bucket(
            self,
            construct_id,
            bucket_name=bucket_name,
            encryption=s3.BucketEncryption.S3_MANAGED,
            removal_policy=removal_policy,
            auto_delete_objects=removal_policy == RemovalPolicy.DESTROY,
            cors=cors_rules(),
            lifecycle_rules=[lifecycle_rule],
            versioned=versioned,
            public_read_access=False,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            enforce_ssl=True,
            transfer_acceleration=False,
            object_ownership=s3.ObjectOwnership.BUCKET_OWNER_ENFORCED,
        )
