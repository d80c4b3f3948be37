from aws_cdk import CfnOutput, Stack, aws_dynamodb as ddb
from constructs import Construct

from umbro_ops.stages import Stage

from .constants import TABLES
from .storage import UmbroBuckets, UmbroTables


class UmbroStack(Stack):
    """DynamoDB tables and S3 buckets backing the Umbro web app for one stage."""

    def __init__(self, scope: Construct, construct_id: str, *, stage: Stage, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.stage = stage
        self.database = UmbroTables(self, "Database", stage=stage)
        self.storage = UmbroBuckets(self, "Storage", stage=stage)

        # These outputs are copied into Vercel env vars by `umbro-ops update-vercel-env`.
        self._output("AccountId", self.account, "AWS Account ID")
        self._output("Region", self.region, "AWS Region")
        for spec in TABLES:
            self._output(
                spec.output_key,
                self.database.tables[spec.output_key].table_name,
                f"DynamoDB {spec.base_name} table name",
            )
        self._output("AvatarBucketName", self.storage.avatar_bucket.bucket_name, "S3 avatar bucket name")
        self._output("AssetsBucketName", self.storage.assets_bucket.bucket_name, "S3 assets bucket name")

    def _output(self, key: str, value: str, description: str) -> None:
        CfnOutput(
            self,
            key,
            value=value,
            description=description,
            export_name=f"{self.node.id}-{self.stage.value}-{key}",
        )

    @property
    def users_table(self) -> ddb.Table:
        return self.database.users_table

    @property
    def service_tokens_table(self) -> ddb.Table:
        return self.database.service_tokens_table

    @property
    def rate_limit_table(self) -> ddb.Table:
        return self.database.rate_limit_table
