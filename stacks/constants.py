from __future__ import annotations

from dataclasses import dataclass

from aws_cdk import Duration, aws_s3 as s3


@dataclass(frozen=True)
class IndexSpec:
    name: str
    partition_key: str
    sort_key: str | None = None


@dataclass(frozen=True)
class TableSpec:
    construct_id: str
    base_name: str
    output_key: str
    partition_key: str
    sort_key: str | None = None
    indexes: tuple[IndexSpec, ...] = ()
    ttl_attribute: str | None = None

    def table_name(self, stage_key: str) -> str:
        return f"{self.base_name}-{stage_key}"


# Auth.js adapter tables plus the application tables; every key is a string attribute.
TABLES: tuple[TableSpec, ...] = (
    TableSpec(
        "UsersTable",
        "umbro-users",
        "UsersTableName",
        "id",
        indexes=(IndexSpec("email-index", "email"),),
    ),
    TableSpec(
        "ServiceTokensTable",
        "umbro-service-tokens",
        "ServiceTokensTableName",
        "userId",
        sort_key="tokenName",
        indexes=(IndexSpec("token-id-index", "id"),),
    ),
    TableSpec("RateLimitTable", "umbro-rate-limit", "RateLimitTableName", "key", ttl_attribute="expiresAt"),
    TableSpec(
        "ApplicationsTable",
        "umbro-applications",
        "ApplicationsTableName",
        "id",
        indexes=(IndexSpec("team-index", "teamId"),),
    ),
    TableSpec("EnvironmentsTable", "umbro-environments", "EnvironmentsTableName", "applicationId", sort_key="id"),
    TableSpec("TeamsTable", "umbro-teams", "TeamsTableName", "id"),
    TableSpec(
        "TeamMembershipsTable",
        "umbro-team-memberships",
        "TeamMembershipsTableName",
        "teamId",
        sort_key="userId",
        indexes=(IndexSpec("user-teams-index", "userId"),),
    ),
    TableSpec("TeamLinksTable", "umbro-team-links", "TeamLinksTableName", "teamId", sort_key="linkId"),
    TableSpec(
        "RequestsTable",
        "umbro-requests",
        "RequestsTableName",
        "id",
        indexes=(IndexSpec("requester-index", "requesterId"),),
    ),
    TableSpec("RequestCommentsTable", "umbro-request-comments", "RequestCommentsTableName", "requestId", sort_key="createdAt"),
    TableSpec(
        "AccessGrantsTable",
        "umbro-access-grants",
        "AccessGrantsTableName",
        "userId",
        sort_key="resourceId",
        indexes=(IndexSpec("resource-index", "resourceId"),),
    ),
    TableSpec("VisitorsTable", "umbro-visitors", "VisitorsTableName", "id"),
    TableSpec("UserPermissionsTable", "umbro-user-permissions", "UserPermissionsTableName", "userId", sort_key="permission"),
    TableSpec(
        "AuditLogsTable",
        "umbro-audit-logs",
        "AuditLogsTableName",
        "id",
        indexes=(IndexSpec("actor-index", "actorId", sort_key="timestamp"),),
    ),
    TableSpec("PlansTable", "umbro-plans", "PlansTableName", "id"),
)

AVATAR_BUCKET_BASE_NAME = "umbro-avatar"
ASSETS_BUCKET_BASE_NAME = "umbro-assets"

CORS_ALLOWED_ORIGINS = [
    "https://umbro.vercel.app",
    "https://*.vercel.app",
    "http://localhost:3000",
    "https://localhost:3000",
]
CORS_ALLOWED_METHODS = [
    s3.HttpMethods.GET,
    s3.HttpMethods.PUT,
    s3.HttpMethods.POST,
    s3.HttpMethods.DELETE,
]
CORS_ALLOWED_HEADERS = [
    "Content-Type",
    "Authorization",
    "x-amz-date",
    "x-amz-security-token",
    "x-amz-user-agent",
]
CORS_MAX_AGE_SECONDS = 3000
CORS_EXPOSED_HEADERS = ["ETag"]


def cors_rules() -> list[s3.CorsRule]:
    return [
        s3.CorsRule(
            allowed_origins=CORS_ALLOWED_ORIGINS,
            allowed_methods=CORS_ALLOWED_METHODS,
            allowed_headers=CORS_ALLOWED_HEADERS,
            max_age=CORS_MAX_AGE_SECONDS,
            exposed_headers=CORS_EXPOSED_HEADERS,
        )
    ]


def avatar_lifecycle_rule() -> s3.LifecycleRule:
    return s3.LifecycleRule(
        id="avatar-cleanup",
        enabled=True,
        expiration=Duration.days(365),
        transitions=[
            s3.Transition(
                storage_class=s3.StorageClass.INTELLIGENT_TIERING,
                transition_after=Duration.days(30),
            ),
            s3.Transition(
                storage_class=s3.StorageClass.GLACIER,
                transition_after=Duration.days(90),
            ),
        ],
    )


def assets_lifecycle_rule() -> s3.LifecycleRule:
    # Seven year retention is a compliance requirement.
    return s3.LifecycleRule(
        id="assets-cleanup",
        enabled=True,
        expiration=Duration.days(2555),
        transitions=[
            s3.Transition(
                storage_class=s3.StorageClass.INTELLIGENT_TIERING,
                transition_after=Duration.days(30),
            ),
            s3.Transition(
                storage_class=s3.StorageClass.GLACIER,
                transition_after=Duration.days(90),
            ),
            s3.Transition(
                storage_class=s3.StorageClass.DEEP_ARCHIVE,
                transition_after=Duration.days(365),
            ),
        ],
    )
