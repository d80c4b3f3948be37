"""IAM statement helpers shared by the OIDC and account baseline stacks."""

from __future__ import annotations

from typing import Union

from aws_cdk import Stack, aws_iam as iam

Principal = Union[iam.Group, iam.Role, iam.User]

CLOUDFORMATION_READ_ACTIONS = [
    "cloudformation:DescribeStackEvents",
    "cloudformation:DescribeStackResources",
    "cloudformation:DescribeStacks",
    "cloudformation:GetTemplate",
    "cloudformation:ListStacks",
    "cloudformation:ListStackResources",
]
CLOUDFORMATION_WRITE_ACTIONS = [
    "cloudformation:CreateStack",
    "cloudformation:DeleteStack",
    "cloudformation:ExecuteChangeSet",
    "cloudformation:UpdateStack",
    "cloudformation:ValidateTemplate",
]
DYNAMODB_READ_ACTIONS = [
    "dynamodb:BatchGetItem",
    "dynamodb:DescribeTable",
    "dynamodb:GetItem",
    "dynamodb:Query",
    "dynamodb:Scan",
]
DYNAMODB_WRITE_ACTIONS = [
    "dynamodb:BatchWriteItem",
    "dynamodb:DeleteItem",
    "dynamodb:PutItem",
    "dynamodb:UpdateItem",
]
S3_READ_ACTIONS = ["s3:GetObject", "s3:ListBucket"]
S3_WRITE_ACTIONS = ["s3:DeleteObject", "s3:PutObject"]
SSM_READ_ACTIONS = [
    "ssm:DescribeParameters",
    "ssm:GetParameter",
    "ssm:GetParameters",
    "ssm:GetParametersByPath",
]
IAM_READ_ACTIONS = [
    "iam:GetGroup",
    "iam:GetPolicy",
    "iam:GetPolicyVersion",
    "iam:GetRole",
    "iam:GetUser",
    "iam:ListAttachedRolePolicies",
    "iam:ListGroups",
    "iam:ListPolicies",
    "iam:ListRoles",
    "iam:ListUsers",
]
SECRETS_MANAGER_READ_ACTIONS = [
    "secretsmanager:DescribeSecret",
    "secretsmanager:ListSecrets",
]
MFA_SELF_SERVICE_ACTIONS = [
    "sts:GetSessionToken",
    "iam:ChangePassword",
    "iam:CreateVirtualMFADevice",
    "iam:EnableMFADevice",
    "iam:DeactivateMFADevice",
    "iam:DeleteVirtualMFADevice",
    "iam:ListMFADevices",
    "iam:ResyncMFADevice",
    "iam:GetUser",
]


def add_policy(
    entity: Principal,
    actions: list[str],
    resources: list[str],
    effect: iam.Effect = iam.Effect.ALLOW,
) -> None:
    entity.add_to_policy(iam.PolicyStatement(actions=actions, effect=effect, resources=resources))


def grant_assume_role(entity: Principal, role_arn: str) -> None:
    add_policy(entity, ["sts:AssumeRole"], [role_arn])


def grant_assume_and_pass_role_permissions(role: iam.Role) -> None:
    account = Stack.of(role).account
    add_policy(role, ["sts:AssumeRole", "iam:PassRole"], [role.role_arn, f"arn:aws:iam::{account}:role/cdk-*"])


def grant_cloudformation_read_permissions(entity: Principal) -> None:
    stack = Stack.of(entity)
    add_policy(entity, CLOUDFORMATION_READ_ACTIONS, [f"arn:aws:cloudformation:{stack.region}:{stack.account}:*"])


def grant_cloudformation_write_permissions(entity: Principal) -> None:
    stack = Stack.of(entity)
    resources = [f"arn:aws:cloudformation:{stack.region}:{stack.account}:*"]
    add_policy(entity, CLOUDFORMATION_WRITE_ACTIONS, resources)
    add_policy(entity, CLOUDFORMATION_READ_ACTIONS, resources)


def grant_dynamodb_read_permissions(entity: Principal) -> None:
    stack = Stack.of(entity)
    add_policy(entity, DYNAMODB_READ_ACTIONS, [f"arn:aws:dynamodb:{stack.region}:{stack.account}:table/*"])


def grant_dynamodb_write_permissions(entity: Principal) -> None:
    # Wildcard on table/* keeps the OIDC stack free of exports from the app stack.
    stack = Stack.of(entity)
    resources = [f"arn:aws:dynamodb:{stack.region}:{stack.account}:table/*"]
    add_policy(entity, DYNAMODB_WRITE_ACTIONS, resources)
    add_policy(entity, DYNAMODB_READ_ACTIONS, resources)


def grant_s3_write_permissions(entity: Principal) -> None:
    stack = Stack.of(entity)
    bucket = f"arn:aws:s3:::cdk-assets-{stack.account}-{stack.region}"
    resources = [bucket, f"{bucket}/*"]
    add_policy(entity, S3_WRITE_ACTIONS, resources)
    add_policy(entity, S3_READ_ACTIONS, resources)


def grant_ssm_parameter_store_read_permissions(entity: Principal) -> None:
    stack = Stack.of(entity)
    add_policy(
        entity,
        SSM_READ_ACTIONS,
        [f"arn:aws:ssm:{stack.region}:{stack.account}:parameter/cdk-bootstrap/*/version"],
    )


def grant_iam_read_permissions(entity: Principal) -> None:
    add_policy(entity, IAM_READ_ACTIONS, ["*"])


def grant_secrets_manager_read_permissions(entity: Principal) -> None:
    stack = Stack.of(entity)
    add_policy(
        entity,
        SECRETS_MANAGER_READ_ACTIONS,
        [f"arn:aws:secretsmanager:{stack.region}:{stack.account}:secret:*"],
    )


def grant_deploy_permissions(role: iam.Role) -> None:
    grant_assume_and_pass_role_permissions(role)
    grant_cloudformation_write_permissions(role)
    grant_dynamodb_write_permissions(role)
    grant_s3_write_permissions(role)
    grant_ssm_parameter_store_read_permissions(role)


def deny_without_mfa(entity: Principal) -> None:
    """Deny everything except MFA self-service until the caller has signed in with MFA."""
    entity.add_to_policy(
        iam.PolicyStatement(
            effect=iam.Effect.DENY,
            not_actions=[*MFA_SELF_SERVICE_ACTIONS, "sts:AssumeRole"],
            resources=["*"],
            conditions={"Bool": {"aws:MultiFactorAuthPresent": "false"}},
        )
    )


def grant_mfa_self_service(user: iam.User) -> None:
    account = Stack.of(user).account
    add_policy(user, MFA_SELF_SERVICE_ACTIONS, [f"arn:aws:iam::{account}:mfa/*", user.user_arn])
