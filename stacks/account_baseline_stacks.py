"""Account-wide IAM users, password policy and CloudTrail monitoring."""

from __future__ import annotations

from typing import Sequence

from aws_cdk import (
    RemovalPolicy,
    Stack,
    Tags,
    aws_cloudtrail as cloudtrail,
    aws_iam as iam,
    aws_kms as kms,
    aws_logs as logs,
    aws_secretsmanager as secretsmanager,
    aws_sns as sns,
    aws_sns_subscriptions as subscriptions,
    custom_resources as cr,
)
from constructs import Construct

from .permissions import (
    deny_without_mfa,
    grant_assume_role,
    grant_cloudformation_read_permissions,
    grant_dynamodb_read_permissions,
    grant_iam_read_permissions,
    grant_mfa_self_service,
    grant_secrets_manager_read_permissions,
)

PASSWORD_POLICY = {
    "AllowUsersToChangePassword": True,
    "ExpirePasswords": True,
    # Soft expiry lets users sign in with the old password to start a reset.
    "HardExpiry": False,
    "MaxPasswordAge": 90,
    "MinimumPasswordLength": 50,
    "PasswordReusePrevention": 24,
    "RequireLowercaseCharacters": True,
    "RequireNumbers": True,
    "RequireSymbols": True,
    "RequireUppercaseCharacters": True,
}


def _user_name_for(email: str) -> str:
    local = email.split("@", 1)[0].strip()
    if not local:
        raise ValueError(f"invalid developer email: {email!r}")
    return f"{local}-umbro"


class UsersStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        developer_emails: Sequence[str] = (),
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        admin_group, self.admin_role = self._group_with_role("UmbroAdministrators")
        developers_group, self.developers_role = self._group_with_role("UmbroDevelopers")

        for email in developer_emails:
            self._user(_user_name_for(email), email, [admin_group, developers_group])

    def _group_with_role(self, name: str) -> tuple[iam.Group, iam.Role]:
        group = iam.Group(self, f"{name}Group", group_name=name)
        group.apply_removal_policy(RemovalPolicy.DESTROY)
        deny_without_mfa(group)

        role = iam.Role(
            self,
            f"{name}Role",
            assumed_by=iam.AccountPrincipal(self.account),
            description=f"Secure role that can be assumed by users in account {self.account}",
            role_name=name,
        )
        role.apply_removal_policy(RemovalPolicy.DESTROY)
        grant_assume_role(group, role.role_arn)
        grant_cloudformation_read_permissions(role)
        grant_dynamodb_read_permissions(role)
        grant_iam_read_permissions(role)
        grant_secrets_manager_read_permissions(role)
        return group, role

    def _user(self, user_name: str, email: str, groups: list[iam.Group]) -> iam.User:
        password = secretsmanager.Secret(
            self,
            f"{user_name}-InitialPasswordSecret",
            secret_name=f"{user_name}-InitialPassword",
            generate_secret_string=secretsmanager.SecretStringGenerator(
                exclude_punctuation=False,
                include_space=False,
                password_length=100,
                require_each_included_type=True,
            ),
        )
        password.apply_removal_policy(RemovalPolicy.DESTROY)

        user = iam.User(
            self,
            f"{user_name}User",
            user_name=user_name,
            password=password.secret_value,
            password_reset_required=True,
        )
        user.apply_removal_policy(RemovalPolicy.DESTROY)
        Tags.of(user).add("email", email)
        for group in groups:
            group.add_user(user)
        grant_mfa_self_service(user)
        deny_without_mfa(user)
        return user


class PasswordPolicyStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        function_name = "UmbroAccountPasswordPolicy"
        cr.AwsCustomResource(
            self,
            function_name,
            function_name=function_name,
            log_retention=logs.RetentionDays.THREE_MONTHS,
            on_update=cr.AwsSdkCall(
                service="IAM",
                action="updateAccountPasswordPolicy",
                parameters=PASSWORD_POLICY,
                physical_resource_id=cr.PhysicalResourceId.of(function_name),
            ),
            policy=cr.AwsCustomResourcePolicy.from_sdk_calls(
                resources=cr.AwsCustomResourcePolicy.ANY_RESOURCE,
            ),
        )


class SecurityMonitoringStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        alert_emails: Sequence[str] = (),
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        trail_name = "UmbroSecurityMonitoringTrail"
        key_alias = f"{trail_name}KmsKey"

        encryption_key = kms.Key(
            self,
            key_alias,
            alias=key_alias,
            description="KMS key for encrypting Umbro CloudTrail logs at rest",
            enable_key_rotation=True,
        )

        log_group_name = f"{trail_name}LogGroup"
        log_group = logs.LogGroup(
            self,
            log_group_name,
            encryption_key=encryption_key,
            log_group_class=logs.LogGroupClass.STANDARD,
            log_group_name=log_group_name,
            removal_policy=RemovalPolicy.DESTROY,
            retention=logs.RetentionDays.ONE_MONTH,
        )

        trail = cloudtrail.Trail(
            self,
            trail_name,
            cloud_watch_log_group=log_group,
            enable_file_validation=True,
            encryption_key=encryption_key,
            include_global_service_events=True,
            is_multi_region_trail=True,
            management_events=cloudtrail.ReadWriteType.WRITE_ONLY,
            send_to_cloud_watch_logs=True,
            trail_name=trail_name,
        )
        trail.apply_removal_policy(RemovalPolicy.DESTROY)

        topic_name = f"{trail_name}AlarmsTopic"
        self.alarm_topic = sns.Topic(
            self,
            topic_name,
            display_name=topic_name,
            enforce_ssl=True,
            topic_name=topic_name,
        )
        for email in alert_emails:
            self.alarm_topic.add_subscription(subscriptions.EmailSubscription(email))
        self.alarm_topic.apply_removal_policy(RemovalPolicy.DESTROY)

        for service in ("cloudtrail.amazonaws.com", "logs.amazonaws.com"):
            encryption_key.add_to_resource_policy(
                iam.PolicyStatement(
                    actions=["kms:Encrypt", "kms:Decrypt", "kms:GenerateDataKey*", "kms:DescribeKey"],
                    principals=[iam.ServicePrincipal(service)],
                    resources=["*"],
                )
            )
