from __future__ import annotations

from typing import Sequence

from aws_cdk import Duration, RemovalPolicy, Stack, aws_iam as iam
from constructs import Construct

from umbro_ops.config import GitHubRepository
from umbro_ops.errors import ConfigurationError

from .permissions import grant_deploy_permissions

GITHUB_OIDC_DOMAIN = "token.actions.githubusercontent.com"
GITHUB_DEPLOY_ROLE_NAME = "GitHubDeploy"


class GitHubOpenIDConnectStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        repositories: Sequence[GitHubRepository],
        role_name: str = GITHUB_DEPLOY_ROLE_NAME,
        max_session_duration: Duration | None = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        if not repositories:
            raise ConfigurationError("at least one GitHub repository is required for the GitHub OIDC role")

        provider = iam.OpenIdConnectProvider(
            self,
            "githubProvider",
            client_ids=["sts.amazonaws.com"],
            url=f"https://{GITHUB_OIDC_DOMAIN}",
        )

        # Only workflows from the listed repositories may assume the role.
        conditions = {
            "StringEquals": {f"{GITHUB_OIDC_DOMAIN}:aud": "sts.amazonaws.com"},
            "StringLike": {f"{GITHUB_OIDC_DOMAIN}:sub": [r.subject for r in repositories]},
        }

        self.role = iam.Role(
            self,
            f"Umbro{role_name}",
            assumed_by=iam.WebIdentityPrincipal(provider.open_id_connect_provider_arn, conditions),
            description="GitHub Actions role for deploying Umbro with CDK.",
            max_session_duration=max_session_duration or Duration.hours(6),
            role_name=role_name,
        )
        grant_deploy_permissions(self.role)
        self.role.apply_removal_policy(RemovalPolicy.DESTROY)
