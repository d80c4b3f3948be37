from __future__ import annotations

from typing import Iterable

from aws_cdk import CfnOutput, Duration, RemovalPolicy, Stack, aws_iam as iam
from constructs import Construct

from umbro_ops.config import DEFAULT_VERCEL_STAGES
from umbro_ops.errors import InvalidStageError
from umbro_ops.stages import (
    Stage,
    ensure_unique_role_labels,
    map_stage_to_external_environments,
    parse_stage,
    role_label,
)
from umbro_ops.trust import (
    build_subject_claims,
    build_trust_condition,
    vercel_audience,
    vercel_issuer_url,
    web_identity_conditions,
)

from .permissions import grant_deploy_permissions


class VercelOpenIDConnectStack(Stack):
    """Vercel OIDC provider plus one deploy role per stage.

    Each role trusts only tokens whose audience is the team audience and whose
    subject names one of the Vercel environments the stage maps to.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        team_slug: str,
        project_name: str,
        stages: Iterable[str | Stage] = DEFAULT_VERCEL_STAGES,
        issuer_mode: str = "team",
        max_session_duration: Duration | None = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        resolved = [parse_stage(s) for s in stages]
        # Reject colliding role names before any role construct exists.
        ensure_unique_role_labels(resolved)

        issuer_url = vercel_issuer_url(team_slug, issuer_mode=issuer_mode)
        audience = vercel_audience(team_slug)

        provider = iam.OpenIdConnectProvider(
            self,
            "vercelProvider",
            client_ids=[audience],
            url=issuer_url,
        )

        self.roles: dict[Stage, iam.Role] = {}
        for stage in resolved:
            role_name = role_label(stage)
            claims = build_subject_claims(
                team_slug, project_name, map_stage_to_external_environments(stage)
            )
            conditions = web_identity_conditions(
                issuer_url, build_trust_condition(audience, claims)
            )

            role = iam.Role(
                self,
                f"Umbro{role_name}",
                assumed_by=iam.WebIdentityPrincipal(
                    provider.open_id_connect_provider_arn, conditions
                ),
                description=f"Vercel deployment role for {stage.value} environment",
                max_session_duration=max_session_duration or Duration.hours(6),
                role_name=role_name,
            )
            grant_deploy_permissions(role)
            role.apply_removal_policy(RemovalPolicy.DESTROY)
            self.roles[stage] = role

            CfnOutput(
                self,
                f"{role_name}Arn",
                value=role.role_arn,
                description=f"Role ARN for Vercel {stage.value} deployments (AWS_ROLE_ARN).",
            )

    def role_arn(self, stage: str | Stage) -> str:
        resolved = parse_stage(stage)
        role = self.roles.get(resolved)
        if role is None:
            raise InvalidStageError(f"role for stage {resolved.value!r} not found")
        return role.role_arn

    def all_role_arns(self) -> dict[str, str]:
        return {stage.value: role.role_arn for stage, role in self.roles.items()}
