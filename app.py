#!/usr/bin/env python3
import os

import aws_cdk as cdk

from stacks.account_baseline_stacks import (
    PasswordPolicyStack,
    SecurityMonitoringStack,
    UsersStack,
)
from stacks.github_oidc_stack import GitHubOpenIDConnectStack
from stacks.umbro_stack import UmbroStack
from stacks.vercel_oidc_stack import VercelOpenIDConnectStack
from umbro_ops.config import UMBRO_OIDC_STACK_NAME, UMBRO_STACK_NAME, AppConfig

app = cdk.App()

config = AppConfig.from_env(os.environ)
env = cdk.Environment(account=config.account, region=config.region)

for key, value in config.tags.items():
    cdk.Tags.of(app).add(key, value)

VercelOpenIDConnectStack(
    app,
    os.getenv("UMBRO_OIDC_STACK_NAME", UMBRO_OIDC_STACK_NAME),
    team_slug=config.team_slug,
    project_name=config.project_name,
    stages=config.vercel_stages,
    issuer_mode=config.issuer_mode,
    description="Vercel OIDC provider and per-stage deployment roles for Umbro",
    env=env,
)

UmbroStack(
    app,
    os.getenv("UMBRO_STACK_NAME", UMBRO_STACK_NAME),
    stage=config.stage,
    description=f"Umbro application resources ({config.stage.value})",
    env=env,
)

if config.github_repositories:
    GitHubOpenIDConnectStack(
        app,
        os.getenv("GITHUB_OIDC_STACK_NAME", "UmbroGitHubOIDC"),
        repositories=config.github_repositories,
        env=env,
    )

# Account-wide resources; deploy once per account, not per stage.
if config.account_baseline_enabled:
    UsersStack(app, "UmbroUsers", developer_emails=config.developer_emails, env=env)
    PasswordPolicyStack(app, "UmbroPasswordPolicy", env=env)
    SecurityMonitoringStack(
        app, "UmbroSecurityMonitoring", alert_emails=config.developer_emails, env=env
    )

app.synth()
