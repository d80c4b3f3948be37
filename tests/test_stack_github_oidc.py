import sys
from pathlib import Path

import pytest
from aws_cdk import App
from aws_cdk import assertions

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stacks.github_oidc_stack import GitHubOpenIDConnectStack
from umbro_ops.config import GitHubRepository
from umbro_ops.errors import ConfigurationError


def test_github_role_trusts_listed_repositories() -> None:
    stack = GitHubOpenIDConnectStack(
        App(),
        "UmbroGitHubOIDC",
        repositories=[
            GitHubRepository("acme", "widget", "ref:refs/heads/main"),
            GitHubRepository("acme", "infra"),
        ],
    )
    template = assertions.Template.from_stack(stack).to_json()

    roles = [
        r
        for r in template["Resources"].values()
        if r.get("Type") == "AWS::IAM::Role"
        and (r.get("Properties") or {}).get("RoleName") == "GitHubDeploy"
    ]
    assert len(roles) == 1
    stmt = roles[0]["Properties"]["AssumeRolePolicyDocument"]["Statement"][0]
    assert stmt["Condition"] == {
        "StringEquals": {"token.actions.githubusercontent.com:aud": "sts.amazonaws.com"},
        "StringLike": {
            "token.actions.githubusercontent.com:sub": [
                "repo:acme/widget:ref:refs/heads/main",
                "repo:acme/infra:*",
            ]
        },
    }


def test_github_stack_requires_repositories() -> None:
    with pytest.raises(ConfigurationError):
        GitHubOpenIDConnectStack(App(), "UmbroGitHubOIDC", repositories=[])
