import sys
from pathlib import Path

import pytest
from aws_cdk import App
from aws_cdk import assertions

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stacks.vercel_oidc_stack import VercelOpenIDConnectStack
from umbro_ops.errors import AmbiguousRoleLabelError, InvalidStageError
from umbro_ops.stages import Stage


def _stack(**kwargs) -> VercelOpenIDConnectStack:
    kwargs.setdefault("team_slug", "acme")
    kwargs.setdefault("project_name", "widget")
    return VercelOpenIDConnectStack(App(), "UmbroVercelOIDC", **kwargs)


def _synth_template(**kwargs) -> dict:
    return assertions.Template.from_stack(_stack(**kwargs)).to_json()


def _roles_by_name(template: dict) -> dict[str, dict]:
    roles: dict[str, dict] = {}
    for resource in template["Resources"].values():
        if resource.get("Type") != "AWS::IAM::Role":
            continue
        name = (resource.get("Properties") or {}).get("RoleName")
        if isinstance(name, str):
            roles[name] = resource
    return roles


def _trust_statement(role: dict) -> dict:
    statements = role["Properties"]["AssumeRolePolicyDocument"]["Statement"]
    assert len(statements) == 1
    return statements[0]


def test_one_role_per_default_stage() -> None:
    roles = _roles_by_name(_synth_template())

    assert set(roles) == {"VercelDeployAlpha", "VercelDeployBeta", "VercelDeployProduction"}
    for role in roles.values():
        assert role["Properties"]["MaxSessionDuration"] == 21600
        assert role["DeletionPolicy"] == "Delete"


def test_alpha_role_trusts_development_and_preview() -> None:
    stmt = _trust_statement(_roles_by_name(_synth_template())["VercelDeployAlpha"])

    assert stmt["Action"] == "sts:AssumeRoleWithWebIdentity"
    assert stmt["Condition"] == {
        "StringEquals": {
            "oidc.vercel.com/acme:aud": "https://vercel.com/acme",
            "oidc.vercel.com/acme:sub": [
                "owner:acme:project:widget:environment:development",
                "owner:acme:project:widget:environment:preview",
            ],
        }
    }


def test_production_role_trusts_only_production() -> None:
    stmt = _trust_statement(_roles_by_name(_synth_template())["VercelDeployProduction"])

    assert stmt["Condition"]["StringEquals"]["oidc.vercel.com/acme:sub"] == (
        "owner:acme:project:widget:environment:production"
    )


def test_global_issuer_mode_changes_condition_keys() -> None:
    stmt = _trust_statement(
        _roles_by_name(_synth_template(issuer_mode="global", stages=["beta"]))["VercelDeployBeta"]
    )

    assert stmt["Condition"] == {
        "StringEquals": {
            "oidc.vercel.com:aud": "https://vercel.com/acme",
            "oidc.vercel.com:sub": "owner:acme:project:widget:environment:beta",
        }
    }


def test_provider_uses_team_audience_as_client_id() -> None:
    template = _synth_template()

    providers = [
        r
        for r in template["Resources"].values()
        if r.get("Type") == "Custom::AWSCDKOpenIdConnectProvider"
    ]
    assert len(providers) == 1
    props = providers[0]["Properties"]
    assert props["ClientIDList"] == ["https://vercel.com/acme"]
    assert props["Url"] == "https://oidc.vercel.com/acme"


def test_role_arn_outputs_per_stage() -> None:
    outputs = _synth_template()["Outputs"]

    assert {"VercelDeployAlphaArn", "VercelDeployBetaArn", "VercelDeployProductionArn"} <= set(outputs)


def test_roles_carry_deploy_permissions() -> None:
    template = _synth_template(stages=["production"])

    actions: set[str] = set()
    for resource in template["Resources"].values():
        if resource.get("Type") != "AWS::IAM::Policy":
            continue
        for stmt in resource["Properties"]["PolicyDocument"]["Statement"]:
            action = stmt.get("Action", [])
            actions.update([action] if isinstance(action, str) else action)

    assert {"sts:AssumeRole", "iam:PassRole"} <= actions
    assert any(a.startswith("cloudformation:") for a in actions)
    assert any(a.startswith("dynamodb:") for a in actions)


def test_role_lookup_by_stage() -> None:
    stack = _stack(stages=["alpha", "production"])

    assert set(stack.all_role_arns()) == {"Alpha", "Production"}
    assert stack.role_arn("Alpha") == stack.roles[Stage.ALPHA].role_arn
    with pytest.raises(InvalidStageError):
        stack.role_arn("beta")


def test_colliding_role_labels_fail_before_synthesis() -> None:
    with pytest.raises(AmbiguousRoleLabelError):
        _stack(stages=["beta", "Beta"])


def test_unknown_stage_fails() -> None:
    with pytest.raises(InvalidStageError):
        _stack(stages=["staging"])
