import pytest

from umbro_ops.errors import ConfigurationError, InvalidStageError
from umbro_ops.trust import (
    build_subject_claims,
    build_trust_condition,
    stage_trust_condition,
    vercel_audience,
    vercel_issuer_url,
    web_identity_conditions,
)


def test_subject_claims_follow_environment_order() -> None:
    claims = build_subject_claims("acme", "widget", ["development", "preview"])

    assert claims == (
        "owner:acme:project:widget:environment:development",
        "owner:acme:project:widget:environment:preview",
    )


def test_subject_claims_drop_duplicates_and_blanks() -> None:
    claims = build_subject_claims("acme", "widget", ["preview", "", "preview", " production "])

    assert claims == (
        "owner:acme:project:widget:environment:preview",
        "owner:acme:project:widget:environment:production",
    )


@pytest.mark.parametrize(
    "org,project,envs",
    [
        ("", "widget", ["preview"]),
        ("acme", "  ", ["preview"]),
        ("acme", "widget", []),
    ],
)
def test_subject_claims_require_all_inputs(org, project, envs) -> None:
    with pytest.raises(ConfigurationError):
        build_subject_claims(org, project, envs)


def test_single_claim_stays_scalar() -> None:
    cond = build_trust_condition(
        "https://vercel.com/acme",
        ["owner:acme:project:widget:environment:production"],
    )

    assert cond == {
        "aud": "https://vercel.com/acme",
        "sub": "owner:acme:project:widget:environment:production",
    }


def test_several_claims_become_a_list() -> None:
    cond = build_trust_condition("https://vercel.com/acme", ["a", "b"])

    assert cond["sub"] == ["a", "b"]


def test_trust_condition_requires_audience_and_claims() -> None:
    with pytest.raises(ConfigurationError):
        build_trust_condition("", ["a"])
    with pytest.raises(ConfigurationError):
        build_trust_condition("https://vercel.com/acme", [])


def test_stage_trust_condition_for_alpha() -> None:
    cond = stage_trust_condition("Alpha", team_slug="acme", project_name="widget")

    assert cond == {
        "aud": "https://vercel.com/acme",
        "sub": [
            "owner:acme:project:widget:environment:development",
            "owner:acme:project:widget:environment:preview",
        ],
    }


def test_stage_trust_condition_for_production() -> None:
    cond = stage_trust_condition("Production", team_slug="acme", project_name="widget")

    assert cond["sub"] == "owner:acme:project:widget:environment:production"


def test_stage_trust_condition_rejects_unknown_stage() -> None:
    with pytest.raises(InvalidStageError):
        stage_trust_condition("staging", team_slug="acme", project_name="widget")


def test_issuer_url_modes() -> None:
    assert vercel_issuer_url("acme") == "https://oidc.vercel.com/acme"
    assert vercel_issuer_url("acme", issuer_mode="global") == "https://oidc.vercel.com"
    with pytest.raises(ConfigurationError):
        vercel_issuer_url("acme", issuer_mode="regional")


def test_audience_is_team_url() -> None:
    assert vercel_audience("acme") == "https://vercel.com/acme"


def test_web_identity_conditions_are_keyed_by_issuer_host() -> None:
    cond = build_trust_condition("https://vercel.com/acme", ["a"])

    assert web_identity_conditions("https://oidc.vercel.com/acme", cond) == {
        "StringEquals": {
            "oidc.vercel.com/acme:aud": "https://vercel.com/acme",
            "oidc.vercel.com/acme:sub": "a",
        }
    }


def test_web_identity_conditions_require_pinned_claims() -> None:
    with pytest.raises(ConfigurationError):
        web_identity_conditions("https://oidc.vercel.com/acme", {"aud": "x", "sub": ""})
