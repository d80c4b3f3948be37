from __future__ import annotations

from typing import Any, Iterable, Sequence

from .errors import ConfigurationError
from .stages import Stage, map_stage_to_external_environments

VERCEL_OIDC_HOST = "oidc.vercel.com"
ISSUER_MODES = ("team", "global")


def _require_non_empty(val: str | None, *, name: str) -> str:
    out = str(val or "").strip()
    if not out:
        raise ConfigurationError(f"missing {name}")
    return out


def vercel_issuer_url(team_slug: str, *, issuer_mode: str = "team") -> str:
    mode = str(issuer_mode or "").strip().lower()
    if mode not in ISSUER_MODES:
        raise ConfigurationError(
            f"issuer mode must be one of {', '.join(ISSUER_MODES)}; got {issuer_mode!r}"
        )
    if mode == "global":
        return f"https://{VERCEL_OIDC_HOST}"
    team = _require_non_empty(team_slug, name="team slug")
    return f"https://{VERCEL_OIDC_HOST}/{team}"


def vercel_audience(team_slug: str) -> str:
    team = _require_non_empty(team_slug, name="team slug")
    return f"https://vercel.com/{team}"


def build_subject_claims(org: str, project: str, environments: Iterable[str]) -> tuple[str, ...]:
    owner = _require_non_empty(org, name="organization slug")
    name = _require_non_empty(project, name="project name")

    claims: list[str] = []
    seen: set[str] = set()
    for env in environments:
        env_name = str(env or "").strip()
        if not env_name or env_name in seen:
            continue
        seen.add(env_name)
        claims.append(f"owner:{owner}:project:{name}:environment:{env_name}")
    if not claims:
        raise ConfigurationError("at least one environment is required to build subject claims")
    return tuple(claims)


def build_trust_condition(audience: str, subject_claims: Sequence[str]) -> dict[str, Any]:
    """Pin both the audience and subject claims of a web identity token.

    A single claim stays a scalar (exact match); several claims become a list,
    which IAM evaluates as any-of.
    """
    aud = _require_non_empty(audience, name="audience")
    claims = [c for c in (str(x or "").strip() for x in subject_claims) if c]
    if not claims:
        raise ConfigurationError("at least one subject claim is required")
    sub: str | list[str] = claims[0] if len(claims) == 1 else list(claims)
    return {"aud": aud, "sub": sub}


def web_identity_conditions(issuer_url: str, trust_condition: dict[str, Any]) -> dict[str, Any]:
    issuer = _require_non_empty(issuer_url, name="issuer url")
    host = issuer.removeprefix("https://").rstrip("/")
    missing = [k for k in ("aud", "sub") if not trust_condition.get(k)]
    if missing:
        raise ConfigurationError(f"trust condition must pin {' and '.join(missing)}")
    return {
        "StringEquals": {
            f"{host}:aud": trust_condition["aud"],
            f"{host}:sub": trust_condition["sub"],
        }
    }


def stage_trust_condition(
    stage: str | Stage,
    *,
    team_slug: str,
    project_name: str,
) -> dict[str, Any]:
    environments = map_stage_to_external_environments(stage)
    claims = build_subject_claims(team_slug, project_name, environments)
    return build_trust_condition(vercel_audience(team_slug), claims)
