from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from .errors import ConfigurationError
from .stages import PRODUCTION_STAGE, Stage, parse_stage, stage_from_targets

DEFAULT_REGION = "us-east-1"
DEFAULT_TEAM_SLUG = "colten-krauters-projects"
DEFAULT_PROJECT_NAME = "umbro"
DEFAULT_VERCEL_STAGES = (Stage.ALPHA, Stage.BETA, Stage.PRODUCTION)

UMBRO_STACK_NAME = "UmbroStack"
UMBRO_OIDC_STACK_NAME = "UmbroVercelOIDC"

SEED_ENV_ALPHA = "NEXTAUTH_SEED_ALPHA"
SEED_ENV_PRODUCTION = "NEXTAUTH_SEED_PRODUCTION"


def _env(environ: Mapping[str, str], name: str, default: str = "") -> str:
    return (environ.get(name) or "").strip() or default


def _require_env(environ: Mapping[str, str], name: str) -> str:
    v = _env(environ, name)
    if not v:
        raise ConfigurationError(f"missing required environment variable: {name}")
    return v


def _truthy(raw: str | None) -> bool:
    return str(raw or "").strip().lower() in {"1", "true", "yes", "on"}


def parse_csv(raw: str | None) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for part in (raw or "").split(","):
        v = part.strip()
        if v and v not in seen:
            seen.add(v)
            out.append(v)
    return out


@dataclass(frozen=True)
class GitHubRepository:
    owner: str
    repo: str
    ref_filter: str = "*"

    @property
    def subject(self) -> str:
        return f"repo:{self.owner}/{self.repo}:{self.ref_filter}"


def parse_github_repositories(raw: str | None) -> list[GitHubRepository]:
    """Parse ``owner/repo[:filter]`` entries, e.g. ``acme/widget:ref:refs/heads/main``."""
    repos: list[GitHubRepository] = []
    for entry in parse_csv(raw):
        slug, _, filt = entry.partition(":")
        owner, _, repo = slug.partition("/")
        if not owner.strip() or not repo.strip():
            raise ConfigurationError(f"invalid GitHub repository {entry!r} (expected owner/repo[:filter])")
        repos.append(GitHubRepository(owner=owner.strip(), repo=repo.strip(), ref_filter=filt.strip() or "*"))
    return repos


@dataclass(frozen=True)
class AppConfig:
    account: str
    region: str
    stage: Stage
    team_slug: str
    project_name: str
    issuer_mode: str = "team"
    vercel_stages: tuple[Stage, ...] = DEFAULT_VERCEL_STAGES
    developer_emails: tuple[str, ...] = ()
    account_baseline_enabled: bool = False
    github_repositories: tuple[GitHubRepository, ...] = ()
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "AppConfig":
        account = _require_env(environ, "CDK_DEFAULT_ACCOUNT")
        stage = parse_stage(_env(environ, "STAGE", "dev"))
        raw_stages = parse_csv(environ.get("VERCEL_STAGES"))
        vercel_stages = (
            tuple(parse_stage(s) for s in raw_stages) if raw_stages else DEFAULT_VERCEL_STAGES
        )
        return cls(
            account=account,
            region=_env(environ, "CDK_DEFAULT_REGION", DEFAULT_REGION),
            stage=stage,
            team_slug=_env(environ, "VERCEL_TEAM_SLUG", DEFAULT_TEAM_SLUG),
            project_name=_env(environ, "VERCEL_PROJECT_NAME", DEFAULT_PROJECT_NAME),
            issuer_mode=_env(environ, "VERCEL_ISSUER_MODE", "team").lower(),
            vercel_stages=vercel_stages,
            developer_emails=tuple(parse_csv(environ.get("UMBRO_DEVELOPER_EMAILS"))),
            account_baseline_enabled=_truthy(environ.get("UMBRO_ACCOUNT_BASELINE_ENABLED")),
            github_repositories=tuple(parse_github_repositories(environ.get("GITHUB_OIDC_REPOSITORIES"))),
            tags={"Project": "Umbro", "Stage": stage.value, "ManagedBy": "CDK"},
        )


@dataclass(frozen=True)
class VercelEnvConfig:
    token: str = field(repr=False)
    project_id: str
    team_id: str
    targets: tuple[str, ...]
    region: str = DEFAULT_REGION
    seeds: dict[Stage, str] = field(default_factory=dict, repr=False)
    umbro_stack_name: str = UMBRO_STACK_NAME
    oidc_stack_name: str = UMBRO_OIDC_STACK_NAME

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str],
        *,
        default_targets: str | None = None,
    ) -> "VercelEnvConfig":
        token = _require_env(environ, "VERCEL_TOKEN")
        project_id = _require_env(environ, "VERCEL_PROJECT_ID")
        team_id = _require_env(environ, "VERCEL_TEAM_ID")
        raw_targets = _env(environ, "TARGETS", default_targets or "")
        if not raw_targets:
            raise ConfigurationError("missing required environment variable: TARGETS")
        targets = tuple(parse_csv(raw_targets))
        if not targets:
            raise ConfigurationError("missing required environment variable: TARGETS")
        seeds: dict[Stage, str] = {}
        alpha_seed = environ.get(SEED_ENV_ALPHA) or ""
        production_seed = environ.get(SEED_ENV_PRODUCTION) or ""
        if alpha_seed.strip():
            seeds[Stage.ALPHA] = alpha_seed
        if production_seed.strip():
            seeds[Stage.PRODUCTION] = production_seed
        return cls(
            token=token,
            project_id=project_id,
            team_id=team_id,
            targets=targets,
            region=_env(environ, "AWS_REGION", DEFAULT_REGION),
            seeds=seeds,
            umbro_stack_name=_env(environ, "UMBRO_STACK_NAME", UMBRO_STACK_NAME),
            oidc_stack_name=_env(environ, "UMBRO_OIDC_STACK_NAME", UMBRO_OIDC_STACK_NAME),
        )

    @property
    def stage(self) -> Stage:
        return stage_from_targets(self.targets)

    @property
    def seed_env_name(self) -> str:
        return SEED_ENV_PRODUCTION if self.stage is PRODUCTION_STAGE else SEED_ENV_ALPHA

    def seed(self) -> str | None:
        return self.seeds.get(self.stage)
