from __future__ import annotations

import os
import sys
from typing import Any, Callable

import click
import typer

from . import __version__
from .cli_shared import GlobalOpts, _account_session, _print_json, _rich_error
from .config import DEFAULT_PROJECT_NAME, DEFAULT_TEAM_SLUG, UMBRO_OIDC_STACK_NAME, VercelEnvConfig
from .errors import OpError, UsageError
from .role_arns import vercel_role_arns
from .stages import Stage, map_stage_to_external_environments, parse_stage, role_label
from .trust import build_subject_claims, build_trust_condition, vercel_audience, vercel_issuer_url, web_identity_conditions
from .verify_setup import summarize, verify_stacks, verify_vercel
from .vercel_env import VercelClient, update_vercel_env

app = typer.Typer(
    name="umbro-ops",
    help="Deployment helpers for the Umbro stacks and their Vercel project.",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"umbro-ops {__version__}")
        raise typer.Exit(code=0)


@app.callback()
def app_callback(
    ctx: typer.Context,
    profile: str | None = typer.Option(None, "--profile", help="AWS CLI profile name (default: env AWS_PROFILE)"),
    region: str | None = typer.Option(None, "--region", help="AWS region (default: env AWS_REGION or us-east-1)"),
    plain_json: bool = typer.Option(False, "--plain-json", help="Emit compact JSON output"),
    quiet: bool = typer.Option(False, "--quiet", help="Reduce stderr logging"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    del version
    ctx.obj = {
        "g": GlobalOpts(
            profile=(profile or os.environ.get("AWS_PROFILE") or "").strip(),
            region=(region or os.environ.get("AWS_REGION") or "us-east-1").strip(),
            pretty=not plain_json,
            quiet=quiet,
        )
    }


def _ctx_global(ctx: typer.Context) -> GlobalOpts:
    if isinstance(ctx.obj, dict) and isinstance(ctx.obj.get("g"), GlobalOpts):
        return ctx.obj["g"]
    return GlobalOpts(region=(os.environ.get("AWS_REGION") or "us-east-1").strip())


def _invoke(ctx: typer.Context, func: Callable[[GlobalOpts], int]) -> None:
    g = _ctx_global(ctx)
    try:
        code = int(func(g))
    except UsageError as e:
        _rich_error(str(e))
        raise typer.Exit(code=2)
    except OpError as e:
        _rich_error(str(e))
        raise typer.Exit(code=1)
    if code:
        raise typer.Exit(code=code)


@app.command("update-vercel-env")
def update_vercel_env_cmd(
    ctx: typer.Context,
    require_secret: bool = typer.Option(
        False,
        "--require-secret",
        help="Fail instead of skipping NEXTAUTH_SECRET when the stage seed is not set",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the planned variables without calling Vercel"),
) -> None:
    """Copy stack outputs and the derived NextAuth secret into Vercel env vars."""

    def run(g: GlobalOpts) -> int:
        cfg = VercelEnvConfig.from_env(os.environ)
        result = update_vercel_env(g, cfg, require_secret=require_secret, dry_run=dry_run)
        _print_json(result, pretty=g.pretty)
        return 0

    _invoke(ctx, run)


@app.command("role-arns")
def role_arns_cmd(
    ctx: typer.Context,
    stack: str = typer.Option(UMBRO_OIDC_STACK_NAME, "--stack", help="Vercel OIDC stack name"),
    stages: list[str] = typer.Option(
        [],
        "--stage",
        help="Stage to resolve (repeatable; default: every known stage)",
    ),
) -> None:
    """List the per-stage Vercel deploy role ARNs of the OIDC stack."""

    def run(g: GlobalOpts) -> int:
        resolved = [parse_stage(s) for s in stages] if stages else list(Stage)
        roles = vercel_role_arns(_account_session(g), stack=stack, stages=resolved)
        _print_json({"stack": stack, "roles": roles}, pretty=g.pretty)
        return 0

    _invoke(ctx, run)


@app.command("verify-setup")
def verify_setup_cmd(ctx: typer.Context) -> None:
    """Check stack outputs and Vercel env vars; exit 1 on any failed check."""

    def run(g: GlobalOpts) -> int:
        cfg = VercelEnvConfig.from_env(os.environ, default_targets="preview,development")
        results = verify_stacks(_account_session(g), cfg)
        results.extend(verify_vercel(VercelClient(token=cfg.token, team_id=cfg.team_id), cfg))
        summary = summarize(results)
        _print_json(summary, pretty=g.pretty)
        return 0 if summary["ok"] else 1

    _invoke(ctx, run)


@app.command("trust-condition")
def trust_condition_cmd(
    ctx: typer.Context,
    stage: str = typer.Argument(..., help="Deployment stage, e.g. Alpha or Production"),
    team_slug: str | None = typer.Option(
        None,
        "--team-slug",
        help=f"Vercel team slug (default: env VERCEL_TEAM_SLUG or {DEFAULT_TEAM_SLUG})",
    ),
    project_name: str | None = typer.Option(
        None,
        "--project-name",
        help=f"Vercel project name (default: env VERCEL_PROJECT_NAME or {DEFAULT_PROJECT_NAME})",
    ),
    issuer_mode: str = typer.Option("team", "--issuer-mode", help="OIDC issuer mode: team or global"),
) -> None:
    """Print the subject claims and IAM trust condition for one stage."""

    def run(g: GlobalOpts) -> int:
        team = (team_slug or os.environ.get("VERCEL_TEAM_SLUG") or DEFAULT_TEAM_SLUG).strip()
        project = (project_name or os.environ.get("VERCEL_PROJECT_NAME") or DEFAULT_PROJECT_NAME).strip()
        resolved = parse_stage(stage)
        environments = map_stage_to_external_environments(resolved)
        claims = build_subject_claims(team, project, environments)
        condition = build_trust_condition(vercel_audience(team), claims)
        issuer = vercel_issuer_url(team, issuer_mode=issuer_mode)
        out: dict[str, Any] = {
            "stage": resolved.value,
            "roleName": role_label(resolved),
            "environments": list(environments),
            "subjectClaims": list(claims),
            "issuer": issuer,
            "condition": web_identity_conditions(issuer, condition),
        }
        _print_json(out, pretty=g.pretty)
        return 0

    _invoke(ctx, run)


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        result = app(args=argv, prog_name="umbro-ops", standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.ClickException as e:
        _rich_error(e.format_message())
        return int(e.exit_code)
    except UsageError as e:
        _rich_error(str(e))
        return 2
    except OpError as e:
        _rich_error(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
