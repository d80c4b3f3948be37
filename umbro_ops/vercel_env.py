"""Copy CloudFormation outputs into Vercel project environment variables."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode

from .cli_shared import (
    GlobalOpts,
    _account_session,
    _cf_output_map,
    _http_request,
    _load_json_object,
    _log,
    _warn,
)
from .config import VercelEnvConfig
from .errors import ConfigurationError, OpError
from .secret_derivation import NEXTAUTH_SECRET_KEYS, derive_secret
from .stages import Stage, role_label

VERCEL_API_BASE_URL = "https://api.vercel.com"

# (stack output key, Vercel env key) read from the application stack.
UMBRO_OUTPUT_ENV_KEYS = (
    ("AccountId", "AWS_ACCOUNT_ID"),
    ("Region", "AWS_REGION"),
    ("UsersTableName", "USERS_TABLE_NAME"),
    ("ServiceTokensTableName", "SERVICE_TOKENS_TABLE_NAME"),
)
ROLE_ARN_ENV_KEY = "AWS_ROLE_ARN"
LEGACY_ROLE_ARN_OUTPUT_KEY = "VercelRoleArn"


def role_arn_output_key(stage: str | Stage) -> str:
    return f"{role_label(stage)}Arn"


@dataclass(frozen=True)
class EnvVar:
    key: str
    value: str = field(repr=False)
    targets: tuple[str, ...]
    type: str = "plain"

    def summary(self) -> dict[str, Any]:
        return {"key": self.key, "targets": list(self.targets), "type": self.type}

    def request_body(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "target": list(self.targets),
            "type": self.type,
        }


class VercelClient:
    def __init__(self, *, token: str, team_id: str, base_url: str = VERCEL_API_BASE_URL) -> None:
        self._token = token
        self.team_id = team_id
        self.base_url = base_url.rstrip("/")

    def _url(self, path: str, **params: str) -> str:
        query = urlencode({**params, "teamId": self.team_id})
        return f"{self.base_url}{path}?{query}"

    def _call(self, *, method: str, url: str, label: str, body_obj: dict[str, Any] | None = None) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self._token}"}
        body = None
        if body_obj is not None:
            headers["Content-Type"] = "application/json"
            body = json.dumps(body_obj, separators=(",", ":")).encode("utf-8")
        status, _hdrs, raw = _http_request(method=method, url=url, headers=headers, body=body)
        if status < 200 or status >= 300:
            # The response body never echoes submitted values, only the error shape.
            text = raw.decode("utf-8", errors="replace")
            raise OpError(f"{label} failed: status={status} body={text}")
        return _load_json_object(raw=raw, label=label)

    def upsert_env(self, project_id: str, env_var: EnvVar) -> dict[str, Any]:
        url = self._url(f"/v10/projects/{quote(project_id, safe='')}/env", upsert="true")
        return self._call(
            method="POST",
            url=url,
            label=f"vercel env upsert {env_var.key}",
            body_obj=env_var.request_body(),
        )

    def list_env_keys(self, project_id: str) -> list[str]:
        url = self._url(f"/v9/projects/{quote(project_id, safe='')}/env")
        resp = self._call(method="GET", url=url, label="vercel env list")
        envs = resp.get("envs") or []
        return [str(e.get("key")) for e in envs if isinstance(e, dict) and e.get("key")]

    def get_project(self, project_id: str) -> dict[str, Any]:
        url = self._url(f"/v9/projects/{quote(project_id, safe='')}")
        return self._call(method="GET", url=url, label="vercel project get")


@dataclass(frozen=True)
class StackOutputs:
    values: dict[str, str]
    role_arn: str | None = None


def read_stack_outputs(session: Any, cfg: VercelEnvConfig) -> StackOutputs:
    umbro = _cf_output_map(session, stack=cfg.umbro_stack_name)
    oidc = _cf_output_map(session, stack=cfg.oidc_stack_name)
    role_arn = oidc.get(role_arn_output_key(cfg.stage)) or oidc.get(LEGACY_ROLE_ARN_OUTPUT_KEY)
    return StackOutputs(values=umbro, role_arn=role_arn)


def output_env_vars(outputs: StackOutputs, targets: tuple[str, ...]) -> list[EnvVar]:
    env_vars: list[EnvVar] = []
    for output_key, env_key in UMBRO_OUTPUT_ENV_KEYS:
        value = outputs.values.get(output_key)
        if value:
            env_vars.append(EnvVar(key=env_key, value=value, targets=targets))
    if outputs.role_arn:
        env_vars.append(EnvVar(key=ROLE_ARN_ENV_KEY, value=outputs.role_arn, targets=targets))
    return env_vars


def secret_env_vars(seed: str | None, stage: Stage, targets: tuple[str, ...]) -> list[EnvVar]:
    secret = derive_secret(seed, stage.value)
    return [
        EnvVar(key=key, value=secret, targets=targets, type="encrypted")
        for key in NEXTAUTH_SECRET_KEYS
    ]


def plan_env_vars(
    cfg: VercelEnvConfig,
    outputs: StackOutputs,
    *,
    require_secret: bool,
) -> list[EnvVar]:
    env_vars = output_env_vars(outputs, cfg.targets)
    try:
        env_vars.extend(secret_env_vars(cfg.seed(), cfg.stage, cfg.targets))
    except ConfigurationError as e:
        if require_secret:
            raise ConfigurationError(
                f"{cfg.seed_env_name} not set; cannot derive {'/'.join(NEXTAUTH_SECRET_KEYS)}"
            ) from e
        _warn(
            f"{cfg.seed_env_name} not set. Skipping {NEXTAUTH_SECRET_KEYS[0]} "
            f"for targets [{', '.join(cfg.targets)}].",
        )
    return env_vars


def update_vercel_env(
    g: GlobalOpts,
    cfg: VercelEnvConfig,
    *,
    require_secret: bool = False,
    dry_run: bool = False,
    session: Any = None,
    client: VercelClient | None = None,
) -> dict[str, Any]:
    _log(g, f"Targets: [{', '.join(cfg.targets)}]")
    _log(g, f"Project: {cfg.project_id}")
    _log(g, f"Team: {cfg.team_id}")
    _log(g, f"Reading CloudFormation outputs for stage: {cfg.stage.value}")

    session = session or _account_session(g)
    outputs = read_stack_outputs(session, cfg)
    if not outputs.role_arn:
        _warn(f"no role ARN output for stage {cfg.stage.value} on stack {cfg.oidc_stack_name!r}")

    env_vars = plan_env_vars(cfg, outputs, require_secret=require_secret)
    result: dict[str, Any] = {
        "stage": cfg.stage.value,
        "targets": list(cfg.targets),
        "dryRun": dry_run,
        "variables": [v.summary() for v in env_vars],
    }
    if not env_vars:
        _warn("no environment variables to update")
        return result
    if dry_run:
        return result

    client = client or VercelClient(token=cfg.token, team_id=cfg.team_id)
    _log(g, f"Updating {len(env_vars)} environment variables...")
    for env_var in env_vars:
        _log(g, f"  Setting {env_var.key} for [{', '.join(env_var.targets)}]")
        client.upsert_env(cfg.project_id, env_var)
    _log(g, "All environment variables updated.")
    return result
