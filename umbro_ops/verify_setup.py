from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .cli_shared import _cf_outputs
from .config import VercelEnvConfig
from .errors import OpError
from .secret_derivation import NEXTAUTH_SECRET_KEYS
from .vercel_env import (
    ROLE_ARN_ENV_KEY,
    UMBRO_OUTPUT_ENV_KEYS,
    VercelClient,
    role_arn_output_key,
)

PASS = "pass"
FAIL = "fail"
WARN = "warn"


@dataclass(frozen=True)
class CheckResult:
    check: str
    status: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"check": self.check, "status": self.status, "message": self.message}


def _stack_output_keys(session: Any, stack: str, results: list[CheckResult]) -> set[str] | None:
    try:
        outputs = _cf_outputs(session, stack=stack)
    except OpError as e:
        results.append(CheckResult(stack, FAIL, str(e)))
        return None
    results.append(CheckResult(stack, PASS, f"found stack with {len(outputs)} outputs"))
    return {str(o.get("OutputKey", "")).strip() for o in outputs}


def verify_stacks(session: Any, cfg: VercelEnvConfig) -> list[CheckResult]:
    results: list[CheckResult] = []

    umbro_keys = _stack_output_keys(session, cfg.umbro_stack_name, results)
    if umbro_keys is not None:
        for output_key, _env_key in UMBRO_OUTPUT_ENV_KEYS:
            if output_key in umbro_keys:
                results.append(CheckResult(f"Output: {output_key}", PASS, "present in CloudFormation"))
            else:
                results.append(CheckResult(f"Output: {output_key}", FAIL, "missing from CloudFormation"))

    oidc_keys = _stack_output_keys(session, cfg.oidc_stack_name, results)
    if oidc_keys is not None:
        role_key = role_arn_output_key(cfg.stage)
        if role_key in oidc_keys:
            results.append(CheckResult(f"Output: {role_key}", PASS, "present in CloudFormation"))
        else:
            results.append(CheckResult(f"Output: {role_key}", FAIL, "missing from CloudFormation"))
    return results


def verify_vercel(client: VercelClient, cfg: VercelEnvConfig) -> list[CheckResult]:
    results: list[CheckResult] = []
    try:
        project = client.get_project(cfg.project_id)
        results.append(CheckResult("Vercel project access", PASS, f"project: {project.get('name', cfg.project_id)}"))
        present = set(client.list_env_keys(cfg.project_id))
    except OpError as e:
        results.append(CheckResult("Vercel access", FAIL, str(e)))
        return results

    expected = [env_key for _o, env_key in UMBRO_OUTPUT_ENV_KEYS]
    expected.append(ROLE_ARN_ENV_KEY)
    expected.extend(NEXTAUTH_SECRET_KEYS)
    for key in expected:
        if key in present:
            results.append(CheckResult(f"Vercel env: {key}", PASS, "present in Vercel"))
        else:
            results.append(
                CheckResult(f"Vercel env: {key}", WARN, "missing from Vercel (will be set on next deploy)")
            )
    return results


def summarize(results: list[CheckResult]) -> dict[str, Any]:
    counts = {PASS: 0, WARN: 0, FAIL: 0}
    for r in results:
        counts[r.status] = counts.get(r.status, 0) + 1
    return {
        "ok": counts[FAIL] == 0,
        "passed": counts[PASS],
        "warnings": counts[WARN],
        "failed": counts[FAIL],
        "results": [r.to_dict() for r in results],
    }
