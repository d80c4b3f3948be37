from __future__ import annotations

from typing import Any, Iterable

from .cli_shared import _caller_account_id, _cf_stack_resources
from .errors import OpError
from .stages import VERCEL_ROLE_PREFIX, Stage, role_label


def vercel_role_arns(
    session: Any,
    *,
    stack: str,
    stages: Iterable[Stage],
) -> list[dict[str, str]]:
    """Resolve the deployed per-stage Vercel roles of the OIDC stack.

    Roles are matched by the physical role name, which the stack sets to the
    stage role label.
    """
    resources = _cf_stack_resources(session, stack=stack)
    role_names = {
        str(r.get("PhysicalResourceId") or "").strip()
        for r in resources
        if r.get("ResourceType") == "AWS::IAM::Role"
        and VERCEL_ROLE_PREFIX in str(r.get("LogicalResourceId") or "")
    }
    role_names.discard("")
    if not role_names:
        raise OpError(f"no Vercel OIDC roles found in stack {stack!r}; has it been deployed?")

    account_id = _caller_account_id(session)
    out: list[dict[str, str]] = []
    for stage in stages:
        name = role_label(stage)
        if name not in role_names:
            continue
        out.append(
            {
                "stage": stage.value,
                "roleName": name,
                "roleArn": f"arn:aws:iam::{account_id}:role/{name}",
            }
        )
    return out
