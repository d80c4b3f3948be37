from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

import boto3
from rich.console import Console

from .errors import OpError

_ERROR_CONSOLE = Console(stderr=True)


@dataclass(frozen=True)
class GlobalOpts:
    region: str
    profile: str = ""
    pretty: bool = True
    quiet: bool = False


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {msg}")


def _log(g: GlobalOpts, msg: str) -> None:
    if g.quiet:
        return
    _ERROR_CONSOLE.print(msg, highlight=False)


def _warn(msg: str) -> None:
    """Print a warning to stderr; unlike ``_log`` this ignores --quiet."""
    _ERROR_CONSOLE.print(f"[bold yellow]warning:[/bold yellow] {msg}", highlight=False)


def _account_session(g: GlobalOpts) -> Any:
    # Pipelines authenticate through the ambient credential chain; AWS_PROFILE is optional.
    return boto3.session.Session(
        profile_name=g.profile or None,
        region_name=g.region,
    )


def _cf_outputs(session: Any, *, stack: str) -> list[dict[str, Any]]:
    cf = session.client("cloudformation")
    try:
        resp = cf.describe_stacks(StackName=stack)
    except Exception as e:
        raise OpError(f"cloudformation describe-stacks failed for stack {stack!r}: {e}") from e
    stacks = resp.get("Stacks") or []
    if not stacks:
        raise OpError(f"stack not found: {stack}")
    outputs = stacks[0].get("Outputs") or []
    if not isinstance(outputs, list):
        return []
    return [o for o in outputs if isinstance(o, dict)]


def _cf_output_map(session: Any, *, stack: str) -> dict[str, str]:
    out: dict[str, str] = {}
    for o in _cf_outputs(session, stack=stack):
        key = str(o.get("OutputKey", "")).strip()
        val = str(o.get("OutputValue", "")).strip()
        if key and val:
            out[key] = val
    return out


def _cf_stack_resources(session: Any, *, stack: str) -> list[dict[str, Any]]:
    cf = session.client("cloudformation")
    try:
        resp = cf.describe_stack_resources(StackName=stack)
    except Exception as e:
        raise OpError(f"cloudformation describe-stack-resources failed for stack {stack!r}: {e}") from e
    resources = resp.get("StackResources") or []
    return [r for r in resources if isinstance(r, dict)]


def _caller_account_id(session: Any) -> str:
    try:
        ident = session.client("sts").get_caller_identity()
    except Exception as e:
        raise OpError(f"sts get-caller-identity failed: {e}") from e
    return str(ident.get("Account") or "").strip()


def _print_json(obj: Any, *, pretty: bool) -> None:
    if pretty:
        sys.stdout.write(json.dumps(obj, indent=2, sort_keys=True) + "\n")
    else:
        sys.stdout.write(json.dumps(obj, separators=(",", ":"), sort_keys=True) + "\n")


def _http_request(
    *,
    method: str,
    url: str,
    headers: dict[str, str],
    body: bytes | None = None,
    timeout_seconds: int = 30,
) -> tuple[int, dict[str, str], bytes]:
    req = Request(url, data=body, method=str(method).upper())
    for k, v in headers.items():
        req.add_header(k, v)
    try:
        with urlopen(req, timeout=timeout_seconds) as resp:
            status = getattr(resp, "status", 200)
            hdrs = {k.lower(): v for k, v in dict(resp.headers).items()}
            data = resp.read()
            return int(status), hdrs, data
    except HTTPError as e:
        hdrs = {k.lower(): v for k, v in dict(e.headers).items()}
        data = e.read() if hasattr(e, "read") else b""
        return int(getattr(e, "code", 0) or 0), hdrs, data
    except URLError as e:
        raise OpError(f"http request failed: {e}") from e


def _load_json_object(*, raw: bytes, label: str) -> dict[str, Any]:
    text = raw.decode("utf-8", errors="replace")
    try:
        val = json.loads(text or "{}")
    except Exception as e:
        raise OpError(f"invalid JSON from {label}: {e}") from e
    if not isinstance(val, dict):
        raise OpError(f"invalid JSON from {label}: expected object")
    return val
