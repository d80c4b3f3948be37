from __future__ import annotations

from enum import Enum
from typing import Iterable

from .errors import AmbiguousRoleLabelError, InvalidStageError

VERCEL_ROLE_PREFIX = "VercelDeploy"


class Stage(str, Enum):
    DEVELOPMENT = "Development"
    ALPHA = "Alpha"
    BETA = "Beta"
    GAMMA = "Gamma"
    PRODUCTION = "Production"
    ROOT = "Root"
    PIPELINE = "Pipeline"


PRE_PRODUCTION_STAGE = Stage.ALPHA
PRODUCTION_STAGE = Stage.PRODUCTION

# Short names used by older STAGE values and role lists.
_STAGE_ALIASES = {
    "dev": Stage.DEVELOPMENT,
    "prod": Stage.PRODUCTION,
}

_EXPLICIT_ENVIRONMENTS: dict[Stage, tuple[str, ...]] = {
    PRE_PRODUCTION_STAGE: ("development", "preview"),
    PRODUCTION_STAGE: ("production",),
}


def parse_stage(raw: str | Stage) -> Stage:
    if isinstance(raw, Stage):
        return raw
    value = str(raw or "").strip()
    if not value:
        raise InvalidStageError("stage cannot be empty")
    lowered = value.lower()
    for stage in Stage:
        if stage.value.lower() == lowered:
            return stage
    alias = _STAGE_ALIASES.get(lowered)
    if alias is not None:
        return alias
    known = ", ".join(s.value for s in Stage)
    raise InvalidStageError(f"unknown stage {value!r} (expected one of: {known})")


def map_stage_to_external_environments(stage: str | Stage) -> tuple[str, ...]:
    """Vercel environment names a deployment stage is allowed to act for.

    Alpha and Production resolve through explicit rules. Every other known
    stage falls back to its own lowercased name. Unknown input raises
    ``InvalidStageError`` before any fallback is considered.
    """
    resolved = parse_stage(stage)
    explicit = _EXPLICIT_ENVIRONMENTS.get(resolved)
    if explicit is not None:
        return explicit
    if resolved is PRODUCTION_STAGE:
        raise InvalidStageError("production stage must resolve through its explicit rule")
    return (resolved.value.lower(),)


def role_label(stage: str | Stage, prefix: str = VERCEL_ROLE_PREFIX) -> str:
    return f"{prefix}{parse_stage(stage).value}"


def ensure_unique_role_labels(
    stages: Iterable[str | Stage], prefix: str = VERCEL_ROLE_PREFIX
) -> dict[str, str | Stage]:
    """Map role label -> stage input, rejecting inputs that collide."""
    seen: dict[str, str | Stage] = {}
    for stage in stages:
        label = role_label(stage, prefix)
        previous = seen.get(label)
        if previous is not None:
            raise AmbiguousRoleLabelError(
                f"stages {str(getattr(previous, 'value', previous))!r} and "
                f"{str(getattr(stage, 'value', stage))!r} both produce role label {label!r}"
            )
        seen[label] = stage
    return seen


def stage_from_targets(targets: Iterable[str]) -> Stage:
    normalized = {str(t or "").strip().lower() for t in targets}
    if "production" in normalized:
        return PRODUCTION_STAGE
    return PRE_PRODUCTION_STAGE
