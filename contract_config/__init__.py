"""
contract_config -- single public entrypoint for lifecycle policy.

Responsibility:
    Provides the only way to obtain policy at runtime through
    ``get_active_policy()``.  No engine or service reads YAML files or
    environment variables for thresholds directly.

Architecture position:
    Configuration -- sits beside ``contract_kernel`` and below
    ``contract_services``.  The kernel and the engines MUST NEVER import
    from ``contract_config``; they receive the kernel policy dataclasses
    embedded in the returned ``LifecyclePolicy``.

Invariants enforced:
    - Single entrypoint: all runtime policy flows through ``get_active_policy()``.
    - The chosen set's effective window covers ``as_of``.
    - Deterministic checksum: the same YAML always yields the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- no policy set covers the requested date.
    - ``ValueError`` -- invalid thresholds, dates or status.
    - ``KeyError`` -- a required key is missing from ``policy.yaml``.

Audit relevance:
    Every successful call emits a ``CONTRACT_CONFIG_TRACE`` log entry with
    the config id, version and checksum, tying each evaluation to the
    policy version that governed it.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from contract_config.loader import POLICY_FILE_NAME, load_policy
from contract_config.schema import ConfigStatus, LifecyclePolicy

_logger = logging.getLogger("contract_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

__all__ = [
    "ConfigStatus",
    "LifecyclePolicy",
    "get_active_policy",
]


def get_active_policy(as_of: date, config_dir: Path | None = None) -> LifecyclePolicy:
    """The only public configuration entrypoint.

    Scans every policy set under ``config_dir`` (default
    ``contract_config/sets``), keeps those whose effective window covers
    ``as_of`` and returns the highest published version.  Drafts and
    superseded sets are only used when nothing published matches.

    Raises:
        FileNotFoundError: If no policy set covers ``as_of``.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR
    policy = _find_matching_policy(sets_dir, as_of)

    _logger.info(
        "CONTRACT_CONFIG_TRACE",
        extra={
            "trace_type": "CONTRACT_CONFIG_TRACE",
            "config_set_id": policy.config_id,
            "config_set_version": policy.version,
            "checksum": policy.checksum,
            "as_of": as_of.isoformat(),
        },
    )
    return policy


def _find_matching_policy(sets_dir: Path, as_of: date) -> LifecyclePolicy:
    if not sets_dir.is_dir():
        raise FileNotFoundError(f"Configuration sets directory not found: {sets_dir}")

    candidates: list[LifecyclePolicy] = []
    for subdir in sorted(sets_dir.iterdir()):
        if not subdir.is_dir() or not (subdir / POLICY_FILE_NAME).exists():
            continue
        policy = load_policy(subdir)
        if policy.covers(as_of):
            candidates.append(policy)

    if not candidates:
        raise FileNotFoundError(f"No policy set covers {as_of} in {sets_dir}")

    published = [p for p in candidates if p.status == ConfigStatus.PUBLISHED]
    return max(published or candidates, key=lambda p: p.version)
