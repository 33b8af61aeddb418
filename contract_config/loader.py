"""
Configuration Loader (``contract_config.loader``).

Responsibility
--------------
Loads a policy YAML file and parses it into a ``LifecyclePolicy``.  This
is build/test tooling; runtime callers go through
``contract_config.get_active_policy()``.

Invariants enforced
-------------------
* Required keys raise ``KeyError``; there are no silent defaults for
  ``config_id``, ``version`` or ``effective_from``.
* Optional sections fall back to the documented kernel defaults.
* ``compute_checksum`` is deterministic for identical input.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid dates or thresholds  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from contract_config.schema import ConfigStatus, LifecyclePolicy
from contract_kernel.domain.policy import ParameterDefaults, TenurePolicy, ValidityThresholds

POLICY_FILE_NAME = "policy.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def _decimal(value: Any) -> Decimal:
    # YAML floats go through str() so 3.5 stays 3.5
    return Decimal(str(value))


def parse_validity(data: dict[str, Any]) -> ValidityThresholds:
    defaults = ValidityThresholds()
    return ValidityThresholds(
        critical_days=int(data.get("critical_days", defaults.critical_days)),
        about_to_expire_days=int(data.get("about_to_expire_days", defaults.about_to_expire_days)),
    )


def parse_tenure(data: dict[str, Any]) -> TenurePolicy:
    defaults = TenurePolicy()
    max_periods = data.get("max_periods")
    return TenurePolicy(
        max_years=_decimal(data.get("max_years", defaults.max_years)),
        max_periods=int(max_periods) if max_periods is not None else None,
        near_limit_years=_decimal(data.get("near_limit_years", defaults.near_limit_years)),
        min_year_renewal_from=int(data.get("min_year_renewal_from", defaults.min_year_renewal_from)),
        min_renewal_days=int(data.get("min_renewal_days", defaults.min_renewal_days)),
    )


def parse_parameter_defaults(data: dict[str, Any]) -> ParameterDefaults:
    defaults = ParameterDefaults()
    return ParameterDefaults(
        minimum_wage=_decimal(data.get("minimum_wage", defaults.minimum_wage)),
        transport_subsidy=_decimal(data.get("transport_subsidy", defaults.transport_subsidy)),
    )


def parse_policy(data: dict[str, Any]) -> LifecyclePolicy:
    """
    Parse a ``LifecyclePolicy`` from the dict form of ``policy.yaml``.

    Raises:
        KeyError: if ``config_id``, ``version`` or ``effective_from`` is missing.
        ValueError: on bad dates, an unknown status or inconsistent thresholds.
    """
    effective_to = data.get("effective_to")
    return LifecyclePolicy(
        config_id=data["config_id"],
        version=int(data["version"]),
        status=ConfigStatus(data.get("status", ConfigStatus.PUBLISHED.value)),
        effective_from=parse_date(data["effective_from"]),
        effective_to=parse_date(effective_to) if effective_to else None,
        validity=parse_validity(data.get("validity") or {}),
        tenure=parse_tenure(data.get("tenure") or {}),
        parameter_defaults=parse_parameter_defaults(data.get("parameter_defaults") or {}),
        checksum=compute_checksum(data),
    )


def load_policy(set_dir: Path) -> LifecyclePolicy:
    """Load ``policy.yaml`` from one policy set directory."""
    return parse_policy(load_yaml_file(set_dir / POLICY_FILE_NAME))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
