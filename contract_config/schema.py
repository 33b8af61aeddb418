"""
LifecyclePolicy schema.

A policy set is the human-authored YAML source for the thresholds the
engines use: validity windows, tenure limits and annual parameter
defaults.  The loader parses it into these frozen types; the kernel
policy dataclasses are embedded unchanged so engines never see YAML.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum, unique

from contract_kernel.domain.policy import ParameterDefaults, TenurePolicy, ValidityThresholds


@unique
class ConfigStatus(str, Enum):
    """Lifecycle status for a policy set."""

    DRAFT = "draft"
    PUBLISHED = "published"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class LifecyclePolicy:
    """One versioned policy set with its effective window."""

    config_id: str
    version: int
    status: ConfigStatus
    effective_from: date
    effective_to: date | None
    validity: ValidityThresholds
    tenure: TenurePolicy
    parameter_defaults: ParameterDefaults
    checksum: str = ""

    def covers(self, as_of: date) -> bool:
        return self.effective_from <= as_of and (
            self.effective_to is None or self.effective_to >= as_of
        )
