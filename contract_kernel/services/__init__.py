"""Kernel services: flush-only writers for catalogue data."""

from contract_kernel.services.base import BaseService
from contract_kernel.services.reference_data_service import ReferenceDataService

__all__ = ["BaseService", "ReferenceDataService"]
