"""
contract_services -- stateful orchestration over engines and the kernel.

Every service takes the caller's SQLAlchemy ``Session`` and flushes; none
of them commits.  Wrap calls in ``contract_kernel.db.session_scope()`` (or
a test transaction) to get one atomic unit of work.
"""

from contract_services.annual_parameter_service import AnnualParameterService
from contract_services.benefit_assignment_service import BenefitAssignmentService
from contract_services.contract_service import ContractService
from contract_services.evaluation import ContractEvaluation, ContractEvaluationService
from contract_services.period_ledger_service import PeriodLedgerService

__all__ = [
    "AnnualParameterService",
    "BenefitAssignmentService",
    "ContractEvaluation",
    "ContractEvaluationService",
    "ContractService",
    "PeriodLedgerService",
]
