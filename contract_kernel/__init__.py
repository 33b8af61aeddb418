"""
Contract Kernel

Persistence, services and shared domain types for the contract
temporal and lifecycle engine:
- Contract approval and archival lifecycle
- Fixed-term period ledger storage
- Time-bounded benefit provider assignments
- Year-scoped economic parameters
"""

__version__ = "0.1.0"
