"""
Reconciliation Kernel

Domain records, monetary and business-day utilities, the match status
state machine, structured logging, typed exceptions, and the persistence
layer (SQLAlchemy models and stores) for payment-to-deposit
reconciliation:
- Decimal-exact amount comparison
- Weekend-aware business-day arithmetic
- Table-driven status transitions (PENDING -> IN_PROGRESS -> MATCH | EXCEPTION)
- Injected clocks for deterministic runs
"""

__version__ = "0.1.0"
