"""Store contracts and their SQLAlchemy implementations."""

from recon_kernel.stores.base import (
    CashDepositStore,
    LocationStore,
    PaymentStore,
    PosDepositStore,
)
from recon_kernel.stores.sql import (
    SqlCashDepositStore,
    SqlLocationStore,
    SqlPaymentStore,
    SqlPosDepositStore,
)

__all__ = [
    "CashDepositStore",
    "LocationStore",
    "PaymentStore",
    "PosDepositStore",
    "SqlCashDepositStore",
    "SqlLocationStore",
    "SqlPaymentStore",
    "SqlPosDepositStore",
]
