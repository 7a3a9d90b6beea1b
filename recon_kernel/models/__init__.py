"""ORM models for the reconciliation kernel."""

from recon_kernel.models.deposit import CashDepositModel, PosDepositModel
from recon_kernel.models.location import LocationMerchantModel, LocationModel
from recon_kernel.models.payment import PaymentMethodModel, PaymentModel

__all__ = [
    "CashDepositModel",
    "LocationMerchantModel",
    "LocationModel",
    "PaymentMethodModel",
    "PaymentModel",
    "PosDepositModel",
]
