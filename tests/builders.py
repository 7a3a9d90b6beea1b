"""Record builders shared by the test suite."""

from datetime import date, time
from decimal import Decimal
from uuid import UUID, uuid4

from recon_kernel.domain.status import MatchStatus
from recon_kernel.domain.types import (
    CashDeposit,
    Location,
    Payment,
    PaymentClassification,
    PaymentMethod,
    PosDeposit,
    Program,
    Transaction,
)

VISA = PaymentMethod("V", PaymentClassification.POS, "Visa", "VI")
MASTERCARD = PaymentMethod("M", PaymentClassification.POS, "Mastercard", "MC")
DEBIT = PaymentMethod("P", PaymentClassification.POS, "Debit", "DB")
CASH = PaymentMethod("CASH", PaymentClassification.CASH, "Cash", "CA")
CHEQUE = PaymentMethod("CHQ", PaymentClassification.CASH, "Cheque", "CH")

ALL_METHODS = (VISA, MASTERCARD, DEBIT, CASH, CHEQUE)
_BY_CODE = {m.method: m for m in ALL_METHODS}

LOCATION_ID = 1
PT_LOCATION_ID = 10
MERCHANT_ID = 100


def method(code: str) -> PaymentMethod:
    return _BY_CODE[code]


def make_location(
    location_id: int = LOCATION_ID,
    program: Program = Program.SBC,
    pt_location_id: int = PT_LOCATION_ID,
    merchant_ids: tuple[int, ...] = (MERCHANT_ID,),
) -> Location:
    return Location(
        location_id=location_id,
        program=program,
        pt_location_id=pt_location_id,
        merchant_ids=merchant_ids,
        description=f"Location {location_id}",
    )


def pos_payment(
    amount: str | Decimal,
    on: date,
    at: time | None = None,
    code: str = "V",
    location_id: int = LOCATION_ID,
    status: MatchStatus = MatchStatus.PENDING,
    payment_id: UUID | None = None,
    program: Program = Program.SBC,
) -> Payment:
    return Payment(
        id=payment_id or uuid4(),
        transaction=Transaction(
            transaction_id=f"TXN-{uuid4().hex[:8]}",
            transaction_date=on,
            transaction_time=at,
            location_id=location_id,
            fiscal_close_date=on,
            program=program,
        ),
        amount=Decimal(amount),
        payment_method=method(code),
        status=status,
    )


def cash_payment(
    amount: str | Decimal,
    close_date: date,
    code: str = "CASH",
    location_id: int = LOCATION_ID,
    status: MatchStatus = MatchStatus.PENDING,
    transaction_date: date | None = None,
    program: Program = Program.SBC,
) -> Payment:
    return Payment(
        id=uuid4(),
        transaction=Transaction(
            transaction_id=f"TXN-{uuid4().hex[:8]}",
            transaction_date=transaction_date or close_date,
            location_id=location_id,
            fiscal_close_date=close_date,
            program=program,
        ),
        amount=Decimal(amount),
        payment_method=method(code),
        status=status,
    )


def pos_deposit(
    amount: str | Decimal,
    on: date,
    at: time | None = None,
    code: str = "V",
    merchant_id: int = MERCHANT_ID,
    status: MatchStatus = MatchStatus.PENDING,
    program: Program = Program.SBC,
) -> PosDeposit:
    return PosDeposit(
        id=uuid4(),
        program=program,
        merchant_id=merchant_id,
        transaction_date=on,
        transaction_time=at,
        amount=Decimal(amount),
        payment_method=method(code),
        status=status,
    )


def cash_deposit(
    amount: str | Decimal,
    on: date,
    pt_location_id: int = PT_LOCATION_ID,
    status: MatchStatus = MatchStatus.PENDING,
    program: Program = Program.SBC,
) -> CashDeposit:
    return CashDeposit(
        id=uuid4(),
        program=program,
        pt_location_id=pt_location_id,
        deposit_date=on,
        amount=Decimal(amount),
        status=status,
    )
