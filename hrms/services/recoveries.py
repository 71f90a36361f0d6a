"""
Recovery Service
Loan EMIs, salary advance recoveries and standing deductions taken through payroll
"""
import logging
from datetime import datetime
from decimal import Decimal, ROUND_UP
from typing import Dict, List, Union

from hrms.exceptions import InvalidInputError
from hrms.models.loans import (
    DeductionFrequency,
    EmployeeDeduction,
    EmployeeLoan,
    RecoveryStatus,
    RecoverySummary,
    SalaryAdvance,
)
from hrms.services.money import MINOR_UNIT, ZERO, as_amount, to_decimal, to_money

logger = logging.getLogger(__name__)

# Standing deductions of these types are reported with the matching recovery
DEDUCTION_BUCKETS = {"loan": "loan_deduction", "advance": "advance_deduction"}


def loan_emi(principal, annual_rate, tenure_months: int) -> Decimal:
    """Equated monthly installment; an interest-free loan is split evenly"""
    principal = as_amount(principal, "loan_amount", positive=True)
    if tenure_months <= 0:
        raise InvalidInputError("tenure_months must be greater than zero", field="tenure_months")
    monthly_rate = as_amount(annual_rate, "interest_rate") / Decimal(1200)
    if monthly_rate == 0:
        return (principal / tenure_months).quantize(MINOR_UNIT, rounding=ROUND_UP)
    growth = (1 + monthly_rate) ** tenure_months
    return to_money(principal * monthly_rate * growth / (growth - 1))


def monthly_recovery(amount, months: int) -> Decimal:
    """Installment that clears an advance in at most `months` payrolls"""
    amount = as_amount(amount, "advance_amount", positive=True)
    if months <= 0:
        raise InvalidInputError("repayment_months must be greater than zero", field="repayment_months")
    return (amount / months).quantize(MINOR_UNIT, rounding=ROUND_UP)


def installment_due(installment, remaining) -> Decimal:
    """This period's installment, never more than what is still owed"""
    return max(min(to_money(to_decimal(installment)), to_money(to_decimal(remaining))), ZERO)


def deduction_is_due(deduction: EmployeeDeduction, start: datetime, end: datetime) -> bool:
    if not deduction.is_active or deduction.effective_from >= end:
        return False
    if deduction.effective_to is not None and deduction.effective_to < start:
        return False

    months_since = (
        (start.year - deduction.effective_from.year) * 12
        + start.month - deduction.effective_from.month
    )
    if deduction.frequency == DeductionFrequency.ONE_TIME:
        return months_since <= 0
    if deduction.frequency == DeductionFrequency.QUARTERLY:
        return months_since % 3 == 0
    if deduction.frequency == DeductionFrequency.YEARLY:
        return months_since % 12 == 0
    return True


async def active_loans(employee_id: str, end: datetime) -> List[EmployeeLoan]:
    return await EmployeeLoan.find(
        EmployeeLoan.employee_id == employee_id,
        EmployeeLoan.status == RecoveryStatus.ACTIVE,
        EmployeeLoan.start_date < end,
    ).sort("+start_date").to_list()


async def active_advances(employee_id: str, end: datetime) -> List[SalaryAdvance]:
    return await SalaryAdvance.find(
        SalaryAdvance.employee_id == employee_id,
        SalaryAdvance.status == RecoveryStatus.ACTIVE,
        SalaryAdvance.approved_date < end,
    ).sort("+approved_date").to_list()


async def period_recoveries(employee_id: str, start: datetime, end: datetime) -> Dict[str, float]:
    """
    Amounts to recover from one employee's pay for the period [start, end).

    Keys match the recovery fields of the payroll work summary.
    """
    totals = {"loan_deduction": ZERO, "advance_deduction": ZERO, "other_deductions": ZERO}

    for loan in await active_loans(employee_id, end):
        totals["loan_deduction"] += installment_due(loan.emi_amount, loan.remaining_amount)
    for advance in await active_advances(employee_id, end):
        totals["advance_deduction"] += installment_due(advance.monthly_deduction, advance.remaining_amount)

    deductions = await EmployeeDeduction.find(EmployeeDeduction.employee_id == employee_id).to_list()
    for deduction in deductions:
        if deduction_is_due(deduction, start, end):
            bucket = DEDUCTION_BUCKETS.get(deduction.deduction_type, "other_deductions")
            totals[bucket] += to_money(to_decimal(deduction.amount))

    return {name: float(amount) for name, amount in totals.items()}


async def _settle(documents: List[Union[EmployeeLoan, SalaryAdvance]], installment_field: str,
                  recovered: Decimal) -> Decimal:
    for document in documents:
        if recovered <= 0:
            break
        amount = min(installment_due(getattr(document, installment_field), document.remaining_amount), recovered)
        document.paid_amount = float(to_money(to_decimal(document.paid_amount) + amount))
        document.remaining_amount = float(to_money(to_decimal(document.remaining_amount) - amount))
        if document.remaining_amount <= 0:
            document.status = RecoveryStatus.CLOSED
        document.updated_at = datetime.utcnow()
        await document.save()
        recovered -= amount
    return recovered


async def settle_recoveries(
    employee_id: str, start: datetime, end: datetime, deductions: Dict[str, float]
) -> None:
    """
    Reduce outstanding balances by what a paid payroll recovered.

    The recorded loan and advance amounts are spread over the active loans
    and advances in the order they were recovered; anything left over came
    from standing deductions and touches no balance.
    """
    loans = await active_loans(employee_id, end)
    await _settle(loans, "emi_amount", to_decimal(deductions.get("loan", 0)))

    advances = await active_advances(employee_id, end)
    await _settle(advances, "monthly_deduction", to_decimal(deductions.get("advance", 0)))

    if loans or advances:
        logger.info(
            "Settled loan and advance recoveries",
            extra={"employee_id": employee_id, "month": start.month, "year": start.year},
        )


async def recovery_summary(employee_id: str) -> RecoverySummary:
    """Outstanding loan and advance balances for the tracker view"""
    loans = await EmployeeLoan.find(
        EmployeeLoan.employee_id == employee_id,
        EmployeeLoan.status == RecoveryStatus.ACTIVE,
    ).to_list()
    advances = await SalaryAdvance.find(
        SalaryAdvance.employee_id == employee_id,
        SalaryAdvance.status == RecoveryStatus.ACTIVE,
    ).to_list()

    return RecoverySummary(
        employee_id=employee_id,
        active_loans=len(loans),
        loan_outstanding=round(sum(l.remaining_amount for l in loans), 2),
        monthly_emi=round(sum(l.emi_amount for l in loans), 2),
        active_advances=len(advances),
        advance_outstanding=round(sum(a.remaining_amount for a in advances), 2),
        monthly_advance_recovery=round(sum(a.monthly_deduction for a in advances), 2),
    )
