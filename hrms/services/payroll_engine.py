"""
Payroll Computation Engine
Pure, deterministic transformation from a compensation profile and a
worked-time summary into an itemized payroll breakdown.

Every money value is rounded to the minor unit as soon as it is produced,
so persisted totals reconcile exactly with their itemization.
"""
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel

from hrms.models.employee import CompensationProfile
from hrms.models.tax import (
    AllowancePolicy,
    ProfessionalTaxBand,
    StatutoryRules,
    TaxDeclarations,
)
from hrms.services.money import MINOR_UNIT, ZERO, as_amount, to_decimal, to_money
from hrms.services.tds import TdsComputation, compute_tds

ANNUALIZATION_FACTOR = Decimal(12)


class WorkSummary(BaseModel):
    """Worked-time summary for one pay period"""
    overtime_hours: float = 0.0
    standard_working_days: Optional[int] = None
    days_present: Optional[float] = None

    # Recoveries against loans and salary advances
    loan_deduction: float = 0.0
    advance_deduction: float = 0.0
    other_deductions: float = 0.0


class ResolvedCompensation(BaseModel):
    """Compensation profile with every allowance filled in"""
    base_salary: Decimal
    hra: Decimal
    conveyance: Decimal
    medical: Decimal
    special_allowance: Decimal

    def allowances(self) -> Dict[str, Decimal]:
        return {
            "hra": self.hra,
            "conveyance": self.conveyance,
            "medical": self.medical,
            "special_allowance": self.special_allowance,
        }


class PayrollBreakdown(BaseModel):
    """Itemized payroll for one employee and pay period"""
    financial_year: str
    config_version: int
    base_salary: Decimal
    allowances: Dict[str, Decimal]
    hourly_rate: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    deductions: Dict[str, Decimal]
    employer_contributions: Dict[str, Decimal]
    esi_eligible: bool
    total_deductions: Decimal
    net_pay: Decimal
    tds: TdsComputation

    # Informational only; absence does not reduce pay
    standard_working_days: int
    days_present: Optional[Decimal] = None

    def reconciles(self) -> bool:
        earned = self.base_salary + sum(self.allowances.values(), ZERO) + self.overtime_pay
        deducted = sum(self.deductions.values(), ZERO)
        return (
            self.gross_pay == earned
            and self.total_deductions == deducted
            and self.net_pay == self.gross_pay - deducted
        )

    def amounts(self) -> Dict[str, object]:
        """Float view of the breakdown for persistence"""
        return {
            "financial_year": self.financial_year,
            "config_version": self.config_version,
            "base_salary": float(self.base_salary),
            "allowances": {k: float(v) for k, v in self.allowances.items()},
            "overtime_hours": float(self.overtime_hours),
            "overtime_pay": float(self.overtime_pay),
            "gross_pay": float(self.gross_pay),
            "deductions": {k: float(v) for k, v in self.deductions.items()},
            "employer_contributions": {
                k: float(v) for k, v in self.employer_contributions.items()
            },
            "esi_eligible": self.esi_eligible,
            "total_deductions": float(self.total_deductions),
            "net_pay": float(self.net_pay),
            "standard_working_days": self.standard_working_days,
            "days_present": float(self.days_present) if self.days_present is not None else None,
        }


def resolve_compensation(
    profile: CompensationProfile, policy: AllowancePolicy
) -> ResolvedCompensation:
    """Apply the allowance defaults policy to a raw compensation profile"""
    base = to_money(as_amount(profile.base_salary, "base_salary", positive=True))

    def pick(value, field: str, default: Decimal) -> Decimal:
        if value is None:
            return to_money(default)
        return to_money(as_amount(value, field))

    return ResolvedCompensation(
        base_salary=base,
        hra=pick(profile.hra, "hra", base * to_decimal(policy.hra_rate)),
        conveyance=pick(profile.conveyance, "conveyance", to_decimal(policy.default_conveyance)),
        medical=pick(profile.medical, "medical", to_decimal(policy.default_medical)),
        special_allowance=pick(
            profile.special_allowance,
            "special_allowance",
            base * to_decimal(policy.special_allowance_rate),
        ),
    )


def provident_fund(base_salary: Decimal, rules: StatutoryRules) -> Decimal:
    return to_money(min(base_salary * to_decimal(rules.pf_rate), to_decimal(rules.pf_cap)))


def is_esi_eligible(gross_pay: Decimal, rules: StatutoryRules) -> bool:
    return gross_pay <= to_decimal(rules.esi_threshold)


def esi_contribution(gross_pay: Decimal, rate) -> Decimal:
    """ESI at the given rate; a covered, non-zero contribution is at least one paise"""
    rate = to_decimal(rate)
    if gross_pay <= 0 or rate <= 0:
        return ZERO
    return max(to_money(gross_pay * rate), MINOR_UNIT)


def professional_tax(monthly_gross: Decimal, bands: List[ProfessionalTaxBand]) -> Decimal:
    for band in bands:
        if band.upper is None or monthly_gross <= to_decimal(band.upper):
            return to_money(to_decimal(band.amount))
    return ZERO


def compute_payroll(
    profile: CompensationProfile,
    summary: WorkSummary,
    rules: StatutoryRules,
    declarations: Optional[TaxDeclarations] = None,
) -> PayrollBreakdown:
    """
    Compute gross pay, statutory deductions and net pay for one period.

    Raises InvalidInputError for a non-positive or non-finite base salary and
    for negative or non-finite overrides, hours or recoveries.
    """
    pay = resolve_compensation(profile, rules.allowance_policy)
    overtime_hours = as_amount(summary.overtime_hours, "overtime_hours")

    working_days = summary.standard_working_days or rules.standard_working_days_per_month
    standard_hours = Decimal(rules.standard_working_days_per_month) * to_decimal(
        rules.standard_hours_per_day
    )
    hourly_rate = to_money(pay.base_salary / standard_hours)
    overtime_pay = to_money(
        overtime_hours * hourly_rate * to_decimal(rules.overtime_multiplier)
    )

    allowances = pay.allowances()
    gross_pay = to_money(pay.base_salary + sum(allowances.values(), ZERO) + overtime_pay)

    pf = provident_fund(pay.base_salary, rules)

    esi_eligible = is_esi_eligible(gross_pay, rules)
    esi = employer_esi = ZERO
    if esi_eligible:
        esi = esi_contribution(gross_pay, rules.esi_employee_rate)
        employer_esi = esi_contribution(gross_pay, rules.esi_employer_rate)

    pt = professional_tax(gross_pay, rules.professional_tax_bands)

    tds = compute_tds(
        gross_pay * ANNUALIZATION_FACTOR,
        declarations,
        rules,
        annual_professional_tax=pt * ANNUALIZATION_FACTOR,
    )

    deductions = {
        "pf": pf,
        "esi": esi,
        "professional_tax": pt,
        "tds": tds.monthly_tds,
    }
    recoveries = {
        "loan": summary.loan_deduction,
        "advance": summary.advance_deduction,
        "other": summary.other_deductions,
    }
    for name, value in recoveries.items():
        amount = to_money(as_amount(value, f"{name}_deduction"))
        if amount:
            deductions[name] = amount

    total_deductions = sum(deductions.values(), ZERO)
    net_pay = gross_pay - total_deductions

    days_present = None
    if summary.days_present is not None:
        days_present = as_amount(summary.days_present, "days_present")

    return PayrollBreakdown(
        financial_year=rules.financial_year,
        config_version=rules.version,
        base_salary=pay.base_salary,
        allowances=allowances,
        hourly_rate=hourly_rate,
        overtime_hours=overtime_hours,
        overtime_pay=overtime_pay,
        gross_pay=gross_pay,
        deductions=deductions,
        employer_contributions={"pf": pf, "esi": employer_esi},
        esi_eligible=esi_eligible,
        total_deductions=total_deductions,
        net_pay=net_pay,
        tds=tds,
        standard_working_days=working_days,
        days_present=days_present,
    )
