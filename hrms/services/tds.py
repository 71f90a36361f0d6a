"""
TDS Calculator
Annual income tax under a progressive slab table, collected monthly
"""
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel

from hrms.models.tax import StatutoryRules, TaxDeclarations, TaxSlab
from hrms.services.money import ZERO, as_amount, to_decimal, to_money

MONTHS_PER_YEAR = Decimal(12)


class TdsComputation(BaseModel):
    """Result of one annual TDS computation"""
    financial_year: str
    annual_salary: Decimal
    deduction_breakup: Dict[str, Decimal]
    total_deductions: Decimal
    taxable_income: Decimal
    tax_before_cess: Decimal
    cess: Decimal
    annual_tax: Decimal
    monthly_tds: Decimal
    effective_rate: Decimal


def slab_tax(taxable_income: Decimal, slabs: List[TaxSlab]) -> Decimal:
    """
    Progressive tax on `taxable_income`.

    Each slab taxes only the part of the income that falls inside it, walking
    the slabs in ascending order until the income is used up.
    """
    tax = Decimal(0)
    remaining = taxable_income
    for slab in sorted(slabs, key=lambda s: s.lower):
        if remaining <= 0:
            break
        lower = to_decimal(slab.lower)
        if slab.upper is None:
            portion = remaining
        else:
            portion = min(remaining, to_decimal(slab.upper) - lower)
        tax += portion * to_decimal(slab.rate)
        remaining -= portion
    return tax


def compute_tds(
    annual_salary,
    declarations: Optional[TaxDeclarations],
    rules: StatutoryRules,
    annual_professional_tax: Optional[Decimal] = None,
) -> TdsComputation:
    """
    Compute annual and monthly TDS.

    `annual_professional_tax` is used when the declarations leave professional
    tax unset, which is how the payroll engine passes the annualized amount it
    has just computed.
    """
    declarations = declarations or TaxDeclarations()
    salary = to_money(as_amount(annual_salary, "annual_salary"))

    if declarations.professional_tax is not None:
        professional_tax = as_amount(declarations.professional_tax, "professional_tax")
    else:
        professional_tax = annual_professional_tax or ZERO

    breakup = {
        "section_80c": min(
            as_amount(declarations.section_80c, "section_80c"),
            to_decimal(rules.section_80c_cap),
        ),
        "section_80d": as_amount(declarations.section_80d, "section_80d"),
        "hra_exemption": as_amount(declarations.hra_exemption, "hra_exemption"),
        "professional_tax": professional_tax,
        "other": as_amount(declarations.other, "other"),
    }
    if rules.standard_deduction:
        breakup["standard_deduction"] = to_decimal(rules.standard_deduction)
    breakup = {name: to_money(amount) for name, amount in breakup.items()}

    total_deductions = to_money(sum(breakup.values(), ZERO))
    taxable_income = max(ZERO, salary - total_deductions)

    tax = to_money(slab_tax(taxable_income, rules.tax_slabs))
    cess = to_money(tax * to_decimal(rules.cess_rate))
    annual_tax = tax + cess
    monthly_tds = to_money(annual_tax / MONTHS_PER_YEAR)

    effective_rate = ZERO
    if salary > 0:
        effective_rate = to_money(annual_tax / salary * 100)

    return TdsComputation(
        financial_year=rules.financial_year,
        annual_salary=salary,
        deduction_breakup=breakup,
        total_deductions=total_deductions,
        taxable_income=taxable_income,
        tax_before_cess=tax,
        cess=cess,
        annual_tax=annual_tax,
        monthly_tds=monthly_tds,
        effective_rate=effective_rate,
    )
