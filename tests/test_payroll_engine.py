"""
Tests for the payroll computation engine.

Covers allowance resolution, overtime, statutory deductions and the
gross/net reconciliation of every breakdown.
"""

from decimal import Decimal

import pytest

from hrms.exceptions import InvalidInputError
from hrms.models.employee import CompensationProfile
from hrms.models.tax import TaxDeclarations
from hrms.services.payroll_engine import (
    WorkSummary,
    compute_payroll,
    is_esi_eligible,
    professional_tax,
    provident_fund,
    resolve_compensation,
)


class TestResolveCompensation:
    """Allowance defaults and overrides."""

    def test_defaults_applied_to_missing_allowances(self, standard_profile, rules):
        pay = resolve_compensation(standard_profile, rules.allowance_policy)

        assert pay.base_salary == Decimal("50000.00")
        assert pay.hra == Decimal("20000.00")
        assert pay.conveyance == Decimal("1500.00")
        assert pay.medical == Decimal("1000.00")
        assert pay.special_allowance == Decimal("7500.00")

    def test_explicit_overrides_win_including_zero(self, rules):
        profile = CompensationProfile(base_salary=40000, hra=10000, conveyance=0)
        pay = resolve_compensation(profile, rules.allowance_policy)

        assert pay.hra == Decimal("10000.00")
        assert pay.conveyance == Decimal("0.00")
        assert pay.medical == Decimal("1000.00")
        assert pay.special_allowance == Decimal("6000.00")

    @pytest.mark.parametrize("base_salary", [0, -100, float("nan"), float("inf")])
    def test_rejects_invalid_base_salary(self, rules, base_salary):
        profile = CompensationProfile(base_salary=base_salary)

        with pytest.raises(InvalidInputError) as exc_info:
            resolve_compensation(profile, rules.allowance_policy)
        assert exc_info.value.field == "base_salary"

    def test_rejects_negative_override(self, rules):
        profile = CompensationProfile(base_salary=40000, medical=-1)

        with pytest.raises(InvalidInputError) as exc_info:
            resolve_compensation(profile, rules.allowance_policy)
        assert exc_info.value.field == "medical"


class TestComputePayroll:
    """End-to-end monthly computation."""

    def test_standard_month_without_overtime(self, standard_profile, rules):
        breakdown = compute_payroll(standard_profile, WorkSummary(), rules)

        assert breakdown.allowances == {
            "hra": Decimal("20000.00"),
            "conveyance": Decimal("1500.00"),
            "medical": Decimal("1000.00"),
            "special_allowance": Decimal("7500.00"),
        }
        assert breakdown.overtime_pay == Decimal("0.00")
        assert breakdown.gross_pay == Decimal("80000.00")
        assert breakdown.deductions["pf"] == Decimal("1800.00")
        assert breakdown.deductions["esi"] == Decimal("0.00")
        assert breakdown.deductions["professional_tax"] == Decimal("200.00")
        assert breakdown.deductions["tds"] == Decimal("3965.87")
        assert breakdown.total_deductions == Decimal("5965.87")
        assert breakdown.net_pay == Decimal("74034.13")
        assert breakdown.esi_eligible is False
        assert breakdown.reconciles()

    def test_tds_uses_annualized_gross_and_professional_tax(self, standard_profile, rules):
        breakdown = compute_payroll(standard_profile, WorkSummary(), rules)

        assert breakdown.tds.annual_salary == Decimal("960000.00")
        assert breakdown.tds.deduction_breakup["professional_tax"] == Decimal("2400.00")
        assert breakdown.tds.taxable_income == Decimal("957600.00")
        assert breakdown.tds.annual_tax == Decimal("47590.40")

    def test_overtime_pay_uses_hourly_rate_and_multiplier(self, standard_profile, rules):
        breakdown = compute_payroll(standard_profile, WorkSummary(overtime_hours=10), rules)

        # 50000 / (22 * 8) = 284.09 per hour
        assert breakdown.hourly_rate == Decimal("284.09")
        assert breakdown.overtime_pay == Decimal("4261.35")
        assert breakdown.gross_pay == Decimal("84261.35")
        assert breakdown.reconciles()

    def test_low_salary_is_esi_eligible(self, rules):
        profile = CompensationProfile(base_salary=10000)
        breakdown = compute_payroll(profile, WorkSummary(), rules)

        assert breakdown.gross_pay == Decimal("18000.00")
        assert breakdown.esi_eligible is True
        assert breakdown.deductions["pf"] == Decimal("1200.00")
        assert breakdown.deductions["esi"] == Decimal("135.00")
        assert breakdown.employer_contributions["esi"] == Decimal("585.00")
        assert breakdown.deductions["professional_tax"] == Decimal("150.00")
        assert breakdown.deductions["tds"] == Decimal("0.00")
        assert breakdown.net_pay == Decimal("16515.00")

    def test_recoveries_are_itemized_only_when_present(self, standard_profile, rules):
        plain = compute_payroll(standard_profile, WorkSummary(), rules)
        assert "loan" not in plain.deductions

        summary = WorkSummary(loan_deduction=2500, advance_deduction=1000)
        breakdown = compute_payroll(standard_profile, summary, rules)

        assert breakdown.deductions["loan"] == Decimal("2500.00")
        assert breakdown.deductions["advance"] == Decimal("1000.00")
        assert "other" not in breakdown.deductions
        assert breakdown.net_pay == plain.net_pay - Decimal("3500.00")
        assert breakdown.reconciles()

    def test_declarations_reduce_tds(self, standard_profile, rules):
        declarations = TaxDeclarations(section_80c=200000, section_80d=25000)
        breakdown = compute_payroll(standard_profile, WorkSummary(), rules, declarations)

        # 80C is capped at 150000
        assert breakdown.tds.deduction_breakup["section_80c"] == Decimal("150000.00")
        assert breakdown.tds.taxable_income == Decimal("782600.00")
        assert breakdown.deductions["tds"] < Decimal("3965.87")

    def test_rejects_negative_overtime(self, standard_profile, rules):
        with pytest.raises(InvalidInputError) as exc_info:
            compute_payroll(standard_profile, WorkSummary(overtime_hours=-1), rules)
        assert exc_info.value.field == "overtime_hours"

    def test_same_inputs_give_same_breakdown(self, standard_profile, rules):
        summary = WorkSummary(overtime_hours=3.5)

        first = compute_payroll(standard_profile, summary, rules)
        second = compute_payroll(standard_profile, summary, rules)

        assert first == second

    @pytest.mark.parametrize("base_salary", [9000, 15000, 23456.78, 50000, 123456.79])
    def test_every_breakdown_reconciles(self, rules, base_salary):
        profile = CompensationProfile(base_salary=base_salary)
        breakdown = compute_payroll(profile, WorkSummary(overtime_hours=7.25), rules)

        assert breakdown.reconciles()
        assert breakdown.net_pay == breakdown.gross_pay - sum(breakdown.deductions.values())


class TestStatutoryComponents:
    """PF cap, ESI threshold and professional tax bands."""

    def test_provident_fund_is_capped(self, rules):
        assert provident_fund(Decimal("10000.00"), rules) == Decimal("1200.00")
        assert provident_fund(Decimal("15000.00"), rules) == Decimal("1800.00")
        assert provident_fund(Decimal("90000.00"), rules) == Decimal("1800.00")

    def test_esi_threshold_is_inclusive(self, rules):
        assert is_esi_eligible(Decimal("21000.00"), rules) is True
        assert is_esi_eligible(Decimal("21000.01"), rules) is False

    def test_esi_boundary_through_compute(self, rules):
        at_threshold = CompensationProfile(
            base_salary=10000, hra=0, conveyance=0, medical=0, special_allowance=11000
        )
        above = at_threshold.model_copy(update={"special_allowance": 11000.01})

        assert compute_payroll(at_threshold, WorkSummary(), rules).deductions["esi"] == Decimal("157.50")
        assert compute_payroll(above, WorkSummary(), rules).deductions["esi"] == Decimal("0.00")

    def test_covered_esi_is_at_least_one_paise(self, rules):
        profile = CompensationProfile(
            base_salary=0.01, hra=0, conveyance=0, medical=0, special_allowance=0
        )
        breakdown = compute_payroll(profile, WorkSummary(), rules)

        assert breakdown.gross_pay == Decimal("0.01")
        assert breakdown.esi_eligible is True
        assert breakdown.deductions["esi"] == Decimal("0.01")
        assert breakdown.employer_contributions["esi"] == Decimal("0.01")
        assert breakdown.net_pay == Decimal("0.00")
        assert breakdown.reconciles()

    def test_zero_esi_rate_contributes_nothing(self, rules):
        no_esi = rules.model_copy(update={"esi_employee_rate": 0.0})
        breakdown = compute_payroll(CompensationProfile(base_salary=10000), WorkSummary(), no_esi)

        assert breakdown.esi_eligible is True
        assert breakdown.deductions["esi"] == Decimal("0.00")
        assert breakdown.employer_contributions["esi"] == Decimal("585.00")

    @pytest.mark.parametrize("gross,expected", [
        ("0.00", "0.00"),
        ("15000.00", "0.00"),
        ("15000.01", "150.00"),
        ("25000.00", "150.00"),
        ("25000.01", "200.00"),
        ("500000.00", "200.00"),
    ])
    def test_professional_tax_bands(self, rules, gross, expected):
        assert professional_tax(Decimal(gross), rules.professional_tax_bands) == Decimal(expected)
