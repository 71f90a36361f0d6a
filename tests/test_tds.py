"""
Tests for the TDS calculator.
"""

from decimal import Decimal

import pytest

from hrms.exceptions import InvalidInputError
from hrms.models.tax import TaxDeclarations
from hrms.services.tds import compute_tds, slab_tax


class TestSlabTax:

    @pytest.mark.parametrize("taxable,expected", [
        ("0", "0"),
        ("300000", "0"),
        ("700000", "20000"),
        ("1000000", "50000"),
        ("1200000", "80000"),
        ("1500000", "140000"),
        ("2000000", "290000"),
    ])
    def test_progressive_slabs(self, rules, taxable, expected):
        assert slab_tax(Decimal(taxable), rules.tax_slabs) == Decimal(expected)

    def test_tax_never_decreases_as_income_grows(self, rules):
        previous = Decimal(0)
        for income in range(0, 2_500_001, 50_000):
            tax = slab_tax(Decimal(income), rules.tax_slabs)
            assert tax >= previous
            previous = tax


class TestComputeTds:

    def test_annual_and_monthly_tax_with_cess(self, rules):
        result = compute_tds(960000, TaxDeclarations(professional_tax=2400), rules)

        assert result.taxable_income == Decimal("957600.00")
        assert result.tax_before_cess == Decimal("45760.00")
        assert result.cess == Decimal("1830.40")
        assert result.annual_tax == Decimal("47590.40")
        assert result.monthly_tds == Decimal("3965.87")

    def test_section_80c_is_capped(self, rules):
        result = compute_tds(1200000, TaxDeclarations(section_80c=500000), rules)

        assert result.deduction_breakup["section_80c"] == Decimal("150000.00")
        assert result.total_deductions == Decimal("150000.00")
        assert result.taxable_income == Decimal("1050000.00")

    def test_deductions_above_salary_leave_zero_taxable(self, rules):
        result = compute_tds(100000, TaxDeclarations(hra_exemption=150000), rules)

        assert result.taxable_income == Decimal("0")
        assert result.annual_tax == Decimal("0.00")
        assert result.monthly_tds == Decimal("0.00")

    def test_declared_professional_tax_overrides_annualized(self, rules):
        result = compute_tds(
            960000,
            TaxDeclarations(professional_tax=1000),
            rules,
            annual_professional_tax=Decimal("2400"),
        )

        assert result.deduction_breakup["professional_tax"] == Decimal("1000.00")

    def test_standard_deduction_from_rules(self, rules):
        with_deduction = rules.model_copy(update={"standard_deduction": 50000})

        result = compute_tds(960000, None, with_deduction)

        assert result.deduction_breakup["standard_deduction"] == Decimal("50000.00")
        assert result.taxable_income == Decimal("910000.00")

    def test_effective_rate_is_a_percentage(self, rules):
        result = compute_tds(960000, TaxDeclarations(professional_tax=2400), rules)

        assert result.effective_rate == Decimal("4.96")

    @pytest.mark.parametrize("annual_salary", [-1, float("nan"), "abc", True])
    def test_rejects_invalid_salary(self, rules, annual_salary):
        with pytest.raises(InvalidInputError):
            compute_tds(annual_salary, None, rules)

    def test_rejects_negative_declaration(self, rules):
        with pytest.raises(InvalidInputError) as exc_info:
            compute_tds(500000, TaxDeclarations(section_80d=-5), rules)
        assert exc_info.value.field == "section_80d"
