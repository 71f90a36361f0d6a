"""
Tests for financial-year lookup and statutory configuration storage.
"""

import pytest
from pydantic import ValidationError

from hrms.exceptions import MissingConfigurationError
from hrms.models.tax import StatutoryConfiguration, StatutoryRules
from hrms.services.statutory import (
    bundled_financial_years,
    financial_year_for,
    get_statutory_rules,
    load_bundled_rules,
    save_statutory_rules,
    seed_statutory_configurations,
)


class TestFinancialYear:

    @pytest.mark.parametrize("month,year,expected", [
        (4, 2025, "2025-2026"),
        (12, 2025, "2025-2026"),
        (1, 2026, "2025-2026"),
        (3, 2026, "2025-2026"),
        (3, 2025, "2024-2025"),
    ])
    def test_april_to_march(self, month, year, expected):
        assert financial_year_for(month, year) == expected

    @pytest.mark.parametrize("month", [0, 13])
    def test_rejects_invalid_month(self, month):
        with pytest.raises(ValueError):
            financial_year_for(month, 2025)


class TestBundledRules:

    def test_bundled_years_are_listed(self):
        assert {"2024-2025", "2025-2026"} <= set(bundled_financial_years())

    def test_load_unknown_year_raises(self):
        with pytest.raises(MissingConfigurationError) as exc_info:
            load_bundled_rules("1999-2000")
        assert exc_info.value.financial_year == "1999-2000"
        assert exc_info.value.code == "missing_configuration"

    def test_bundled_rules_are_valid(self, rules):
        assert rules.financial_year == "2025-2026"
        assert rules.tax_slabs[0].lower == 0
        assert rules.tax_slabs[-1].upper is None
        assert rules.professional_tax_bands[-1].upper is None


class TestRulesValidation:

    def _payload(self, rules, **changes):
        data = rules.model_dump()
        data.update(changes)
        return data

    def test_rejects_gap_between_slabs(self, rules):
        slabs = [
            {"lower": 0, "upper": 300000, "rate": 0},
            {"lower": 400000, "upper": None, "rate": 0.1},
        ]
        with pytest.raises(ValidationError):
            StatutoryRules.model_validate(self._payload(rules, tax_slabs=slabs))

    def test_rejects_closed_top_slab(self, rules):
        slabs = [{"lower": 0, "upper": 300000, "rate": 0}]
        with pytest.raises(ValidationError):
            StatutoryRules.model_validate(self._payload(rules, tax_slabs=slabs))

    def test_rejects_bands_without_open_top(self, rules):
        bands = [{"upper": 15000, "amount": 0}, {"upper": 25000, "amount": 150}]
        with pytest.raises(ValidationError):
            StatutoryRules.model_validate(self._payload(rules, professional_tax_bands=bands))

    def test_rejects_rate_above_one(self, rules):
        with pytest.raises(ValidationError):
            StatutoryRules.model_validate(self._payload(rules, pf_rate=12))


class TestConfigurationStore:

    async def test_seed_inserts_each_bundled_year_once(self, db):
        first = await seed_statutory_configurations()
        second = await seed_statutory_configurations()

        assert first == len(bundled_financial_years())
        assert second == 0
        assert await StatutoryConfiguration.find_all().count() == first

    async def test_stored_rules_take_precedence(self, db, rules):
        await seed_statutory_configurations()
        changed = rules.model_copy(update={"pf_cap": 2000.0})

        record = await save_statutory_rules(changed, updated_by="HR001")
        loaded = await get_statutory_rules("2025-2026")

        assert record.rules.version == 2
        assert record.updated_by == "HR001"
        assert loaded.pf_cap == 2000.0
        assert loaded.version == 2

    async def test_falls_back_to_bundled_rules(self, db):
        loaded = await get_statutory_rules("2024-2025")

        assert loaded.financial_year == "2024-2025"

    async def test_missing_year_raises(self, db):
        with pytest.raises(MissingConfigurationError):
            await get_statutory_rules("2031-2032")

    async def test_save_new_year_starts_at_version_one(self, db, rules):
        future = rules.model_copy(update={"financial_year": "2026-2027", "version": 7})

        record = await save_statutory_rules(future)

        assert record.rules.version == 1
        assert (await get_statutory_rules("2026-2027")).version == 1
        assert (await get_statutory_rules("2026-2027")).financial_year == "2026-2027"
