"""
Statutory Configuration Service
Financial-year lookup, loading and seeding of statutory rules
"""
import json
import logging
import os
from datetime import datetime
from typing import List, Optional

from hrms.config import settings
from hrms.exceptions import MissingConfigurationError
from hrms.models.tax import StatutoryConfiguration, StatutoryRules

logger = logging.getLogger(__name__)


def financial_year_for(month: int, year: int) -> str:
    """Label of the April-March financial year containing month/year, e.g. 2025-2026"""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    start_month = settings.DEFAULT_FINANCIAL_YEAR_START_MONTH
    start_year = year if month >= start_month else year - 1
    return f"{start_year}-{start_year + 1}"


def bundled_financial_years(config_dir: Optional[str] = None) -> List[str]:
    config_dir = config_dir or settings.STATUTORY_CONFIG_DIR
    if not os.path.isdir(config_dir):
        return []
    return sorted(
        name[: -len(".json")] for name in os.listdir(config_dir) if name.endswith(".json")
    )


def load_bundled_rules(financial_year: str, config_dir: Optional[str] = None) -> StatutoryRules:
    """Read the rules shipped with the application for a financial year"""
    config_dir = config_dir or settings.STATUTORY_CONFIG_DIR
    path = os.path.join(config_dir, f"{financial_year}.json")
    if not os.path.exists(path):
        raise MissingConfigurationError(financial_year)
    with open(path, "r") as f:
        return StatutoryRules.model_validate(json.load(f))


async def get_statutory_rules(financial_year: str) -> StatutoryRules:
    """
    Active statutory rules for a financial year: the configuration store
    first, then the rules bundled with the application.
    """
    record = await StatutoryConfiguration.find_one(
        StatutoryConfiguration.financial_year == financial_year,
        StatutoryConfiguration.is_active == True,
    )
    if record is not None:
        return record.rules

    rules = load_bundled_rules(financial_year)
    logger.warning(
        "Using bundled statutory rules; configuration store has none",
        extra={"financial_year": financial_year},
    )
    return rules


async def save_statutory_rules(
    rules: StatutoryRules, updated_by: Optional[str] = None
) -> StatutoryConfiguration:
    """Create or replace the configuration for rules.financial_year, bumping its version"""
    record = await StatutoryConfiguration.find_one(
        StatutoryConfiguration.financial_year == rules.financial_year
    )
    if record is None:
        rules = rules.model_copy(update={"version": 1})
        record = StatutoryConfiguration(
            financial_year=rules.financial_year,
            rules=rules,
            updated_by=updated_by,
        )
        await record.insert()
    else:
        rules = rules.model_copy(update={"version": record.rules.version + 1})
        record.rules = rules
        record.is_active = True
        record.source = "manual"
        record.updated_at = datetime.utcnow()
        record.updated_by = updated_by
        await record.save()

    logger.info(
        "Saved statutory configuration version %s",
        record.rules.version,
        extra={"financial_year": rules.financial_year},
    )
    return record


async def seed_statutory_configurations(config_dir: Optional[str] = None) -> int:
    """Insert bundled configurations for financial years not yet in the store"""
    created = 0
    for financial_year in bundled_financial_years(config_dir):
        existing = await StatutoryConfiguration.find_one(
            StatutoryConfiguration.financial_year == financial_year
        )
        if existing:
            continue
        rules = load_bundled_rules(financial_year, config_dir)
        await StatutoryConfiguration(
            financial_year=financial_year, rules=rules, source="seed"
        ).insert()
        created += 1
        logger.info("Seeded statutory configuration", extra={"financial_year": financial_year})
    return created
