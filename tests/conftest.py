"""
Pytest fixtures shared by the payroll test suite.

Database-backed tests run against an in-memory MongoDB (mongomock-motor)
initialized with the application's Beanie document models.
"""

from datetime import datetime
from unittest.mock import Mock

import pytest
from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient

from hrms.models.employee import CompensationProfile, Employee
from hrms.services.statutory import load_bundled_rules
from main import DOCUMENT_MODELS


@pytest.fixture
def rules():
    """Bundled statutory rules for FY 2025-2026."""
    return load_bundled_rules("2025-2026")


@pytest.fixture
def standard_profile():
    """Base salary only; every allowance comes from the defaults policy."""
    return CompensationProfile(base_salary=50000)


@pytest.fixture
async def db():
    """Fresh in-memory database with all document models initialized."""
    client = AsyncMongoMockClient()
    database = client["hrms_test"]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    yield database


@pytest.fixture
def employee_factory(db):
    """Create and insert active employees."""

    async def create(employee_id: str, base_salary: float = 50000, **overrides) -> Employee:
        fields = dict(
            employee_id=employee_id,
            first_name="Test",
            last_name=employee_id,
            email=f"{employee_id.lower()}@company.com",
            designation="Engineer",
            department="Engineering",
            joining_date=datetime(2022, 4, 1),
            password_hash="not-a-real-hash",
            compensation=CompensationProfile(base_salary=base_salary),
        )
        fields.update(overrides)
        employee = Employee(**fields)
        await employee.insert()
        return employee

    return create


@pytest.fixture
def hr_user():
    """Authenticated HR user stand-in for route tests."""
    user = Mock()
    user.employee_id = "HR001"
    user.role = "hr"
    user.full_name = "Harini Rao"
    return user


@pytest.fixture
def staff_user():
    """Authenticated non-HR employee stand-in for route tests."""
    user = Mock()
    user.employee_id = "EMP001"
    user.role = "employee"
    user.full_name = "Asha Rao"
    return user
