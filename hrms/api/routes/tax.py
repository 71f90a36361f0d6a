"""
Tax Routes
Statutory configuration per financial year and employee TDS declarations
"""
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, HTTPException, Depends, status

from hrms.exceptions import InvalidInputError
from hrms.models.employee import Employee
from hrms.models.tax import (
    StatutoryRules,
    TdsCalculationRequest,
    TdsDeclaration,
    TdsDeclarationUpdate,
)
from hrms.api.routes.auth import HR_ROLES, get_current_employee, require_roles
from hrms.services.statutory import financial_year_for, get_statutory_rules, save_statutory_rules
from hrms.services.tds import TdsComputation, compute_tds

router = APIRouter()


def computation_response(computation: TdsComputation) -> dict:
    return {
        key: ({k: float(v) for k, v in value.items()} if isinstance(value, dict)
              else float(value) if isinstance(value, Decimal) else value)
        for key, value in computation.model_dump().items()
    }


@router.get("/statutory/{financial_year}", response_model=StatutoryRules)
async def get_statutory_configuration(
    financial_year: str,
    current_employee: Employee = Depends(get_current_employee)
):
    return await get_statutory_rules(financial_year)


@router.put("/statutory/{financial_year}", response_model=StatutoryRules)
async def put_statutory_configuration(
    financial_year: str,
    rules: StatutoryRules,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """
    Replace a financial year's statutory rules (Admin/HR only).
    Each save bumps the configuration version.
    """
    if rules.financial_year != financial_year:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="financial_year in body does not match the URL"
        )
    record = await save_statutory_rules(rules, updated_by=current_employee.employee_id)
    return record.rules


@router.post("/tds/calculate")
async def calculate_tds(
    request: TdsCalculationRequest,
    current_employee: Employee = Depends(get_current_employee)
):
    """Compute annual and monthly TDS without storing anything"""
    now = datetime.utcnow()
    financial_year = request.financial_year or financial_year_for(now.month, now.year)
    rules = await get_statutory_rules(financial_year)
    return computation_response(compute_tds(request.annual_salary, request.declarations, rules))


@router.put("/tds/{employee_id}/{financial_year}", response_model=TdsDeclaration)
async def upsert_tds_declaration(
    employee_id: str,
    financial_year: str,
    data: TdsDeclarationUpdate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """
    Store an employee's declarations for a financial year with the computed tax
    """
    employee = await Employee.find_one(Employee.employee_id == employee_id)
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    rules = await get_statutory_rules(financial_year)
    annual_salary = data.annual_salary
    if annual_salary is None:
        if not employee.compensation.base_salary:
            raise InvalidInputError("annual_salary is required", field="annual_salary")
        annual_salary = employee.compensation.base_salary * 12
    computation = compute_tds(annual_salary, data.declarations, rules)

    declaration = await TdsDeclaration.find_one(
        TdsDeclaration.employee_id == employee_id,
        TdsDeclaration.financial_year == financial_year,
    )
    if declaration is None:
        declaration = TdsDeclaration(employee_id=employee_id, financial_year=financial_year)

    declaration.declarations = data.declarations
    declaration.annual_salary = float(computation.annual_salary)
    declaration.total_deductions = float(computation.total_deductions)
    declaration.taxable_income = float(computation.taxable_income)
    declaration.annual_tax = float(computation.annual_tax)
    declaration.monthly_tds = float(computation.monthly_tds)
    declaration.deduction_breakup = {k: float(v) for k, v in computation.deduction_breakup.items()}
    declaration.is_active = True
    declaration.updated_at = datetime.utcnow()
    await declaration.save()
    return declaration


@router.get("/tds/{employee_id}/{financial_year}", response_model=TdsDeclaration)
async def get_tds_declaration(
    employee_id: str,
    financial_year: str,
    current_employee: Employee = Depends(get_current_employee)
):
    if current_employee.role not in HR_ROLES and current_employee.employee_id != employee_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot view other employee's tax details"
        )
    declaration = await TdsDeclaration.find_one(
        TdsDeclaration.employee_id == employee_id,
        TdsDeclaration.financial_year == financial_year,
    )
    if not declaration:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="TDS declaration not found")
    return declaration
