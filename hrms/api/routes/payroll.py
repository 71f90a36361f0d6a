"""
Payroll Routes
Payroll runs, payroll records and what-if computation
"""
from fastapi import APIRouter, HTTPException, Depends, status
from typing import List, Optional
from pydantic import BaseModel, Field

from hrms.models.employee import CompensationProfile, Employee
from hrms.models.payroll import (
    BatchResult,
    PayrollRecord,
    PayrollStatusUpdate,
    ProcessPayrollRequest,
)
from hrms.models.tax import TaxDeclarations
from hrms.api.routes.auth import HR_ROLES, get_current_employee, require_roles
from hrms.services.payroll_engine import PayrollBreakdown, WorkSummary, compute_payroll
from hrms.services.payroll_processing import (
    find_payroll_record,
    process_payroll,
    update_payroll_status,
)
from hrms.services.statutory import financial_year_for, get_statutory_rules

router = APIRouter()


class PayrollPreviewRequest(BaseModel):
    """What-if computation input; nothing is persisted"""
    compensation: CompensationProfile
    work: WorkSummary = Field(default_factory=WorkSummary)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000)
    declarations: Optional[TaxDeclarations] = None


def breakdown_response(breakdown: PayrollBreakdown) -> dict:
    response = breakdown.amounts()
    response["hourly_rate"] = float(breakdown.hourly_rate)
    response["tds"] = {
        "annual_salary": float(breakdown.tds.annual_salary),
        "deduction_breakup": {k: float(v) for k, v in breakdown.tds.deduction_breakup.items()},
        "total_deductions": float(breakdown.tds.total_deductions),
        "taxable_income": float(breakdown.tds.taxable_income),
        "tax_before_cess": float(breakdown.tds.tax_before_cess),
        "cess": float(breakdown.tds.cess),
        "annual_tax": float(breakdown.tds.annual_tax),
        "monthly_tds": float(breakdown.tds.monthly_tds),
        "effective_rate": float(breakdown.tds.effective_rate),
    }
    return response


@router.post("/process", response_model=BatchResult)
async def run_payroll(
    request: ProcessPayrollRequest,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """
    Process payroll for a period (Admin/HR only).
    Rerunning a period replaces each employee's previous computation.
    """
    return await process_payroll(
        request.month,
        request.year,
        employee_ids=request.employee_ids,
        processed_by=current_employee.employee_id,
    )


@router.post("/preview")
async def preview_payroll(
    request: PayrollPreviewRequest,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Compute a payroll breakdown without storing it"""
    rules = await get_statutory_rules(financial_year_for(request.month, request.year))
    breakdown = compute_payroll(request.compensation, request.work, rules, request.declarations)
    return breakdown_response(breakdown)


@router.get("/", response_model=List[PayrollRecord])
async def list_payroll(
    month: Optional[int] = None,
    year: Optional[int] = None,
    employee_id: Optional[str] = None,
    current_employee: Employee = Depends(get_current_employee)
):
    """
    List payroll records. Employees only see their own.
    """
    if current_employee.role not in HR_ROLES:
        employee_id = current_employee.employee_id

    query = {}
    if month:
        query["month"] = month
    if year:
        query["year"] = year
    if employee_id:
        query["employee_id"] = employee_id

    return await PayrollRecord.find(query).sort("-year", "-month", "employee_id").to_list()


async def get_record_or_404(employee_id: str, year: int, month: int) -> PayrollRecord:
    record = await find_payroll_record(employee_id, month, year)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payroll record not found"
        )
    return record


@router.get("/{employee_id}/{year}/{month}", response_model=PayrollRecord)
async def get_payroll_record(
    employee_id: str,
    year: int,
    month: int,
    current_employee: Employee = Depends(get_current_employee)
):
    if current_employee.role not in HR_ROLES and current_employee.employee_id != employee_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot view other employee's payroll"
        )
    return await get_record_or_404(employee_id, year, month)


@router.patch("/{employee_id}/{year}/{month}/status", response_model=PayrollRecord)
async def set_payroll_status(
    employee_id: str,
    year: int,
    month: int,
    data: PayrollStatusUpdate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Move a payroll record forward, e.g. processed -> paid"""
    record = await get_record_or_404(employee_id, year, month)
    return await update_payroll_status(record, data.status)
