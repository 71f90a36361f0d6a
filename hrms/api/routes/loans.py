"""
Loan Routes
Employee loans, salary advances and standing payroll deductions
"""
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends, status
from typing import List, Optional

from beanie import PydanticObjectId

from hrms.models.employee import Employee
from hrms.models.loans import (
    AdvanceCreate,
    DeductionCreate,
    EmployeeDeduction,
    EmployeeLoan,
    LoanCreate,
    RecoveryDecision,
    RecoveryStatus,
    RecoverySummary,
    SalaryAdvance,
)
from hrms.api.routes.auth import HR_ROLES, get_current_employee, require_roles
from hrms.services.recoveries import loan_emi, monthly_recovery, recovery_summary

router = APIRouter()


async def resolve_employee_id(requested: Optional[str], current_employee: Employee) -> str:
    """Employees apply for themselves; HR may apply on anyone's behalf"""
    if not requested or requested == current_employee.employee_id:
        return current_employee.employee_id
    if current_employee.role not in HR_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot apply on behalf of another employee"
        )
    if not await Employee.find_one(Employee.employee_id == requested):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    return requested


def apply_decision(item, decision: RecoveryDecision, current_employee: Employee):
    if item.status != RecoveryStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Request already {item.status.value}"
        )
    if decision.status not in (RecoveryStatus.ACTIVE, RecoveryStatus.REJECTED):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Decision must be active or rejected"
        )
    item.status = decision.status
    item.approved_by = current_employee.employee_id
    item.updated_at = datetime.utcnow()


@router.get("/", response_model=List[EmployeeLoan])
async def list_loans(
    employee_id: Optional[str] = None,
    status_filter: Optional[RecoveryStatus] = None,
    current_employee: Employee = Depends(get_current_employee)
):
    """List loans. Employees only see their own."""
    if current_employee.role not in HR_ROLES:
        employee_id = current_employee.employee_id

    query = {}
    if employee_id:
        query["employee_id"] = employee_id
    if status_filter:
        query["status"] = status_filter.value
    return await EmployeeLoan.find(query).sort("-created_at").to_list()


@router.post("/", response_model=EmployeeLoan)
async def apply_for_loan(
    data: LoanCreate,
    current_employee: Employee = Depends(get_current_employee)
):
    employee_id = await resolve_employee_id(data.employee_id, current_employee)
    emi = loan_emi(data.loan_amount, data.interest_rate, data.tenure_months)

    loan = EmployeeLoan(
        **data.model_dump(exclude={"employee_id"}),
        employee_id=employee_id,
        emi_amount=float(emi),
        remaining_amount=float(emi * data.tenure_months),
    )
    await loan.insert()
    return loan


@router.patch("/{loan_id}/decision", response_model=EmployeeLoan)
async def decide_loan(
    loan_id: PydanticObjectId,
    decision: RecoveryDecision,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Approve or reject a pending loan (Admin/HR only)"""
    loan = await EmployeeLoan.get(loan_id)
    if not loan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Loan not found")
    apply_decision(loan, decision, current_employee)
    await loan.save()
    return loan


@router.post("/{loan_id}/close", response_model=EmployeeLoan)
async def close_loan(
    loan_id: PydanticObjectId,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Close a loan settled outside payroll"""
    loan = await EmployeeLoan.get(loan_id)
    if not loan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Loan not found")
    loan.status = RecoveryStatus.CLOSED
    loan.updated_at = datetime.utcnow()
    await loan.save()
    return loan


@router.get("/advances", response_model=List[SalaryAdvance])
async def list_advances(
    employee_id: Optional[str] = None,
    status_filter: Optional[RecoveryStatus] = None,
    current_employee: Employee = Depends(get_current_employee)
):
    if current_employee.role not in HR_ROLES:
        employee_id = current_employee.employee_id

    query = {}
    if employee_id:
        query["employee_id"] = employee_id
    if status_filter:
        query["status"] = status_filter.value
    return await SalaryAdvance.find(query).sort("-request_date").to_list()


@router.post("/advances", response_model=SalaryAdvance)
async def request_advance(
    data: AdvanceCreate,
    current_employee: Employee = Depends(get_current_employee)
):
    employee_id = await resolve_employee_id(data.employee_id, current_employee)
    advance = SalaryAdvance(
        **data.model_dump(exclude={"employee_id"}),
        employee_id=employee_id,
        monthly_deduction=float(monthly_recovery(data.advance_amount, data.repayment_months)),
        remaining_amount=data.advance_amount,
    )
    await advance.insert()
    return advance


@router.patch("/advances/{advance_id}/decision", response_model=SalaryAdvance)
async def decide_advance(
    advance_id: PydanticObjectId,
    decision: RecoveryDecision,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Approve or reject a pending advance; recovery starts with the approval month"""
    advance = await SalaryAdvance.get(advance_id)
    if not advance:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Advance not found")
    apply_decision(advance, decision, current_employee)
    if advance.status == RecoveryStatus.ACTIVE:
        advance.approved_date = datetime.utcnow()
    await advance.save()
    return advance


@router.get("/deductions", response_model=List[EmployeeDeduction])
async def list_deductions(
    employee_id: Optional[str] = None,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    query = {"employee_id": employee_id} if employee_id else {}
    return await EmployeeDeduction.find(query).sort("-created_at").to_list()


@router.post("/deductions", response_model=EmployeeDeduction)
async def create_deduction(
    data: DeductionCreate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Add a standing payroll deduction (Admin/HR only)"""
    if not await Employee.find_one(Employee.employee_id == data.employee_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    if data.effective_to and data.effective_to < data.effective_from:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="effective_to cannot be before effective_from"
        )
    deduction = EmployeeDeduction(**data.model_dump())
    await deduction.insert()
    return deduction


@router.delete("/deductions/{deduction_id}")
async def deactivate_deduction(
    deduction_id: PydanticObjectId,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    deduction = await EmployeeDeduction.get(deduction_id)
    if not deduction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deduction not found")
    deduction.is_active = False
    await deduction.save()
    return {"message": "Deduction deactivated"}


@router.get("/summary/{employee_id}", response_model=RecoverySummary)
async def get_recovery_summary(
    employee_id: str,
    current_employee: Employee = Depends(get_current_employee)
):
    if current_employee.role not in HR_ROLES and current_employee.employee_id != employee_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot view other employee's loans"
        )
    return await recovery_summary(employee_id)
