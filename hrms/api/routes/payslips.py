"""
Payslip Routes
Payslip generation, download and delivery
"""
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.responses import HTMLResponse
from typing import List, Optional

from beanie import PydanticObjectId

from hrms.models.employee import Employee
from hrms.models.organization import CompanySettings
from hrms.models.payslip import GeneratePayslipRequest, Payslip
from hrms.api.routes.auth import HR_ROLES, get_current_employee, require_roles
from hrms.services.email import email_service
from hrms.services.payslips import generate_payslip, render_payslip_html

router = APIRouter()


async def get_payslip_for(payslip_id: PydanticObjectId, current_employee: Employee) -> Payslip:
    payslip = await Payslip.get(payslip_id)
    if not payslip:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payslip not found")
    if current_employee.role not in HR_ROLES and payslip.employee_id != current_employee.employee_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")
    return payslip


@router.post("/generate", response_model=Payslip)
async def create_payslip(
    request: GeneratePayslipRequest,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """
    Generate the payslip for an employee and period (Admin/HR only).
    An already generated payslip is returned unchanged.
    """
    employee = await Employee.find_one(Employee.employee_id == request.employee_id)
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    return await generate_payslip(
        employee, request.month, request.year, generated_by=current_employee.employee_id
    )


@router.get("/my", response_model=List[Payslip])
async def get_my_payslips(current_employee: Employee = Depends(get_current_employee)):
    """Get all payslips for current employee"""
    return await Payslip.find(
        Payslip.employee_id == current_employee.employee_id
    ).sort("-year", "-month").to_list()


@router.get("/all", response_model=List[Payslip])
async def get_all_payslips(
    month: Optional[int] = None,
    year: Optional[int] = None,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    query = {}
    if month:
        query["month"] = month
    if year:
        query["year"] = year
    return await Payslip.find(query).sort("-year", "-month", "employee_id").to_list()


@router.get("/{payslip_id}", response_model=Payslip)
async def get_payslip(
    payslip_id: PydanticObjectId,
    current_employee: Employee = Depends(get_current_employee)
):
    return await get_payslip_for(payslip_id, current_employee)


@router.get("/{payslip_id}/html", response_class=HTMLResponse)
async def download_payslip(
    payslip_id: PydanticObjectId,
    current_employee: Employee = Depends(get_current_employee)
):
    """Printable HTML payslip"""
    payslip = await get_payslip_for(payslip_id, current_employee)
    company = await CompanySettings.find_one()
    return HTMLResponse(
        content=render_payslip_html(payslip, company),
        headers={"Content-Disposition": f'inline; filename="payslip_{payslip.pay_period}.html"'},
    )


@router.post("/{payslip_id}/send")
async def send_payslip(
    payslip_id: PydanticObjectId,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Email the payslip to its employee (Admin/HR only)"""
    payslip = await get_payslip_for(payslip_id, current_employee)
    employee = await Employee.find_one(Employee.employee_id == payslip.employee_id)
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    company = await CompanySettings.find_one()
    sent = await email_service.send_payslip(
        employee, payslip, render_payslip_html(payslip, company)
    )
    if not sent:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to send payslip email"
        )

    payslip.email_sent = True
    payslip.email_sent_at = datetime.utcnow()
    await payslip.save()
    return {"message": f"Payslip sent to {employee.email}"}
