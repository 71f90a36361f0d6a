"""
Organization Routes
Department management and company settings
"""
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends, status
from typing import List

from beanie import PydanticObjectId

from hrms.models.employee import Employee
from hrms.models.organization import CompanySettings, Department, DepartmentCreate, DepartmentUpdate
from hrms.api.routes.auth import HR_ROLES, get_current_employee, require_roles

router = APIRouter()


async def get_department_or_404(department_id: PydanticObjectId) -> Department:
    department = await Department.get(department_id)
    if not department:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department not found")
    return department


@router.get("/departments", response_model=List[Department])
async def list_departments(current_employee: Employee = Depends(get_current_employee)):
    return await Department.find_all().sort("name").to_list()


@router.post("/departments", response_model=Department)
async def create_department(
    data: DepartmentCreate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Create a department (Admin/HR only)"""
    department = Department(**data.model_dump())
    await department.insert()
    return department


@router.put("/departments/{department_id}", response_model=Department)
async def update_department(
    department_id: PydanticObjectId,
    data: DepartmentUpdate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    department = await get_department_or_404(department_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(department, field, value)
    await department.save()

    # Keep the denormalized name on employees in step
    if data.name:
        await Employee.find(Employee.department_id == str(department_id)).update(
            {"$set": {"department": data.name}}
        )
    return department


@router.delete("/departments/{department_id}")
async def delete_department(
    department_id: PydanticObjectId,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Delete a department that no employee belongs to"""
    department = await get_department_or_404(department_id)
    members = await Employee.find(Employee.department_id == str(department_id)).count()
    if members:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Department still has {members} employees"
        )
    await department.delete()
    return {"message": "Department deleted"}


@router.get("/company", response_model=CompanySettings)
async def get_company_settings():
    """Get company settings"""
    company = await CompanySettings.find_one()
    return company or CompanySettings()


@router.put("/company", response_model=CompanySettings)
async def update_company_settings(
    data: CompanySettings,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Update company details printed on payslips (Admin/HR only)"""
    company = await CompanySettings.find_one() or CompanySettings()
    company.name = data.name
    company.address = data.address
    company.logo_url = data.logo_url
    company.phone = data.phone
    company.email = data.email
    company.currency_symbol = data.currency_symbol
    company.updated_at = datetime.utcnow()
    company.updated_by = current_employee.employee_id

    if company.id:
        await company.save()
    else:
        await company.insert()
    return company
