"""
Employee Routes
Employee management endpoints
"""
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends, status
from typing import Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId

from hrms.models.employee import (
    CompensationProfile,
    Employee,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
)
from hrms.models.organization import Department
from hrms.api.routes.auth import HR_ROLES, get_current_employee, get_password_hash, require_roles


router = APIRouter()


async def department_name(department_id: Optional[str]) -> str:
    if not department_id:
        return ""
    try:
        department = await Department.get(PydanticObjectId(department_id))
    except InvalidId:
        department = None
    if not department:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Department not found"
        )
    return department.name


async def get_employee_or_404(employee_id: str) -> Employee:
    employee = await Employee.find_one(Employee.employee_id == employee_id)
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found"
        )
    return employee


@router.post("/", response_model=EmployeeResponse)
async def create_employee(
    employee_data: EmployeeCreate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """
    Create a new employee (Admin/HR only)
    """
    existing = await Employee.find_one(Employee.email == employee_data.email)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    employee_dict = employee_data.model_dump(exclude={"password"})

    # Let nested defaults apply when not supplied
    for field in ("bank_details", "compensation"):
        if employee_dict.get(field) is None:
            employee_dict.pop(field, None)

    employee = Employee(
        **employee_dict,
        department=await department_name(employee_data.department_id),
        password_hash=get_password_hash(employee_data.password),
    )
    await employee.insert()

    return employee


@router.get("/me", response_model=EmployeeResponse)
async def get_my_profile(current_employee: Employee = Depends(get_current_employee)):
    """Get current employee profile"""
    return current_employee


@router.get("/all")
async def get_all_employees(
    department_id: Optional[str] = None,
    status_filter: Optional[str] = None,
    current_employee: Employee = Depends(get_current_employee)
):
    """
    Get all employees (public directory fields)
    """
    query = {}
    if department_id:
        query["department_id"] = department_id
    if status_filter:
        query["status"] = status_filter

    employees = await Employee.find(query).to_list()

    return {
        "total": len(employees),
        "employees": [
            {
                "employee_id": emp.employee_id,
                "name": emp.full_name,
                "email": emp.email,
                "department": emp.department,
                "designation": emp.designation,
                "role": emp.role,
                "status": emp.status,
                "is_active": emp.is_active,
            }
            for emp in employees
        ]
    }


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: str,
    current_employee: Employee = Depends(get_current_employee)
):
    """Get employee by ID"""
    if (current_employee.role not in ["manager", "hr", "admin"] and
            current_employee.employee_id != employee_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot view other employee's details"
        )

    return await get_employee_or_404(employee_id)


@router.put("/{employee_id}")
async def update_employee(
    employee_id: str,
    update_data: EmployeeUpdate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """
    Update an employee's profile (Admin/HR only)
    """
    employee = await get_employee_or_404(employee_id)
    if "department_id" in update_data.model_fields_set:
        employee.department = await department_name(update_data.department_id)
        employee.department_id = update_data.department_id

    for field in update_data.model_fields_set:
        value = getattr(update_data, field)
        if value is not None:
            setattr(employee, field, value)

    employee.updated_at = datetime.utcnow()
    await employee.save()

    return {
        "message": "Employee updated successfully",
        "employee_id": employee.employee_id
    }


@router.put("/{employee_id}/compensation", response_model=EmployeeResponse)
async def update_compensation(
    employee_id: str,
    compensation: CompensationProfile,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """
    Replace an employee's compensation profile (Admin/HR only).
    Allowances sent as null are derived from the allowance policy at payroll time.
    """
    employee = await get_employee_or_404(employee_id)
    employee.compensation = compensation
    employee.updated_at = datetime.utcnow()
    await employee.save()
    return employee


@router.post("/{employee_id}/deactivate")
async def deactivate_employee(
    employee_id: str,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Mark an employee inactive; inactive employees are left out of payroll runs"""
    employee = await get_employee_or_404(employee_id)
    employee.is_active = False
    employee.status = "inactive"
    employee.updated_at = datetime.utcnow()
    await employee.save()
    return {"message": f"Employee {employee_id} deactivated"}
