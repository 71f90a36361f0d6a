"""
Employee Model
Database schema for employee data
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from beanie import Document, PydanticObjectId


class Address(BaseModel):
    """Employee address"""
    street: str
    city: str
    state: str
    postal_code: str
    country: str = "India"


class EmergencyContact(BaseModel):
    """Emergency contact information"""
    name: str
    relationship: str
    phone: str
    email: Optional[EmailStr] = None


class BankDetails(BaseModel):
    """Employee bank and statutory account details"""
    account_number: str = ""
    bank_name: str = ""
    ifsc_code: str = ""
    pan_number: str = ""
    uan_number: str = ""
    pf_number: str = ""
    esi_number: str = ""
    payment_mode: str = "Bank Transfer"


class CompensationProfile(BaseModel):
    """
    Monthly compensation.

    Allowances left as None are derived from the financial year's allowance
    policy when payroll is computed.
    """
    base_salary: float = 0.0
    hra: Optional[float] = None
    conveyance: Optional[float] = None
    medical: Optional[float] = None
    special_allowance: Optional[float] = None


class Employee(Document):
    """Employee document model"""

    # Basic Information
    employee_id: str = Field(..., unique=True, index=True)
    first_name: str
    last_name: str
    email: EmailStr = Field(..., unique=True, index=True)
    phone: str = ""
    date_of_birth: Optional[datetime] = None
    gender: Optional[str] = None  # Male, Female, Other

    # Employment Details
    department_id: Optional[str] = None
    department: str = ""  # denormalized department name
    designation: str
    role: str = "employee"  # employee, manager, hr, admin
    joining_date: datetime
    employment_type: str = "permanent"  # permanent, contract, intern
    status: str = "active"  # active, inactive, terminated
    reporting_manager: Optional[str] = None  # Employee ID of manager
    shift_id: Optional[str] = None
    overtime_eligible: bool = False

    address: Optional[Address] = None
    emergency_contact: Optional[EmergencyContact] = None

    # Authentication
    password_hash: str
    is_active: bool = True

    # Payroll
    bank_details: BankDetails = Field(default_factory=BankDetails)
    compensation: CompensationProfile = Field(default_factory=CompensationProfile)

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    last_login: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    class Settings:
        name = "employees"
        indexes = [
            "employee_id",
            "email",
            "department_id",
            "status",
        ]

    class Config:
        json_schema_extra = {
            "example": {
                "employee_id": "EMP001",
                "first_name": "Asha",
                "last_name": "Rao",
                "email": "asha.rao@company.com",
                "phone": "+91-9876543210",
                "designation": "Senior Developer",
                "role": "employee",
                "joining_date": "2022-04-01",
                "compensation": {"base_salary": 50000},
            }
        }


class EmployeeCreate(BaseModel):
    """Schema for creating a new employee"""
    employee_id: str
    first_name: str
    last_name: str
    email: EmailStr
    phone: str = ""
    date_of_birth: Optional[datetime] = None
    gender: Optional[str] = None
    department_id: Optional[str] = None
    designation: str
    role: str = "employee"
    joining_date: datetime
    employment_type: str = "permanent"
    reporting_manager: Optional[str] = None
    shift_id: Optional[str] = None
    overtime_eligible: bool = False
    address: Optional[Address] = None
    emergency_contact: Optional[EmergencyContact] = None
    password: str
    bank_details: Optional[BankDetails] = None
    compensation: Optional[CompensationProfile] = None


class EmployeeUpdate(BaseModel):
    """Schema for updating employee information"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    department_id: Optional[str] = None
    designation: Optional[str] = None
    role: Optional[str] = None
    employment_type: Optional[str] = None
    status: Optional[str] = None
    reporting_manager: Optional[str] = None
    shift_id: Optional[str] = None
    overtime_eligible: Optional[bool] = None
    address: Optional[Address] = None
    emergency_contact: Optional[EmergencyContact] = None
    is_active: Optional[bool] = None
    bank_details: Optional[BankDetails] = None


class EmployeeResponse(BaseModel):
    """Schema for employee response (without sensitive data)"""
    id: PydanticObjectId
    employee_id: str
    first_name: str
    last_name: str
    email: EmailStr
    phone: str
    department_id: Optional[str] = None
    department: str
    designation: str
    role: str
    status: str
    is_active: bool
    joining_date: datetime
    employment_type: str
    shift_id: Optional[str] = None
    overtime_eligible: bool
    address: Optional[Address] = None
    bank_details: Optional[BankDetails] = None
    compensation: Optional[CompensationProfile] = None

    class Config:
        from_attributes = True
