"""
Organization Models
Departments and company settings
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from beanie import Document


class Department(Document):
    """Department document model"""
    name: str
    description: Optional[str] = None
    manager_id: Optional[str] = None  # Employee ID of department head

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "departments"
        indexes = ["name"]


class DepartmentCreate(BaseModel):
    """Schema for creating a department"""
    name: str
    description: Optional[str] = None
    manager_id: Optional[str] = None


class DepartmentUpdate(BaseModel):
    """Schema for updating a department"""
    name: Optional[str] = None
    description: Optional[str] = None
    manager_id: Optional[str] = None


class CompanySettings(Document):
    """Organization details printed on payslips"""
    name: str = "My Company"
    address: str = "Company Address, City, State, Zip"
    logo_url: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    currency_symbol: str = "₹"

    updated_at: datetime = Field(default_factory=datetime.utcnow)
    updated_by: Optional[str] = None

    class Settings:
        name = "company_settings"
