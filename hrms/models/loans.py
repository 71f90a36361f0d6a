"""
Loan and Advance Models
Employee loans, salary advances and recurring deductions recovered through payroll
"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
from beanie import Document
from pymongo import ASCENDING, IndexModel


class RecoveryStatus(str, Enum):
    """Loan / advance lifecycle"""
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    CLOSED = "closed"


class DeductionFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    ONE_TIME = "one_time"


class EmployeeLoan(Document):
    """Loan repaid in equal monthly installments from payroll"""
    employee_id: str
    loan_type: str = "personal"
    loan_amount: float
    interest_rate: float = 0.0
    tenure_months: int
    emi_amount: float
    start_date: datetime
    remaining_amount: float
    paid_amount: float = 0.0
    status: RecoveryStatus = RecoveryStatus.PENDING
    purpose: Optional[str] = None
    approved_by: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "employee_loans"
        indexes = [
            IndexModel([("employee_id", ASCENDING), ("status", ASCENDING)]),
        ]


class SalaryAdvance(Document):
    """Advance against salary, recovered over a few months once approved"""
    employee_id: str
    advance_amount: float
    reason: str
    repayment_months: int
    monthly_deduction: float
    remaining_amount: float
    paid_amount: float = 0.0
    status: RecoveryStatus = RecoveryStatus.PENDING
    request_date: datetime = Field(default_factory=datetime.utcnow)
    approved_date: Optional[datetime] = None
    approved_by: Optional[str] = None

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "salary_advances"
        indexes = [
            IndexModel([("employee_id", ASCENDING), ("status", ASCENDING)]),
        ]


class EmployeeDeduction(Document):
    """Standing deduction such as insurance premium or a disciplinary fine"""
    employee_id: str
    deduction_type: str = "other"  # insurance, disciplinary, loan, advance, other
    amount: float
    frequency: DeductionFrequency = DeductionFrequency.MONTHLY
    effective_from: datetime
    effective_to: Optional[datetime] = None
    is_active: bool = True
    description: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "employee_deductions"
        indexes = ["employee_id"]


class LoanCreate(BaseModel):
    """Schema for a loan application"""
    employee_id: Optional[str] = None  # defaults to the requesting employee
    loan_type: str = "personal"
    loan_amount: float = Field(..., gt=0)
    interest_rate: float = Field(0.0, ge=0, le=100)
    tenure_months: int = Field(..., gt=0, le=360)
    start_date: datetime
    purpose: Optional[str] = None


class AdvanceCreate(BaseModel):
    """Schema for a salary advance request"""
    employee_id: Optional[str] = None
    advance_amount: float = Field(..., gt=0)
    reason: str
    repayment_months: int = Field(1, gt=0, le=24)


class RecoveryDecision(BaseModel):
    """Approve (active) or reject a pending loan or advance"""
    status: RecoveryStatus


class DeductionCreate(BaseModel):
    employee_id: str
    deduction_type: str = "other"
    amount: float = Field(..., gt=0)
    frequency: DeductionFrequency = DeductionFrequency.MONTHLY
    effective_from: datetime
    effective_to: Optional[datetime] = None
    description: Optional[str] = None


class RecoverySummary(BaseModel):
    """Outstanding balances for one employee"""
    employee_id: str
    active_loans: int = 0
    loan_outstanding: float = 0.0
    monthly_emi: float = 0.0
    active_advances: int = 0
    advance_outstanding: float = 0.0
    monthly_advance_recovery: float = 0.0
