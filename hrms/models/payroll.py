"""
Payroll Model
One computed payroll record per employee and pay period
"""
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, List
from pydantic import BaseModel, Field
from beanie import Document
from pymongo import ASCENDING, IndexModel


class PayrollStatus(str, Enum):
    """Payroll record status"""
    PENDING = "pending"
    PROCESSED = "processed"
    PAID = "paid"


# Allowed forward moves; a record never goes back to an earlier status
STATUS_TRANSITIONS = {
    PayrollStatus.PENDING: {PayrollStatus.PROCESSED, PayrollStatus.PAID},
    PayrollStatus.PROCESSED: {PayrollStatus.PAID},
    PayrollStatus.PAID: set(),
}


class PayrollRecord(Document):
    """Payroll record keyed by (employee_id, month, year)"""
    employee_id: str
    employee_name: str
    department: str = ""

    month: int = Field(..., ge=1, le=12)
    year: int
    financial_year: str
    config_version: int = 1

    base_salary: float
    allowances: Dict[str, float] = {}
    overtime_hours: float = 0.0
    overtime_pay: float = 0.0
    gross_pay: float

    deductions: Dict[str, float] = {}
    employer_contributions: Dict[str, float] = {}
    esi_eligible: bool = False
    total_deductions: float
    net_pay: float

    standard_working_days: int
    days_present: Optional[float] = None

    status: PayrollStatus = PayrollStatus.PROCESSED
    processed_at: datetime = Field(default_factory=datetime.utcnow)
    processed_by: Optional[str] = None
    paid_at: Optional[datetime] = None

    class Settings:
        name = "payroll"
        indexes = [
            IndexModel(
                [("employee_id", ASCENDING), ("month", ASCENDING), ("year", ASCENDING)],
                unique=True,
            ),
            IndexModel([("year", ASCENDING), ("month", ASCENDING)]),
            IndexModel([("financial_year", ASCENDING)]),
        ]


class ProcessPayrollRequest(BaseModel):
    """Schema for a payroll batch run"""
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000)
    employee_ids: Optional[List[str]] = None


class PayrollStatusUpdate(BaseModel):
    status: PayrollStatus


class BatchFailure(BaseModel):
    """One employee the batch could not process"""
    employee_id: str
    error: str
    message: str


class BatchResult(BaseModel):
    """Outcome of processing payroll for a period"""
    month: int
    year: int
    financial_year: str
    processed: List[str] = []
    skipped: List[str] = []
    failures: List[BatchFailure] = []
    cancelled: bool = False
    total_gross: float = 0.0
    total_net: float = 0.0
    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
