"""
Tax & Statutory Models
Financial-year scoped statutory rules and per-employee TDS declarations
"""
from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, model_validator
from beanie import Document
from pymongo import ASCENDING, IndexModel


class AllowancePolicy(BaseModel):
    """Defaults applied to allowances an employee profile leaves unset"""
    hra_rate: float = 0.40
    special_allowance_rate: float = 0.15
    default_conveyance: float = 1500.0
    default_medical: float = 1000.0


class TaxSlab(BaseModel):
    """One progressive income-tax bracket; upper=None is the open top slab"""
    lower: float
    upper: Optional[float] = None
    rate: float = Field(..., ge=0, le=1)


class ProfessionalTaxBand(BaseModel):
    """Monthly gross up to and including `upper` pays `amount`"""
    upper: Optional[float] = None
    amount: float = Field(..., ge=0)


class StatutoryRules(BaseModel):
    """Every rate, cap, threshold, band and slab the payroll engine consumes"""
    financial_year: str
    version: int = 1
    state: str = "Maharashtra"

    allowance_policy: AllowancePolicy = Field(default_factory=AllowancePolicy)

    # Overtime
    standard_working_days_per_month: int = Field(22, gt=0)
    standard_hours_per_day: float = Field(8.0, gt=0)
    overtime_multiplier: float = Field(1.5, ge=1)

    # Provident Fund
    pf_rate: float = Field(0.12, ge=0, le=1)
    pf_cap: float = Field(1800.0, ge=0)

    # Employee State Insurance
    esi_threshold: float = Field(21000.0, ge=0)
    esi_employee_rate: float = Field(0.0075, ge=0, le=1)
    esi_employer_rate: float = Field(0.0325, ge=0, le=1)

    # Professional Tax
    professional_tax_bands: List[ProfessionalTaxBand]

    # Income tax (TDS)
    tax_slabs: List[TaxSlab]
    cess_rate: float = Field(0.04, ge=0, le=1)
    section_80c_cap: float = Field(150000.0, ge=0)
    standard_deduction: float = Field(0.0, ge=0)

    @model_validator(mode="after")
    def check_tables(self):
        slabs = self.tax_slabs
        if not slabs:
            raise ValueError("tax_slabs must not be empty")
        if slabs[0].lower != 0:
            raise ValueError("first tax slab must start at 0")
        for previous, current in zip(slabs, slabs[1:]):
            if previous.upper is None or previous.upper != current.lower:
                raise ValueError("tax slabs must be ordered and contiguous")
        for slab in slabs:
            if slab.upper is not None and slab.upper <= slab.lower:
                raise ValueError("tax slab upper bound must exceed its lower bound")
        if slabs[-1].upper is not None:
            raise ValueError("last tax slab must be open-ended")

        bands = self.professional_tax_bands
        if not bands or bands[-1].upper is not None:
            raise ValueError("professional tax bands must end with an open top band")
        uppers = [band.upper for band in bands[:-1]]
        if any(upper is None for upper in uppers) or uppers != sorted(uppers):
            raise ValueError("professional tax bands must be in ascending order")
        return self


class StatutoryConfiguration(Document):
    """Versioned statutory configuration record, one per financial year"""
    financial_year: str
    rules: StatutoryRules
    is_active: bool = True
    source: str = "manual"  # manual, seed

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    updated_by: Optional[str] = None

    class Settings:
        name = "statutory_configurations"
        indexes = [
            IndexModel([("financial_year", ASCENDING)], unique=True),
        ]


class TaxDeclarations(BaseModel):
    """Employee's declared annual deductions for income-tax computation"""
    section_80c: float = 0.0
    section_80d: float = 0.0
    hra_exemption: float = 0.0
    professional_tax: Optional[float] = None  # None: annualized from payroll
    other: float = 0.0


class TdsDeclaration(Document):
    """TDS configuration for one employee and financial year"""
    employee_id: str
    financial_year: str
    declarations: TaxDeclarations = Field(default_factory=TaxDeclarations)

    # Last computed figures
    annual_salary: float = 0.0
    total_deductions: float = 0.0
    taxable_income: float = 0.0
    annual_tax: float = 0.0
    monthly_tds: float = 0.0
    deduction_breakup: Dict[str, float] = {}

    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "tds_declarations"
        indexes = [
            IndexModel(
                [("employee_id", ASCENDING), ("financial_year", ASCENDING)],
                unique=True,
            ),
        ]


class TdsCalculationRequest(BaseModel):
    """Schema for an ad-hoc TDS calculation"""
    annual_salary: float
    financial_year: Optional[str] = None
    declarations: TaxDeclarations = Field(default_factory=TaxDeclarations)


class TdsDeclarationUpdate(BaseModel):
    """Schema for saving an employee's TDS declaration"""
    annual_salary: Optional[float] = None  # None: base salary x 12
    declarations: TaxDeclarations
