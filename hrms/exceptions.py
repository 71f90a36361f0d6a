"""
Payroll Exceptions
Recoverable error conditions reported to callers of the payroll engine
"""
from typing import Optional


class PayrollError(Exception):
    """Base exception for payroll computation and processing"""

    code = "payroll_error"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class InvalidInputError(PayrollError):
    """Negative, zero or non-finite numeric input"""

    code = "invalid_input"
    status_code = 422


class MissingConfigurationError(PayrollError):
    """No statutory configuration exists for the requested financial year"""

    code = "missing_configuration"
    status_code = 404

    def __init__(self, financial_year: str):
        super().__init__(f"No statutory configuration found for financial year {financial_year}")
        self.financial_year = financial_year


class DuplicateComputationError(PayrollError):
    """Create (not upsert) attempted for an existing (employee, month, year) key"""

    code = "duplicate_computation"
    status_code = 409

    def __init__(self, employee_id: str, month: int, year: int):
        super().__init__(
            f"Payroll for employee {employee_id} already exists for {month:02d}/{year}"
        )
        self.employee_id = employee_id
        self.month = month
        self.year = year


class PayrollAlreadyPaidError(PayrollError):
    """Recompute attempted for a period whose payroll has been paid"""

    code = "payroll_paid"
    status_code = 409

    def __init__(self, employee_id: str, month: int, year: int):
        super().__init__(
            f"Payroll for employee {employee_id} for {month:02d}/{year} is already paid"
        )
        self.employee_id = employee_id
        self.month = month
        self.year = year
