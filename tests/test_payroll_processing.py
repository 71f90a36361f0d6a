"""
Tests for single-employee and batch payroll processing.
"""

import asyncio
from datetime import datetime

import pytest

from hrms.exceptions import (
    DuplicateComputationError,
    InvalidInputError,
    PayrollAlreadyPaidError,
)
from hrms.models.attendance import Attendance, AttendanceStatus
from hrms.models.employee import CompensationProfile
from hrms.models.payroll import PayrollRecord, PayrollStatus
from hrms.models.tax import TaxDeclarations, TdsDeclaration
from hrms.services.payroll_processing import (
    build_payroll_record,
    create_payroll_record,
    find_payroll_record,
    month_bounds,
    process_employee,
    process_payroll,
    summarize_attendance,
    update_payroll_status,
)
from hrms.services.payroll_engine import WorkSummary, compute_payroll


async def add_attendance(employee, day, status=AttendanceStatus.PRESENT, overtime=0.0):
    record = Attendance(
        employee_id=employee.employee_id,
        employee_name=employee.full_name,
        date=day,
        hours_worked=8.0 + overtime,
        overtime_hours=overtime,
        status=status,
    )
    await record.insert()
    return record


class TestMonthBounds:

    def test_regular_month(self):
        assert month_bounds(8, 2025) == (datetime(2025, 8, 1), datetime(2025, 9, 1))

    def test_december_rolls_into_next_year(self):
        assert month_bounds(12, 2025) == (datetime(2025, 12, 1), datetime(2026, 1, 1))


class TestSummarizeAttendance:

    async def test_counts_days_and_overtime(self, employee_factory, rules):
        employee = await employee_factory("EMP001", overtime_eligible=True)
        await add_attendance(employee, datetime(2025, 8, 4), overtime=2.5)
        await add_attendance(employee, datetime(2025, 8, 5), AttendanceStatus.LATE, overtime=1.0)
        await add_attendance(employee, datetime(2025, 8, 6), AttendanceStatus.HALF_DAY)
        await add_attendance(employee, datetime(2025, 8, 7), AttendanceStatus.ABSENT)
        await add_attendance(employee, datetime(2025, 9, 1), overtime=4.0)

        summary = await summarize_attendance(employee, 8, 2025, rules)

        assert summary.overtime_hours == 3.5
        assert summary.days_present == 2.5
        assert summary.standard_working_days == 22

    async def test_overtime_ignored_for_ineligible_employee(self, employee_factory, rules):
        employee = await employee_factory("EMP002")
        await add_attendance(employee, datetime(2025, 8, 4), overtime=3.0)

        summary = await summarize_attendance(employee, 8, 2025, rules)

        assert summary.overtime_hours == 0.0
        assert summary.days_present == 1.0


class TestProcessEmployee:

    async def test_persists_engine_result(self, employee_factory, rules):
        employee = await employee_factory("EMP001")

        record = await process_employee(employee, 8, 2025, rules, processed_by="HR001")

        assert record.id is not None
        assert record.financial_year == "2025-2026"
        assert record.gross_pay == 80000.00
        assert record.net_pay == 74034.13
        assert record.deductions["tds"] == 3965.87
        assert record.status == PayrollStatus.PROCESSED
        assert record.processed_by == "HR001"

    async def test_reprocessing_replaces_record(self, employee_factory, rules):
        employee = await employee_factory("EMP001")
        await process_employee(employee, 8, 2025, rules)

        employee.compensation = CompensationProfile(base_salary=60000)
        await employee.save()
        record = await process_employee(employee, 8, 2025, rules)

        stored = await PayrollRecord.find(PayrollRecord.employee_id == "EMP001").to_list()
        assert len(stored) == 1
        assert stored[0].id == record.id
        assert stored[0].base_salary == 60000.00

    async def test_concurrent_runs_leave_one_record(self, employee_factory, rules):
        employee = await employee_factory("EMP001")

        await asyncio.gather(*(process_employee(employee, 8, 2025, rules) for _ in range(5)))

        assert await PayrollRecord.find(PayrollRecord.employee_id == "EMP001").count() == 1

    async def test_uses_stored_tds_declaration(self, employee_factory, rules):
        employee = await employee_factory("EMP001")
        await TdsDeclaration(
            employee_id="EMP001",
            financial_year="2025-2026",
            declarations=TaxDeclarations(section_80c=150000),
        ).insert()

        record = await process_employee(employee, 8, 2025, rules)

        assert record.deductions["tds"] < 3965.87

    async def test_create_refuses_existing_period(self, employee_factory, rules):
        employee = await employee_factory("EMP001")
        breakdown = compute_payroll(employee.compensation, WorkSummary(), rules)

        await create_payroll_record(build_payroll_record(employee, 8, 2025, breakdown))

        with pytest.raises(DuplicateComputationError) as exc_info:
            await create_payroll_record(build_payroll_record(employee, 8, 2025, breakdown))
        assert exc_info.value.code == "duplicate_computation"


class TestProcessPayroll:

    async def test_one_invalid_profile_does_not_stop_batch(self, employee_factory):
        for i in range(10):
            salary = -100 if i == 3 else 30000 + i * 1000
            await employee_factory(f"EMP{i:03d}", base_salary=salary)

        result = await process_payroll(8, 2025)

        assert len(result.processed) == 9
        assert "EMP003" not in result.processed
        assert len(result.failures) == 1
        failure = result.failures[0]
        assert failure.employee_id == "EMP003"
        assert failure.error == "invalid_input"
        assert result.cancelled is False
        assert await PayrollRecord.find_all().count() == 9

    async def test_totals_cover_processed_employees(self, employee_factory):
        await employee_factory("EMP001", base_salary=50000)
        await employee_factory("EMP002", base_salary=50000)

        result = await process_payroll(8, 2025)

        assert result.financial_year == "2025-2026"
        assert result.total_gross == 160000.00
        assert result.total_net == 148068.26
        assert result.finished_at is not None

    async def test_inactive_employees_are_skipped(self, employee_factory):
        await employee_factory("EMP001")
        await employee_factory("EMP002", is_active=False)

        result = await process_payroll(8, 2025)

        assert result.processed == ["EMP001"]

    async def test_subset_reports_unknown_ids(self, employee_factory):
        await employee_factory("EMP001")
        await employee_factory("EMP002")

        result = await process_payroll(8, 2025, employee_ids=["EMP002", "EMP404"])

        assert result.processed == ["EMP002"]
        assert [(f.employee_id, f.error) for f in result.failures] == [("EMP404", "employee_not_found")]

    async def test_missing_configuration_fails_every_employee(self, employee_factory):
        await employee_factory("EMP001")
        await employee_factory("EMP002")

        result = await process_payroll(6, 2031)

        assert result.processed == []
        assert {f.employee_id for f in result.failures} == {"EMP001", "EMP002"}
        assert all(f.error == "missing_configuration" for f in result.failures)
        assert await PayrollRecord.find_all().count() == 0

    async def test_cancelled_batch_skips_pending_employees(self, employee_factory):
        await employee_factory("EMP001")
        await employee_factory("EMP002")
        cancel = asyncio.Event()
        cancel.set()

        result = await process_payroll(8, 2025, cancel_event=cancel)

        assert result.cancelled is True
        assert sorted(result.skipped) == ["EMP001", "EMP002"]
        assert result.processed == []

    async def test_rerun_is_idempotent(self, employee_factory):
        await employee_factory("EMP001")

        first = await process_payroll(8, 2025, concurrency=1)
        second = await process_payroll(8, 2025, concurrency=1)

        assert first.total_net == second.total_net
        assert await PayrollRecord.find_all().count() == 1


class TestPayrollStatus:

    async def test_forward_transition(self, employee_factory, rules):
        employee = await employee_factory("EMP001")
        record = await process_employee(employee, 8, 2025, rules)

        paid = await update_payroll_status(record, PayrollStatus.PAID)

        assert paid.status == PayrollStatus.PAID
        assert paid.paid_at is not None

    async def test_backward_transition_rejected(self, employee_factory, rules):
        employee = await employee_factory("EMP001")
        record = await process_employee(employee, 8, 2025, rules)
        await update_payroll_status(record, PayrollStatus.PAID)

        with pytest.raises(InvalidInputError):
            await update_payroll_status(record, PayrollStatus.PROCESSED)

    async def test_rerun_leaves_paid_period_untouched(self, employee_factory, rules):
        employee = await employee_factory("EMP001")
        record = await process_employee(employee, 8, 2025, rules)
        await update_payroll_status(record, PayrollStatus.PAID)
        paid = await find_payroll_record("EMP001", 8, 2025)

        employee.compensation = CompensationProfile(base_salary=60000)
        await employee.save()
        result = await process_payroll(8, 2025)

        again = await find_payroll_record("EMP001", 8, 2025)
        assert again.status == PayrollStatus.PAID
        assert again.paid_at == paid.paid_at
        assert again.base_salary == 50000.00
        assert result.processed == []
        assert [(f.employee_id, f.error) for f in result.failures] == [("EMP001", "payroll_paid")]

    async def test_process_employee_refuses_paid_period(self, employee_factory, rules):
        employee = await employee_factory("EMP001")
        record = await process_employee(employee, 8, 2025, rules)
        await update_payroll_status(record, PayrollStatus.PAID)

        with pytest.raises(PayrollAlreadyPaidError) as exc_info:
            await process_employee(employee, 8, 2025, rules)
        assert exc_info.value.status_code == 409
        assert await PayrollRecord.find_all().count() == 1

    async def test_other_periods_still_process_after_payment(self, employee_factory, rules):
        employee = await employee_factory("EMP001")
        record = await process_employee(employee, 8, 2025, rules)
        await update_payroll_status(record, PayrollStatus.PAID)

        september = await process_employee(employee, 9, 2025, rules)

        assert september.status == PayrollStatus.PROCESSED
        assert september.paid_at is None
