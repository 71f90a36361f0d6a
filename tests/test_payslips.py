"""
Tests for payslip generation, rendering and delivery.
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from hrms.models.employee import BankDetails, CompensationProfile
from hrms.models.organization import CompanySettings
from hrms.models.payroll import PayrollRecord, PayrollStatus
from hrms.models.payslip import Payslip
from hrms.services.email import EmailService
from hrms.services.payroll_processing import process_employee, update_payroll_status
from hrms.services.payslips import amount_in_words, generate_payslip, render_payslip_html


class TestAmountInWords:

    def test_whole_rupees(self):
        assert amount_in_words(100.0) == "Rupees One Hundred Only"

    def test_rupees_and_paise(self):
        words = amount_in_words(74034.13)

        assert words.startswith("Rupees Seventy-Four Thousand")
        assert words.endswith("And Thirteen Paise Only")


class TestGeneratePayslip:

    async def test_snapshots_payroll_breakdown(self, employee_factory):
        employee = await employee_factory(
            "EMP001",
            bank_details=BankDetails(bank_name="HDFC Bank", account_number="50100123", pan_number="ABCDE1234F"),
        )

        payslip = await generate_payslip(employee, 8, 2025, generated_by="HR001")

        assert payslip.id is not None
        assert payslip.pay_period == "2025-08"
        assert payslip.financial_year == "2025-2026"
        assert payslip.earnings["basic"] == 50000.00
        assert payslip.earnings["hra"] == 20000.00
        assert "overtime" not in payslip.earnings
        assert payslip.gross_pay == 80000.00
        assert payslip.net_pay == 74034.13
        assert payslip.bank_details.bank_name == "HDFC Bank"
        assert payslip.payroll_id is not None
        assert payslip.net_pay_words.startswith("Rupees Seventy-Four Thousand")

    async def test_existing_payslip_is_returned_unchanged(self, employee_factory):
        employee = await employee_factory("EMP001")
        first = await generate_payslip(employee, 8, 2025)

        employee.compensation = CompensationProfile(base_salary=90000)
        await employee.save()
        second = await generate_payslip(employee, 8, 2025)

        assert second.id == first.id
        assert second.net_pay == first.net_pay
        assert await Payslip.find_all().count() == 1

    async def test_paid_period_is_snapshotted_as_stored(self, employee_factory, rules):
        employee = await employee_factory("EMP001")
        record = await process_employee(employee, 8, 2025, rules)
        await update_payroll_status(record, PayrollStatus.PAID)

        employee.compensation = CompensationProfile(base_salary=90000)
        await employee.save()
        payslip = await generate_payslip(employee, 8, 2025)

        assert payslip.net_pay == 74034.13
        assert payslip.payroll_id == str(record.id)
        assert (await PayrollRecord.find_one(PayrollRecord.employee_id == "EMP001")).status == PayrollStatus.PAID


class TestRenderPayslip:

    async def test_renders_amounts_and_identity(self, employee_factory):
        employee = await employee_factory("EMP001", first_name="Asha", last_name="Rao")
        payslip = await generate_payslip(employee, 8, 2025)
        company = CompanySettings(name="Acme <India>", address="Pune")

        html = render_payslip_html(payslip, company)

        assert "Asha Rao" in html
        assert "August 2025" in html
        assert "74,034.13" in html
        assert "House Rent Allowance" in html
        assert "Income Tax (TDS)" in html
        assert "Acme &lt;India&gt;" in html
        assert "{{" not in html


class TestEmailPayslip:

    @pytest.fixture
    def payslip(self):
        payslip = Mock()
        payslip.year = 2025
        payslip.month = 8
        payslip.net_pay = 74034.13
        payslip.pay_period = "2025-08"
        return payslip

    @pytest.fixture
    def employee(self):
        employee = Mock()
        employee.full_name = "Asha Rao"
        employee.email = "asha.rao@company.com"
        return employee

    async def test_mock_send_without_smtp_credentials(self, employee, payslip):
        service = EmailService()
        service.smtp_user = ""

        sent = await service.send_payslip(employee, payslip, "<html></html>")

        assert sent is True

    async def test_payslip_email_content(self, employee, payslip):
        service = EmailService()
        with patch.object(service, "send_email", new=AsyncMock(return_value=True)) as send:
            await service.send_payslip(employee, payslip, "<html>slip</html>")

        to_email, subject, content = send.call_args.args
        assert to_email == "asha.rao@company.com"
        assert subject == "Payslip for August 2025"
        assert "74,034.13" in content
        assert send.call_args.kwargs["attachments"] == [("payslip_2025-08.html", "<html>slip</html>")]
