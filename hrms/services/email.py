import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from datetime import datetime
import os
from hrms.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for handling automated email notifications"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.email_from = settings.EMAIL_FROM

        # Path to templates
        self.template_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates", "emails")

    def _get_template(self, template_name):
        """Read an HTML template from file"""
        try:
            with open(os.path.join(self.template_dir, f"{template_name}.html"), "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            logger.error("Error reading email template %s: %s", template_name, e)
            return None

    async def send_email(self, to_email, subject, html_content, attachments=None):
        """General method to send an email (Mocked if no credentials)"""
        if not self.smtp_user or not self.smtp_password:
            logger.info(
                "MOCK EMAIL to %s: %s (HTML length %d, %d attachments)",
                to_email, subject, len(html_content), len(attachments or []),
            )
            return True

        try:
            msg = MIMEMultipart()
            msg['From'] = self.email_from
            msg['To'] = to_email
            msg['Subject'] = subject

            msg.attach(MIMEText(html_content, 'html'))
            for filename, content in attachments or []:
                part = MIMEText(content, 'html')
                part.add_header('Content-Disposition', 'attachment', filename=filename)
                msg.attach(part)

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)

            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to_email, e)
            return False

    async def send_payslip(self, employee, payslip, payslip_html):
        """Send a payslip to the employee with the rendered payslip attached"""
        period = datetime(payslip.year, payslip.month, 1).strftime("%B %Y")
        template = self._get_template("payslip")
        if not template:
            template = "<p>Dear {{name}},</p><p>Your payslip for {{period}} is attached.</p>"

        content = template.replace("{{name}}", employee.full_name)
        content = content.replace("{{period}}", period)
        content = content.replace("{{net_pay}}", f"{payslip.net_pay:,.2f}")
        content = content.replace("{{year}}", str(datetime.now().year))

        return await self.send_email(
            employee.email,
            f"Payslip for {period}",
            content,
            attachments=[(f"payslip_{payslip.pay_period}.html", payslip_html)],
        )


# Global instance
email_service = EmailService()
