"""
Email service for task notifications
"""
import asyncio
import html
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from app.config import settings
from app.models.board import Board
from app.models.column import Column as ColumnModel
from app.models.task import Task

logger = logging.getLogger(__name__)


class EmailService:
    """Email service for sending notifications"""

    def __init__(self):
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_pass = settings.smtp_pass
        self.from_email = settings.from_email
        self.from_name = settings.from_name

    @property
    def configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_pass)

    def _build_message(self, to_email: str, subject: str, html_content: str,
                       text_content: Optional[str] = None) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        if text_content:
            message.attach(MIMEText(text_content, "plain"))
        message.attach(MIMEText(html_content, "html"))
        return message

    def _deliver(self, to_email: str, message: MIMEMultipart) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
            server.starttls(context=context)
            server.login(self.smtp_user, self.smtp_pass)
            server.sendmail(self.from_email, to_email, message.as_string())

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send an email; returns False when it was not delivered"""
        if not self.configured:
            logger.info(f"SMTP not configured, email to {to_email} logged only: {subject}")
            return False

        message = self._build_message(to_email, subject, html_content, text_content)
        try:
            await asyncio.to_thread(self._deliver, to_email, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False

        logger.info(f"Email sent successfully to {to_email}")
        return True

    async def send_task_notification(
        self,
        to_email: str,
        recipient_name: Optional[str],
        task: Task,
        column: ColumnModel,
        board: Board,
    ) -> bool:
        """Send a summary of one task to ``to_email``"""
        status = "Completed" if task.is_completed else "Pending"
        due_date = task.due_date.strftime("%Y-%m-%d") if task.due_date else "No due date"
        subject = f"Task Notification: {task.title}"

        rows = [
            ("Board", board.name),
            ("Column", column.name),
            ("Task", task.title),
            ("Description", task.description or "No description"),
            ("Status", status),
            ("Due Date", due_date),
        ]
        items = "".join(
            f"<li><strong>{label}:</strong> {html.escape(str(value))}</li>" for label, value in rows
        )
        html_content = f"""
        <h1>Task Notification</h1>
        <p>Hello {html.escape(recipient_name or to_email)},</p>
        <p>Here's a notification about your task:</p>
        <ul>{items}</ul>
        <p>You can view this task in your Kanban board.</p>
        """
        text_content = "\n".join(f"{label}: {value}" for label, value in rows)

        return await self.send_email(to_email, subject, html_content, text_content)


# Global email service instance
email_service = EmailService()
