"""
Mail notifier for mirrorpull.

Turns a MirrorReport into the error and success mails, and delivers them
through the local sendmail binary or an SMTP server.
"""

import logging
import re
import smtplib
import subprocess
from email.message import EmailMessage
from typing import List

from ..config import MailSettings
from ..domain.report import MirrorReport
from ..exit_codes import NotificationError

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r'</?[^>]*>')
_BLANK_LINES_RE = re.compile(r'\n\n+')


def clean_html(email_body: str = '') -> str:
    """Strip tags from an HTML mail body to build the text/plain part."""
    text = _TAG_RE.sub(' ', email_body)
    text = _BLANK_LINES_RE.sub('\n', text)
    return text.strip('\n')


def compose_error_report(report: MirrorReport) -> str:
    """HTML body listing every failure of the run."""
    return "<h1>Failed to fetch some repositories:</h1>\n" + "".join(report.failures)


def compose_success_report(report: MirrorReport) -> str:
    """HTML body listing updated repositories, followed by failures if any."""
    updated = "<br>".join(report.successes)
    if report.failures:
        errors = "<h1>Repos failed to fetch:</h1>\n " + "".join(report.failures)
    else:
        errors = "<br><br>Yey, no update failed!.."
    return f"<h1>Repos updated:</h1>\n{updated} {errors}"


class Notifier:
    """
    Sends report mails.

    Example:
        notifier = Notifier(settings.mail)
        notifier.notify(report)
    """

    def __init__(self, settings: MailSettings):
        self.settings = settings

    def build_message(self, html: str) -> EmailMessage:
        """Build a multipart/alternative message with text and HTML parts."""
        msg = EmailMessage()
        msg['From'] = self.settings.sender
        msg['To'] = self.settings.receiver
        msg['Subject'] = self.settings.subject
        msg.set_content(clean_html(html))
        msg.add_alternative(html, subtype='html')
        return msg

    def send(self, html: str) -> None:
        """
        Deliver one mail.

        Raises:
            NotificationError: If delivery fails
        """
        if not self.settings.enabled:
            raise NotificationError("mail.sender and mail.receiver must be configured")

        msg = self.build_message(html)
        if self.settings.transport == 'smtp':
            self._send_smtp(msg)
        else:
            self._send_sendmail(msg)
        logger.info(f"Report mail sent to {self.settings.receiver}")

    def _send_sendmail(self, msg: EmailMessage) -> None:
        cmd = [self.settings.sendmail_path, '-t', '-oi']
        try:
            result = subprocess.run(cmd, input=msg.as_bytes(), capture_output=True, timeout=60)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise NotificationError(f"sendmail failed: {e}") from e
        if result.returncode != 0:
            stderr = result.stderr.decode('utf-8', errors='replace').strip()
            raise NotificationError(f"sendmail exited with {result.returncode}: {stderr}")

    def _send_smtp(self, msg: EmailMessage) -> None:
        smtp = self.settings.smtp
        try:
            with smtplib.SMTP(smtp.host, smtp.port, timeout=60) as server:
                if smtp.use_tls:
                    server.starttls()
                if smtp.username:
                    server.login(smtp.username, smtp.password)
                server.send_message(msg)
        except (OSError, smtplib.SMTPException) as e:
            raise NotificationError(f"SMTP delivery to {smtp.host}:{smtp.port} failed: {e}") from e

    def notify(self, report: MirrorReport) -> List[str]:
        """
        Apply the mail policy to a finished run.

        An error mail goes out when something failed and send_on_error is
        set; the full report goes out whenever send_report is set.

        Returns:
            The HTML bodies that were sent
        """
        sent = []
        if report.failures and self.settings.send_on_error:
            body = compose_error_report(report)
            self.send(body)
            sent.append(body)
        if self.settings.send_report:
            body = compose_success_report(report)
            self.send(body)
            sent.append(body)
        return sent
