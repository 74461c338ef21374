from __future__ import annotations

import smtplib
import subprocess
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from .config import GlobalDefaults
from .report import ReportLog
from .settings import Settings, settings as default_settings


class DeliveryError(Exception):
    """The report could not be handed to the mail transport."""


def report_subject(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"Docker Container Update Report - {now.strftime('%A, %B %d, %Y')}"


def build_message(report: ReportLog, options: GlobalDefaults, subject: str) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["From"] = formataddr(("\U0001f433 Docker Container Updater", options.email_from or ""))
    msg["To"] = options.email_to or ""
    msg["Reply-To"] = options.email_from or ""
    msg["Subject"] = subject
    msg.attach(MIMEText(f"{subject}\n{report.plain_text()}", "plain", "utf-8"))
    msg.attach(MIMEText(f"{subject}\n{report.html()}", "html", "utf-8"))
    return msg


def _send_smtp(msg: MIMEMultipart, options: GlobalDefaults, cfg: Settings) -> None:
    server = smtplib.SMTP(cfg.smtp_host, cfg.smtp_port)
    try:
        if cfg.smtp_starttls:
            server.starttls()
        if cfg.smtp_user and cfg.smtp_password:
            server.login(cfg.smtp_user, cfg.smtp_password)
        server.sendmail(options.email_from or "", [options.email_to or ""], msg.as_string())
    finally:
        server.quit()


def _send_sendmail(msg: MIMEMultipart, options: GlobalDefaults) -> None:
    proc = subprocess.run([options.sendmail, "-t"], input=msg.as_string(), capture_output=True, text=True)
    if proc.returncode != 0:
        raise DeliveryError(f"Sendmail process exited with code {proc.returncode}: {proc.stderr.strip()}")


def send_report(
    report: ReportLog,
    options: GlobalDefaults,
    dry_run: bool = False,
    cfg: Settings | None = None,
) -> bool:
    """Mail the report to ``options.email_to``.

    Uses SMTP when DCU_SMTP_HOST is set, otherwise the sendmail binary from the
    configuration. Returns False when no recipient is configured; in dry-run
    mode the message is printed instead of sent.

    Raises:
        DeliveryError: the transport rejected or failed to take the message.
    """
    if not options.email_to:
        return False
    cfg = cfg or default_settings

    msg = build_message(report, options, report_subject())
    if dry_run:
        print(f"> Email report to {options.email_to} via {cfg.smtp_host or options.sendmail}:")
        print(msg.as_string())
        return True

    try:
        if cfg.smtp_host:
            _send_smtp(msg, options, cfg)
        else:
            _send_sendmail(msg, options)
    except (OSError, smtplib.SMTPException) as e:
        raise DeliveryError(f"{type(e).__name__}: {e}") from e
    return True
