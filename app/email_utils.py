"""
Small SMTP helper shared by the notification templates.
"""
from __future__ import annotations

import os
import smtplib
from email.mime.text import MIMEText

DEFAULT_FROM = "BookDocker GO2 <noreply@bookdockergo2.com>"


def _effective_from(email_from: str | None, email_user: str | None, smtp_server: str) -> str:
    # Gmail rewrites the sender to the authenticated account anyway.
    if "gmail" in (smtp_server or "").lower() and email_user:
        return email_user
    return email_from or email_user or DEFAULT_FROM


def send_text_email(to_email: str, subject: str, body: str, reply_to: str | None = None) -> None:
    email_user = os.getenv("EMAIL_USER")
    email_password = os.getenv("EMAIL_PASSWORD")
    email_from = os.getenv("EMAIL_FROM")
    smtp_server = os.getenv("SMTP_SERVER", "smtp.gmail.com")
    smtp_port = int(os.getenv("SMTP_PORT", "587"))

    if not (email_user and email_password):
        raise RuntimeError("Email credentials not configured. Set EMAIL_USER and EMAIL_PASSWORD.")

    msg = MIMEText(body, "plain", "utf-8")
    msg["Subject"] = subject
    msg["From"] = _effective_from(email_from, email_user, smtp_server)
    msg["To"] = to_email
    if reply_to:
        msg["Reply-To"] = reply_to

    with smtplib.SMTP(smtp_server, smtp_port, timeout=20) as server:
        server.starttls()
        server.login(email_user, email_password)
        server.sendmail(msg["From"], [to_email], msg.as_string())
