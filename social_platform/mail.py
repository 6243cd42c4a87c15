"""Outbound mail (password reset).

Sending is fire-and-forget: it runs as a FastAPI background task after the
response is sent, and every failure is logged and dropped.
"""

from __future__ import annotations

import html
import smtplib
from email.message import EmailMessage
from urllib.parse import urlencode

from social_platform.config import Config


def _debug(msg: str) -> None:
    print(f"[mail] {msg}")


def reset_password_link(cfg: Config, reset_token: str) -> str:
    base = (cfg.PUBLIC_API_URL or "").rstrip("/")
    return f"{base}/api/users/reset-password?{urlencode({'resetToken': reset_token})}"


def build_reset_password_email(cfg: Config, *, name: str, email: str, reset_token: str) -> EmailMessage:
    link = reset_password_link(cfg, reset_token)
    safe_name = html.escape(name or "")
    safe_link = html.escape(link, quote=True)
    body = f"""
    <p style="max-width: 600px; margin: 0 auto; padding: 20px; font-family: 'Arial', sans-serif;">
        <strong>Password Reset</strong><br>
        Hello, {safe_name}<br>
        We received a request to reset the password for your account. If you did not make this request, please ignore this email.<br>
        To reset your password, click the link below:<br>
        <a href="{safe_link}" target="_blank">Reset Password</a><br>
        If the above link does not work, copy and paste the following URL into your browser:<br>
        {safe_link}<br>
        Thank you,<br>
        Auth Team
    </p>
    """

    msg = EmailMessage()
    msg["Subject"] = "Reset your password"
    msg["From"] = cfg.ADMIN_EMAIL or ""
    msg["To"] = email
    msg.set_content(f"Hello, {name}\n\nReset your password here: {link}\n")
    msg.add_alternative(body, subtype="html")
    return msg


def send_reset_password_email(cfg: Config, *, name: str, email: str, reset_token: str) -> bool:
    """Send the reset link. Returns True when the SMTP server accepted the message."""
    if not cfg.ADMIN_EMAIL or not cfg.ADMIN_PASSWORD:
        _debug("ADMIN_EMAIL / ADMIN_PASSWORD not set; skipping reset email")
        return False

    msg = build_reset_password_email(cfg, name=name, email=email, reset_token=reset_token)
    try:
        with smtplib.SMTP(cfg.SMTP_HOST, cfg.SMTP_PORT, timeout=cfg.SMTP_TIMEOUT_SECONDS) as smtp:
            smtp.starttls()
            smtp.login(cfg.ADMIN_EMAIL, cfg.ADMIN_PASSWORD)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        _debug(f"SEND RESET PASSWORD EMAIL ERROR to={email}: {e}")
        return False

    _debug(f"Reset email sent to={email}")
    return True
