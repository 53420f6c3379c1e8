# storefront/core/email_client.py
"""
Outgoing mail for the storefront (order confirmations, contact form).

SMTP settings come from the environment and are read on every send:

    SMTP_HOST=smtp.gmail.com
    SMTP_PORT=465
    SMTP_USERNAME=shop@mojtabatahrir.com
    SMTP_PASSWORD=<app password>
    SMTP_FROM_EMAIL=shop@mojtabatahrir.com
    SMTP_FROM_NAME=مجتبی تحریر
    SMTP_USE_TLS=false
    SMTP_USE_SSL=true

Services catch RuntimeError (not configured) and smtplib.SMTPException /
OSError (delivery) themselves.
"""
from __future__ import annotations

import logging
import os
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "y"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class SmtpConfig:
    host: str | None
    port: int
    username: str | None
    password: str | None
    from_email: str
    from_name: str
    use_tls: bool
    use_ssl: bool

    @classmethod
    def from_env(cls) -> SmtpConfig:
        username = os.getenv("SMTP_USERNAME")
        return cls(
            host=os.getenv("SMTP_HOST"),
            port=int(os.getenv("SMTP_PORT", "587")),
            username=username,
            password=os.getenv("SMTP_PASSWORD"),
            # the login address doubles as sender when none is given
            from_email=os.getenv("SMTP_FROM_EMAIL", username or ""),
            from_name=os.getenv("SMTP_FROM_NAME", "مجتبی تحریر"),
            use_tls=_env_flag("SMTP_USE_TLS", True),
            use_ssl=_env_flag("SMTP_USE_SSL", False),
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.host and self.username and self.password)

    @property
    def sender(self) -> str:
        if self.from_email:
            return formataddr((self.from_name, self.from_email))
        return self.username or ""


def build_message(
    config: SmtpConfig,
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
    reply_to: str | None = None,
) -> EmailMessage:
    """Plain-text message with an optional HTML alternative."""
    msg = EmailMessage()
    msg["From"] = config.sender
    msg["To"] = to_email
    msg["Subject"] = subject
    if reply_to:
        msg["Reply-To"] = reply_to
    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")
    return msg


def _connect(config: SmtpConfig) -> smtplib.SMTP:
    # SSL (usually 465) or plain + STARTTLS (usually 587)
    if config.use_ssl:
        return smtplib.SMTP_SSL(config.host, config.port, timeout=30)
    server = smtplib.SMTP(config.host, config.port, timeout=30)
    if config.use_tls:
        server.starttls()
    return server


def send_email(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
    reply_to: str | None = None,
) -> None:
    """
    Send one message to a single recipient.

    Raises
    ------
    RuntimeError:
        SMTP_HOST, SMTP_USERNAME or SMTP_PASSWORD is missing.
    smtplib.SMTPException / OSError:
        Connecting or sending failed.
    """
    config = SmtpConfig.from_env()
    if not config.is_complete:
        raise RuntimeError(
            "SMTP is not configured. Set SMTP_HOST, SMTP_USERNAME and SMTP_PASSWORD."
        )

    msg = build_message(config, to_email, subject, text_body, html_body, reply_to)
    server = _connect(config)
    try:
        server.login(config.username, config.password)
        server.send_message(msg)
    finally:
        try:
            server.quit()
        except smtplib.SMTPException as exc:
            logger.debug("SMTP quit failed: %s", exc)
    logger.info("Mail '%s' sent to %s", subject, to_email)
