"""
Email notifications for category changes.
Delivery goes through aiosmtplib on the event loop, so a timeout aborts the SMTP session.
"""
import asyncio
import html
import logging
from email.message import EmailMessage
from typing import Optional

import aiosmtplib

from catalog_api.config import Settings, settings
from catalog_api.exceptions import DependencyError

logger = logging.getLogger(__name__)


class Mailer:
    """SMTP mailer bound to the notification sender and recipient."""

    def __init__(self, config: Settings):
        self.config = config

    def build_message(self, subject: str, text: str, html_body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.config.mail_from
        msg["To"] = self.config.mail_to
        msg.set_content(text, charset="utf-8")
        msg.add_alternative(html_body, subtype="html", charset="utf-8")
        return msg

    async def send(self, subject: str, text: str, html_body: str) -> None:
        """Send one message. Raises DependencyError if delivery fails."""
        if self.config.mail_suppress_send:
            logger.warning("[MAIL DISABLED] Skipping '%s' to %s", subject, self.config.mail_to)
            return

        cfg = self.config
        msg = self.build_message(subject, text, html_body)
        timeout = cfg.mail_timeout_seconds
        logger.info("Sending '%s' to %s", subject, cfg.mail_to)
        try:
            # aiosmtplib applies the timeout per command, wait_for bounds the whole exchange
            await asyncio.wait_for(
                aiosmtplib.send(
                    msg,
                    hostname=cfg.smtp_host,
                    port=cfg.smtp_port,
                    username=cfg.smtp_user,
                    password=cfg.smtp_password if cfg.smtp_user else None,
                    start_tls=cfg.smtp_use_tls,
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error("Mail delivery timed out after %.1fs", timeout)
            raise DependencyError(f"Email delivery timed out after {timeout:g}s") from e
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Mail delivery failed: %s", e)
            raise DependencyError(f"Email delivery failed: {e}") from e
        logger.info("Mail '%s' delivered", subject)


async def notify_category_created(mailer: Mailer, name: str) -> None:
    await mailer.send(
        "Nova categoria criada",
        f"Uma nova categoria foi criada: {name}",
        f"<p>Uma nova categoria foi criada: <strong>{html.escape(name)}</strong></p>",
    )


async def notify_category_updated(mailer: Mailer, name: str) -> None:
    await mailer.send(
        "Categoria Atualizada",
        f'A categoria "{name}" foi atualizada com sucesso!',
        f"<p>A categoria <strong>{html.escape(name)}</strong> foi atualizada com sucesso!</p>",
    )


_mailer: Optional[Mailer] = None


def get_mailer() -> Mailer:
    """FastAPI dependency returning the process-wide mailer."""
    global _mailer
    if _mailer is None:
        _mailer = Mailer(settings)
    return _mailer
