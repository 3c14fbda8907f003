"""
Envio dos lembretes de alimentação por e-mail (SMTP).

`EmailNotifier` implementa o contrato `INotifier`: recebe destinatário,
assunto e corpo prontos e só cuida do transporte. Qualquer falha de rede ou
SMTP vira `TransientIOError`, para que o disparador deixe o horário para a
próxima varredura.

`LoggingNotifier` é usado quando não há servidor SMTP configurado
(desenvolvimento): apenas registra no log o que seria enviado.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Any, Callable, Dict, List, Optional, Tuple

from config.settings import APP_URL, EMAIL_SETTINGS
from aquafeed.domain.exceptions import TransientIOError

log = logging.getLogger("aquafeed.infrastructure.email")


@dataclass(frozen=True)
class EmailConfig:
    """Parâmetros de conexão SMTP."""
    smtp_host: str
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    from_address: Optional[str] = None
    timeout: float = 10.0

    @property
    def sender(self) -> str:
        return self.from_address or self.smtp_username or "aquafeed@localhost"

    @staticmethod
    def from_settings(settings: Optional[Dict[str, Any]] = None) -> "EmailConfig":
        s = dict(EMAIL_SETTINGS if settings is None else settings)
        return EmailConfig(
            smtp_host=s.get("smtp_host") or "",
            smtp_port=int(s.get("smtp_port") or 587),
            smtp_username=s.get("smtp_username"),
            smtp_password=s.get("smtp_password"),
            smtp_use_tls=bool(s.get("smtp_use_tls", True)),
            from_address=s.get("from_address"),
        )


def build_mime(sender: str, recipient: str, subject: str, body: str, app_url: str = APP_URL) -> MIMEMultipart:
    """Mensagem multipart (texto + HTML) com link para o painel."""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = recipient

    text = f"{body}\n\nPainel: {app_url}\n"
    paragraphs = "".join(f"<p>{escape(line)}</p>" for line in body.splitlines() if line.strip())
    html = (
        "<html><body style=\"font-family: Arial, sans-serif; color: #1f2933;\">"
        f"<h2 style=\"color: #0b7285;\">{escape(subject)}</h2>"
        f"{paragraphs}"
        f"<p><a href=\"{escape(app_url)}\">Abrir painel</a></p>"
        "</body></html>"
    )
    msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))
    return msg


class EmailNotifier:
    """Notificador SMTP (starttls opcional, login se houver credenciais)."""

    def __init__(self, config: EmailConfig, smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP):
        self.config = config
        self.smtp_factory = smtp_factory

    def send(self, recipient: str, subject: str, body: str) -> None:
        cfg = self.config
        mime = build_mime(cfg.sender, recipient, subject, body)
        try:
            with self.smtp_factory(cfg.smtp_host, cfg.smtp_port, timeout=cfg.timeout) as server:
                if cfg.smtp_use_tls:
                    server.starttls(context=ssl.create_default_context())
                if cfg.smtp_username and cfg.smtp_password:
                    server.login(cfg.smtp_username, cfg.smtp_password)
                server.sendmail(cfg.sender, [recipient], mime.as_string())
        except (smtplib.SMTPException, OSError) as e:
            raise TransientIOError(
                f"Falha ao enviar e-mail para {recipient}: {e}",
                detail={"recipient": recipient, "host": cfg.smtp_host},
            ) from e
        log.info("email_sent to=%s subject=%r", recipient, subject)


class LoggingNotifier:
    """Notificador de desenvolvimento: só registra no log (e guarda em memória)."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        self.sent.append((recipient, subject, body))
        log.info("email_dry_run to=%s subject=%r", recipient, subject)


def build_notifier(settings: Optional[Dict[str, Any]] = None):
    """EmailNotifier se houver host SMTP configurado; senão LoggingNotifier."""
    config = EmailConfig.from_settings(settings)
    if not config.smtp_host:
        log.warning("smtp_not_configured using=LoggingNotifier")
        return LoggingNotifier()
    return EmailNotifier(config)
