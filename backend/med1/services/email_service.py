"""
Email service for transactional emails.

Provides:
- Email sending via SMTP
- HTML templates wrapped in the shared email_base layout
- Template rendering with Jinja2

Sending is best effort: failures are logged and reported as ``False`` so
that callers never fail a request because an email could not go out.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional

from jinja2 import Template

from ..core.config import settings
from .email_base import email_button, email_divider, wrap_in_email_layout


logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending transactional emails."""

    def __init__(self):
        self.enabled = settings.email_enabled
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_username = settings.smtp_username
        self.smtp_password = settings.smtp_password
        self.from_email = settings.from_email
        self.from_name = settings.from_name

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """
        Send an email.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML email body
            text_content: Plain text email body (optional)

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.enabled:
            logger.info(f"Email disabled, not sending '{subject}' to {to_email}")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.from_name} <{self.from_email}>"
            msg["To"] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, "plain"))
            msg.attach(MIMEText(html_content, "html"))

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                # Local catchers (maildev, mailpit) accept unauthenticated mail
                if self.smtp_username and self.smtp_password:
                    server.starttls()
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a named template inside the shared layout.

        Jinja2 substitutes variables in the body, title and subtitle.
        Returns an empty string for unknown template names.
        """
        body_template_str = EMAIL_BODY_TEMPLATES.get(template_name)
        if not body_template_str:
            logger.error(f"Template {template_name} not found")
            return ""

        title, subtitle = EMAIL_TITLES.get(template_name, ("", None))
        rendered_body = Template(body_template_str).render(**context)
        rendered_title = Template(title).render(**context)
        rendered_subtitle = Template(subtitle).render(**context) if subtitle else None

        return wrap_in_email_layout(
            title=rendered_title,
            body_html=rendered_body,
            subtitle=rendered_subtitle,
        )

    def send_template(
        self,
        to_email: str,
        template_name: str,
        context: Dict[str, Any],
        text_content: Optional[str] = None,
    ) -> bool:
        """Render ``template_name`` and send it with the template's subject."""
        subject = Template(EMAIL_SUBJECTS[template_name]).render(**context)
        html = self.render_template(template_name, context)
        return self.send_email(to_email, subject, html, text_content)

    # -------------------------------------------------------------------------
    # Convenience senders
    # -------------------------------------------------------------------------

    def send_verification_code(self, to_email: str, name: str, code: str) -> bool:
        return self.send_template(
            to_email,
            "verification_code",
            {"name": name, "code": code},
            text_content=f"Seu código de verificação MED1: {code}",
        )

    def send_password_reset(self, to_email: str, name: str, token: str) -> bool:
        reset_url = f"{settings.frontend_url}/reset-password?token={token}"
        return self.send_template(
            to_email,
            "password_reset",
            {"name": name, "reset_url": reset_url},
            text_content=f"Redefina sua senha: {reset_url}",
        )

    def send_portal_password_reset(self, to_email: str, name: str, token: str) -> bool:
        reset_url = f"{settings.portal_url}/reset-password?token={token}"
        return self.send_template(
            to_email,
            "password_reset",
            {"name": name, "reset_url": reset_url},
            text_content=f"Redefina sua senha do portal: {reset_url}",
        )

    def send_portal_access(self, to_email: str, patient_name: str, doctor_name: str, token: str) -> bool:
        setup_url = f"{settings.portal_url}/setup-password?token={token}"
        return self.send_template(
            to_email,
            "portal_access",
            {"name": patient_name, "doctor_name": doctor_name, "setup_url": setup_url},
            text_content=f"Configure seu acesso ao portal: {setup_url}",
        )


# =============================================================================
# Subjects and (title, subtitle) for each email type
# =============================================================================

EMAIL_SUBJECTS = {
    "verification_code": "Seu código de verificação MED1",
    "password_reset": "Redefinição de senha MED1",
    "portal_access": "{{ doctor_name }} liberou seu acesso ao portal",
}

EMAIL_TITLES = {
    "verification_code": (
        "Confirme seu e-mail",
        "Use o código abaixo para ativar sua conta",
    ),
    "password_reset": (
        "Redefinir senha",
        None,
    ),
    "portal_access": (
        "Acesso ao portal do paciente",
        "Indicado por {{ doctor_name }}",
    ),
}


# =============================================================================
# Template bodies (Jinja2 strings, inner rows only)
# =============================================================================

_DIVIDER = email_divider()


def _paragraph(text: str) -> str:
    return (
        '                    <tr>\n'
        '                        <td style="padding: 20px 30px 0 30px;">\n'
        '                            <p style="margin: 0; font-family: Arial, Helvetica, sans-serif; '
        'font-size: 15px; color: #444444; line-height: 1.6;">\n'
        f'                                {text}\n'
        '                            </p>\n'
        '                        </td>\n'
        '                    </tr>'
    )


_CODE_ROW = """                    <tr>
                        <td align="center" style="padding: 24px 30px 0 30px;">
                            <p style="margin: 0; font-family: 'Courier New', monospace; font-size: 36px; font-weight: bold; letter-spacing: 8px; color: #1A1A1A;">
                                {{ code }}
                            </p>
                        </td>
                    </tr>"""

EMAIL_BODY_TEMPLATES = {
    "verification_code": "\n\n".join([
        _paragraph("Olá, {{ name }}! Seu código de verificação é:"),
        _CODE_ROW,
        _paragraph("O código expira em 1 hora."),
    ]),
    "password_reset": "\n\n".join([
        _paragraph("Olá, {{ name }}. Recebemos um pedido para redefinir sua senha."),
        email_button("{{ reset_url }}", "Redefinir senha"),
        _DIVIDER,
        _paragraph("O link expira em 1 hora. Se você não fez este pedido, ignore este e-mail."),
    ]),
    "portal_access": "\n\n".join([
        _paragraph("Olá, {{ name }}! {{ doctor_name }} liberou seu acesso ao portal do paciente."),
        email_button("{{ setup_url }}", "Criar minha senha"),
        _DIVIDER,
        _paragraph("O link expira em 24 horas."),
    ]),
}


email_service = EmailService()
