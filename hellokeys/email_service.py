"""
Email delivery through Resend
Statement emails are rendered from an editable template stored in app settings
"""

import html
import logging
from typing import Optional, Union

import resend

from .config import APP_BASE_URL, EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .services.errors import IntegrationError, NotConfiguredError

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY

STATEMENT_TEMPLATE_KEY = "statement_email_template"

DEFAULT_STATEMENT_TEMPLATE = {
    "subject": "Votre relevé Hello Keys pour {{period}} est disponible",
    "body": (
        "Bonjour {{userName}},\n\n"
        "Votre nouveau relevé pour la période de {{period}} est disponible en cliquant "
        "sur le lien ci-dessous et sur votre espace client.\n\n"
        "Cliquez ici pour télécharger votre relevé : {{pdfLink}}\n\n"
        "Connectez-vous pour consulter tous vos relevés : {{appUrl}}/finances\n\n"
        "Cordialement,\n"
        "L'équipe Hello Keys"
    ),
}


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    html_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email using Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        html_content: HTML body
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise NotConfiguredError("RESEND_API_KEY n'est pas configuré.")

    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Failed to send email via Resend: {e}")
        raise IntegrationError(f"Échec de l'envoi de l'e-mail: {e}", status_code=502) from e


def render_statement_email(
    template: Optional[dict],
    user_name: str,
    period: str,
    pdf_link: str,
    app_url: str = APP_BASE_URL,
) -> tuple[str, str]:
    """
    Fill the statement template placeholders.

    Returns:
        Tuple of (subject, html_body); newlines in the body become <br>
    """
    template = template or DEFAULT_STATEMENT_TEMPLATE
    subject = template.get("subject") or DEFAULT_STATEMENT_TEMPLATE["subject"]
    body = template.get("body") or DEFAULT_STATEMENT_TEMPLATE["body"]

    subject = subject.replace("{{userName}}", user_name).replace("{{period}}", period)

    replacements = {
        "{{userName}}": html.escape(user_name),
        "{{period}}": html.escape(period),
        "{{appUrl}}": app_url,
        "{{pdfLink}}": pdf_link,
    }
    for placeholder, value in replacements.items():
        body = body.replace(placeholder, value)

    return subject, body.replace("\n", "<br>")
