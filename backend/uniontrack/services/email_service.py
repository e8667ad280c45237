"""
Service d'envoi d'emails SMTP.
Confirmations de check-in et liens de connexion (chemin de développement).
"""

import logging
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from uniontrack.config import settings

logger = logging.getLogger(__name__)


def _send(msg: MIMEMultipart) -> None:
    """Connexion SMTP et envoi. Lève une exception en cas d'échec."""
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        if settings.SMTP_USERNAME:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)


def _html_message(to_email: str, subject: str, html_content: str) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(html_content, "html", "utf-8"))
    return msg


def send_checkin_confirmation(
    to_email: str,
    member_name: str,
    event_title: str,
    checked_in_at: datetime,
) -> None:
    """
    Confirme au membre que sa présence a été enregistrée.
    Lève une exception en cas d'échec SMTP (l'appelant décide si c'est bloquant).
    """
    html_content = f"""
    <html>
      <body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: auto;">
        <h2 style="color: #1a73e8;">UnionTrack — Présence confirmée</h2>
        <p>Bonjour {member_name},</p>
        <p>
          Votre présence à <strong>{event_title}</strong> a bien été enregistrée
          le <strong>{checked_in_at.strftime('%d/%m/%Y à %H:%M')}</strong> (UTC).
        </p>
        <hr style="border: none; border-top: 1px solid #eee;" />
        <p style="font-size: 12px; color: #888;">
          Ce message est généré automatiquement par UnionTrack. Ne pas répondre à cet email.
        </p>
      </body>
    </html>
    """
    _send(_html_message(to_email, f"UnionTrack — Présence confirmée : {event_title}", html_content))
    logger.info("Confirmation de check-in envoyée à %s pour %s", to_email, event_title)


def send_magic_link_email(to_email: str, member_name: str, link: str, expires_in_minutes: int) -> None:
    """Envoie le lien de connexion à usage unique."""
    html_content = f"""
    <html>
      <body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: auto;">
        <h2 style="color: #1a73e8;">UnionTrack — Connexion</h2>
        <p>Bonjour {member_name},</p>
        <p>Cliquez sur le lien ci-dessous pour vous connecter. Il expire dans {expires_in_minutes} minutes
           et ne peut être utilisé qu'une seule fois.</p>
        <p><a href="{link}">Se connecter à UnionTrack</a></p>
      </body>
    </html>
    """
    _send(_html_message(to_email, "UnionTrack — Votre lien de connexion", html_content))
    logger.info("Lien de connexion envoyé à %s", to_email)
