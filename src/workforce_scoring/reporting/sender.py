"""Deliver the weekly wellness digest over SMTP.

The digest goes out as a two-part message: a plain-text rendering and
the Jinja2-rendered HTML.  Connection settings are read from the
environment, normally populated from ``.env`` by the CLI:

- ``SMTP_EMAIL`` -- sender address (required)
- ``SMTP_PASSWORD`` -- sender password or app password (required)
- ``SMTP_HOST`` -- server hostname (default: ``smtp.gmail.com``)
- ``SMTP_PORT`` -- server port (default: ``465``)
"""

import logging
import os
import smtplib
from email.message import EmailMessage
from email.utils import formatdate, make_msgid

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Lets mail filters route the digest without parsing the subject.
DIGEST_HEADER = "X-Workforce-Digest"
DIGEST_KIND = "weekly-wellness"

_NON_CONTENT_TAGS = ("style", "script", "title")


def smtp_settings() -> dict:
    """Read the SMTP connection settings from the environment."""
    return {
        "sender": os.environ.get("SMTP_EMAIL", ""),
        "password": os.environ.get("SMTP_PASSWORD", ""),
        "host": os.environ.get("SMTP_HOST", "smtp.gmail.com"),
        "port": int(os.environ.get("SMTP_PORT", "465")),
    }


def html_to_text(html_body: str) -> str:
    """Render the digest HTML as plain text, one block per line.

    Entities escaped by the template (``&amp;``, ``&#39;``) come back as
    the characters they stand for.
    """
    soup = BeautifulSoup(html_body, "html.parser")
    for tag in soup(_NON_CONTENT_TAGS):
        tag.decompose()
    return soup.get_text("\n", strip=True)


def build_digest_message(
    sender: str,
    recipient: str,
    subject: str,
    html_body: str,
) -> EmailMessage:
    """Assemble the multipart/alternative wellness digest."""
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = recipient
    msg["Date"] = formatdate(localtime=True)
    msg["Message-ID"] = make_msgid(domain=sender.rpartition("@")[2] or None)
    msg[DIGEST_HEADER] = DIGEST_KIND

    msg.set_content(html_to_text(html_body))
    msg.add_alternative(html_body, subtype="html")
    return msg


def send_email(recipient: str, subject: str, html_body: str) -> bool:
    """Send the wellness digest to *recipient* via ``SMTP_SSL``.

    Returns:
        ``True`` if the server accepted the message.  Missing settings and
        delivery errors are logged and reported as ``False``; the weekly
        pipeline keeps going either way.
    """
    settings = smtp_settings()

    if not settings["sender"] or not settings["password"]:
        logger.warning(
            "SMTP credentials not configured. "
            "Set SMTP_EMAIL and SMTP_PASSWORD to enable the wellness digest."
        )
        return False
    if not recipient:
        logger.warning("Wellness digest has no recipient; nothing sent.")
        return False

    msg = build_digest_message(settings["sender"], recipient, subject, html_body)

    try:
        with smtplib.SMTP_SSL(settings["host"], settings["port"]) as server:
            server.login(settings["sender"], settings["password"])
            server.send_message(msg)
    except smtplib.SMTPAuthenticationError:
        logger.error(
            "SMTP login refused for %s; wellness digest not sent.",
            settings["sender"],
        )
        return False
    except OSError as exc:
        # smtplib.SMTPException is an OSError subclass.
        logger.error(
            "Could not deliver wellness digest to %s via %s:%d: %s",
            recipient, settings["host"], settings["port"], exc,
        )
        return False

    logger.info("Wellness digest delivered to %s", recipient)
    return True
