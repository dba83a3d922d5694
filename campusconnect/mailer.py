"""
Outbound email for workflow side effects.

Delivery is best-effort: a failed send is logged and reported as ``False``
but never raised, so it cannot undo the state transition that triggered it.
SMTP calls are bounded by ``settings.EMAIL_TIMEOUT``.
"""
import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.db import transaction
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


def send_email(to, subject, body):
    if not to:
        logger.warning(f"Skipping email '{subject}': no recipient address")
        return False

    html_content = render_to_string(
        "emails/notification.html",
        {"subject": subject, "body": body},
    )

    email_message = EmailMultiAlternatives(
        subject=subject,
        body=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to],
    )
    email_message.attach_alternative(html_content, "text/html")

    try:
        sent = email_message.send(fail_silently=False)
    except Exception:
        logger.exception(f"Error sending email '{subject}' to {to}")
        return False

    logger.info(f"Email '{subject}' sent to {to}")
    return bool(sent)


def send_email_on_commit(to, subject, body):
    """Queue ``send_email`` to run only if the surrounding transaction commits."""
    transaction.on_commit(lambda: send_email(to, subject, body))
