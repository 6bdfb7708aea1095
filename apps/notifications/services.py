"""Email delivery for booking notifications."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.template.loader import render_to_string  # type: ignore
from django.utils.html import strip_tags  # type: ignore

logger = logging.getLogger(__name__)

# Subject line of each email template, formatted with the template variables.
EMAIL_SUBJECTS = {
    "booking_created": "Booking #{code} received",
    "booking_cancelled": "Booking #{code} cancelled",
    "payment_received": "Payment received for booking #{code}",
}


def send_template_email(template: str, variables: dict, recipient: str) -> bool:
    """
    Render ``template`` with ``variables`` and send it to ``recipient``.

    Returns:
        bool: True if the email was handed to the mail backend
    """
    if template not in EMAIL_SUBJECTS:
        raise ValueError(f"Unknown email template '{template}'")
    if not recipient:
        logger.info(f"Skipping '{template}' email: no recipient")
        return False

    try:
        subject = EMAIL_SUBJECTS[template].format(**variables)
        html_message = render_to_string(f"notifications/email/{template}.html", variables)
        send_mail(
            subject=subject,
            message=strip_tags(html_message),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient],
            html_message=html_message,
            fail_silently=False,
        )
    except Exception as e:
        logger.error(f"Failed to send '{template}' email to {recipient}: {e}", exc_info=True)
        return False

    logger.info(f"Email '{template}' sent to {recipient}")
    return True
