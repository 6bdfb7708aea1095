"""Celery tasks for notifications."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import send_template_email

logger = logging.getLogger(__name__)


@shared_task(name="notifications.send_template_email")
def send_template_email_task(template: str, variables: dict, recipient: str) -> bool:
    return send_template_email(template, variables, recipient)
