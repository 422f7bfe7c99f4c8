import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

RESET_LINK_LIFETIME_HINT = "This link stops working once it has been used or after your password changes."


def send_password_reset_email(user, reset_url):
    body = (
        f"Hi {user.username},\n\n"
        "You asked to reset your Game Hub password. Open the link below to choose a new one:\n\n"
        f"{reset_url}\n\n"
        f"{RESET_LINK_LIFETIME_HINT}\n"
        "If you didn't request this, you can ignore this email.\n\n"
        "Game Hub Team"
    )
    sent = send_mail(
        "Reset your Game Hub password",
        body,
        settings.DEFAULT_FROM_EMAIL,
        [user.email],
        fail_silently=False,
    )
    logger.info("Password reset email sent to user %s", user.pk)
    return sent


def send_password_reset_confirmation(user):
    body = (
        f"Hi {user.username},\n\n"
        "Your Game Hub password has been changed.\n"
        "If you didn't make this change, contact support immediately.\n\n"
        "Game Hub Team"
    )
    sent = send_mail(
        "Your Game Hub password was reset",
        body,
        settings.DEFAULT_FROM_EMAIL,
        [user.email],
        fail_silently=False,
    )
    logger.info("Password reset confirmation sent to user %s", user.pk)
    return sent
