"""
Notification emails.

Each notification is a pair of templates under
``templates/email/notifications/``: ``<name>_subject.txt`` and ``<name>.html``.
Delivery is best effort: every failure is logged and reported as ``False``,
never raised to the caller.
"""

from dataclasses import dataclass
from typing import Dict, Optional
import logging
from django.core.mail import EmailMultiAlternatives
from django.core.validators import validate_email as django_validate_email
from django.core.exceptions import ValidationError
from django.template.loader import render_to_string
from django.conf import settings
from django.utils.html import strip_tags
from django.core.cache import cache

logger = logging.getLogger(__name__)

RATE_LIMIT_WINDOW_SECONDS = 3600


def mask_email(email: str) -> str:
    """Mask an address for log lines."""
    return f"{email[:3]}***@***"


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


class EmailService:
    """Renders notification templates and delivers them."""

    @staticmethod
    def validate_email(email: str) -> bool:
        try:
            django_validate_email(email)
        except ValidationError:
            logger.error(f"Invalid email address format: {mask_email(email or '')}")
            return False
        return True

    @staticmethod
    def check_rate_limit(recipient_email: str) -> bool:
        """
        Count one email for ``recipient_email`` in the current window.

        Returns:
            bool: False once ``EMAIL_RATE_LIMIT`` emails were sent to the
            recipient within the last hour
        """
        cache_key = f"email_rate_limit:{recipient_email}"
        sent = cache.get(cache_key, 0)

        if sent >= getattr(settings, 'EMAIL_RATE_LIMIT', 10):
            logger.warning(f"Email rate limit exceeded for recipient: {mask_email(recipient_email)}")
            return False

        cache.set(cache_key, sent + 1, RATE_LIMIT_WINDOW_SECONDS)
        return True

    @staticmethod
    def render(template_name: str, context: Dict) -> RenderedEmail:
        """
        Render the subject and body templates of a notification.

        Args:
            template_name: Notification name (e.g., 'voting_opened')
            context: Template context shared by subject and body

        Returns:
            RenderedEmail with a single line subject and HTML + text bodies
        """
        base = f'email/notifications/{template_name}'
        subject = ' '.join(render_to_string(f'{base}_subject.txt', context).split())
        html = render_to_string(f'{base}.html', {**context, 'subject': subject})
        return RenderedEmail(subject=subject, html=html, text=strip_tags(html))

    @staticmethod
    def send_email(
        recipient_email: str,
        template_name: str,
        context: Dict,
        from_email: Optional[str] = None
    ) -> bool:
        """
        Render notification ``template_name`` and send it to one recipient.

        Args:
            recipient_email: Recipient's email address
            template_name: Notification name (e.g., 'voting_opened')
            context: Context dictionary for template rendering
            from_email: Sender email (defaults to settings.DEFAULT_FROM_EMAIL)

        Returns:
            bool: True if email was sent successfully, False otherwise
        """
        if not EmailService.validate_email(recipient_email):
            return False

        if not EmailService.check_rate_limit(recipient_email):
            return False

        try:
            rendered = EmailService.render(template_name, context)

            message = EmailMultiAlternatives(
                subject=rendered.subject,
                body=rendered.text,
                from_email=from_email or settings.DEFAULT_FROM_EMAIL,
                to=[recipient_email]
            )
            message.attach_alternative(rendered.html, "text/html")
            message.send(fail_silently=False)
        except Exception as e:
            logger.error(f"Error sending '{template_name}' email to {mask_email(recipient_email)}: {e}")
            return False

        logger.info(f"Sent '{template_name}' email to {mask_email(recipient_email)}")
        return True

    @staticmethod
    def send_voting_opened_email(
        recipient_email: str,
        recipient_name: str,
        group_name: str,
        voting_date: str,
        action_url: str
    ) -> bool:
        """Send the 'how do you feel today' email when a voting opens."""
        return EmailService.send_email(
            recipient_email,
            'voting_opened',
            {
                'recipient_name': recipient_name,
                'group_name': group_name,
                'voting_date': voting_date,
                'action_url': action_url,
                'action_text': 'Vote now',
                'title': 'How do you feel today?'
            }
        )

    @staticmethod
    def send_group_invitation_email(
        recipient_email: str,
        inviting_user_name: str,
        group_name: str,
        action_url: str
    ) -> bool:
        """Send invitation to join a group."""
        return EmailService.send_email(
            recipient_email,
            'group_invitation',
            {
                'inviting_user_name': inviting_user_name,
                'group_name': group_name,
                'action_url': action_url,
                'action_text': 'Accept invitation',
                'title': 'You have been invited'
            }
        )
