"""Tests for email service and templates."""

from unittest.mock import patch

import pytest
from django.core import mail
from django.test import override_settings

from core.services.email_service import EmailService, mask_email
from tests.factories import UserFactory


@pytest.mark.django_db
class TestEmailService:
    """Test email service functionality."""

    @override_settings(EMAIL_BACKEND='django.core.mail.backends.locmem.EmailBackend')
    def test_send_voting_opened_email(self):
        user = UserFactory(email='test@example.com')

        result = EmailService.send_voting_opened_email(
            recipient_email=user.email,
            recipient_name='Ana',
            group_name='Platform team',
            voting_date='2024-01-01',
            action_url='http://example.com/team/1/2/vote'
        )

        assert result is True
        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == [user.email]
        assert 'Platform team' in message.subject
        assert 'http://example.com/team/1/2/vote' in message.alternatives[0][0]
        assert 'Ana' in message.body

    @override_settings(EMAIL_BACKEND='django.core.mail.backends.locmem.EmailBackend')
    def test_send_group_invitation_email(self):
        result = EmailService.send_group_invitation_email(
            recipient_email='new@example.com',
            inviting_user_name='Ana',
            group_name='Platform team',
            action_url='http://example.com/team/1/accept?new=true&otp=abc'
        )

        assert result is True
        assert mail.outbox[0].subject == 'Ana invited you to join Platform team'
        assert mail.outbox[0].alternatives[0][1] == 'text/html'

    def test_invalid_email_is_not_sent(self):
        result = EmailService.send_email('not-an-email', 'voting_opened', {})

        assert result is False
        assert len(mail.outbox) == 0

    @override_settings(EMAIL_RATE_LIMIT=2)
    def test_rate_limit(self):
        for _ in range(2):
            assert EmailService.send_email('test@example.com', 'voting_opened', {})

        assert EmailService.send_email('test@example.com', 'voting_opened', {}) is False
        assert len(mail.outbox) == 2

    def test_missing_template(self):
        assert EmailService.send_email('test@example.com', 'does_not_exist', {}) is False

    def test_transport_failure_returns_false(self):
        with patch('core.services.email_service.EmailMultiAlternatives.send', side_effect=OSError('down')):
            result = EmailService.send_email('test@example.com', 'voting_opened', {})

        assert result is False

    def test_render_subject_is_one_unescaped_line(self):
        rendered = EmailService.render('group_invitation', {
            'inviting_user_name': 'Ana',
            'group_name': 'R&D',
            'action_url': 'http://example.com',
        })

        assert rendered.subject == 'Ana invited you to join R&D'
        assert 'R&amp;D' in rendered.html
        assert 'Ana has invited you' in rendered.text

    def test_mask_email(self):
        assert mask_email('someone@example.com') == 'som***@***'
