"""Tests for the invitation scan."""

from datetime import timedelta
from unittest.mock import patch
from urllib.parse import quote

import pytest
from django.core import mail

from core.models import Membership
from core.services.invitation_scanner import InvitationScanner
from tests.factories import PendingMembershipFactory


@pytest.mark.django_db
class TestScheduleInvitations:
    def test_never_invited_member_gets_code_and_email(self, group, monday_9am):
        membership = PendingMembershipFactory(group=group)

        claimed = InvitationScanner.schedule_invitations(monday_9am)

        assert [m.id for m in claimed] == [membership.id]
        membership.refresh_from_db()
        assert membership.invitation_otp
        assert membership.otp_created_at == monday_9am
        assert membership.acceptance_pending

        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == [membership.user.email]
        assert group.name in message.subject
        assert quote(membership.invitation_otp, safe="") in message.body

    def test_already_invited_member_is_skipped(self, group, monday_9am):
        PendingMembershipFactory(group=group, invitation_otp="existing", otp_created_at=monday_9am)

        assert InvitationScanner.schedule_invitations(monday_9am) == []
        assert mail.outbox == []

    def test_empty_code_counts_as_never_invited(self, group, monday_9am):
        membership = PendingMembershipFactory(group=group, invitation_otp="")

        claimed = InvitationScanner.schedule_invitations(monday_9am)

        assert len(claimed) == 1
        membership.refresh_from_db()
        assert membership.invitation_otp != ""

    def test_active_members_are_ignored(self, group, member, monday_9am):
        assert InvitationScanner.schedule_invitations(monday_9am) == []

    def test_second_scan_sends_nothing(self, group, monday_9am):
        PendingMembershipFactory(group=group)
        InvitationScanner.schedule_invitations(monday_9am)

        assert InvitationScanner.schedule_invitations(monday_9am + timedelta(seconds=30)) == []
        assert len(mail.outbox) == 1

    def test_new_user_link(self, group, monday_9am):
        membership = PendingMembershipFactory(group=group, user__registration_pending=True)

        InvitationScanner.schedule_invitations(monday_9am)

        assert f"/team/{group.id}/accept?new=true" in mail.outbox[0].body
        assert membership.invited_by.display_name in mail.outbox[0].subject

    def test_lost_claim_sends_nothing(self, group, monday_9am):
        PendingMembershipFactory(group=group)

        with patch.object(Membership.objects, "claim_invitation_slot", return_value=False):
            claimed = InvitationScanner.schedule_invitations(monday_9am)

        assert claimed == []
        assert mail.outbox == []

    def test_codes_are_unique(self, group, monday_9am):
        PendingMembershipFactory.create_batch(3, group=group)

        InvitationScanner.schedule_invitations(monday_9am)

        codes = set(Membership.objects.filter(group=group).values_list("invitation_otp", flat=True))
        assert len(codes) == 3


@pytest.mark.django_db
class TestClaimInvitationSlot:
    def test_only_first_claim_wins(self, group, monday_9am):
        membership = PendingMembershipFactory(group=group)

        assert Membership.objects.claim_invitation_slot(membership.id, "first", monday_9am) is True
        assert Membership.objects.claim_invitation_slot(membership.id, "second", monday_9am) is False

        membership.refresh_from_db()
        assert membership.invitation_otp == "first"

    def test_active_membership_cannot_be_claimed(self, group, member, monday_9am):
        membership = Membership.objects.get(user=member, group=group)

        assert Membership.objects.claim_invitation_slot(membership.id, "code", monday_9am) is False
