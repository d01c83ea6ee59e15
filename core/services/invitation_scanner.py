"""
Invitation scan.

Finds pending memberships that never received an invitation code, gives each
one a fresh hashed code and queues the invitation email. The code is written
with a conditional update so concurrent scans never invite the same
membership twice.
"""

import logging
from datetime import datetime
from typing import List, Optional

from django.utils import timezone

from core.models import Group, Membership
from core.services.crypto_service import CryptoService
from core.tasks import send_group_invitation

logger = logging.getLogger(__name__)


class InvitationScanner:
    """Issues invitation codes to never-invited pending members."""

    @staticmethod
    def _notify(membership: Membership) -> None:
        try:
            send_group_invitation.delay(membership.id)
        except Exception as e:
            logger.error(f"Failed to queue invitation for membership {membership.id}: {e}")

    @staticmethod
    def schedule_invitations(now: Optional[datetime] = None) -> List[Membership]:
        """
        Run one invitation scan.

        Args:
            now: Scan time, stored as the code creation time

        Returns:
            Memberships claimed by this scan (each got a code and an email)
        """
        now = now or timezone.now()
        claimed = []

        for group in Group.objects.all():
            for membership in Membership.objects.pending_never_invited(group):
                otp = CryptoService.hash(CryptoService.random_token())

                if not Membership.objects.claim_invitation_slot(membership.id, otp, now):
                    logger.debug(f"Membership {membership.id} already claimed by another scan")
                    continue

                membership.invitation_otp = otp
                membership.otp_created_at = now

                inviter = membership.invited_by.display_name if membership.invited_by else "someone"
                logger.info(
                    f"Notifying user {membership.user_id} (invited by {inviter}) "
                    f"to join group {group.name}"
                )

                InvitationScanner._notify(membership)
                claimed.append(membership)

        return claimed
