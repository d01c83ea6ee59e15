"""
Invitation lifecycle for group memberships.

A pending membership starts with no code ("never invited"), receives a
hashed single-use code from the invitation scan, and becomes active when the
invited user redeems the code. Redeeming clears the code, so the same code
can never be used twice.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from django.db import transaction
from django.utils import timezone

from core.models import Group, Membership, User
from core.results import Check, ErrorCode, Result
from core.services.membership_service import MembershipService

logger = logging.getLogger(__name__)


class InvitationService:
    """
    Invitation business logic: inviting, redeeming and activating.
    """

    @staticmethod
    def activate_membership(membership: Membership, now: Optional[datetime] = None) -> Membership:
        """
        Turn a pending membership into an active one.

        Clears the invitation code and records the acceptance time. Calling it
        on an already active membership changes nothing.

        Args:
            membership: Membership to activate
            now: Acceptance time (defaults to the current time)

        Returns:
            The (now active) membership
        """
        if not membership.acceptance_pending:
            return membership

        membership.acceptance_pending = False
        membership.invitation_otp = None
        membership.member_from = now or timezone.now()
        membership.save(update_fields=["acceptance_pending", "invitation_otp", "member_from"])

        logger.info(f"Membership {membership.id} activated in group {membership.group_id}")
        return membership

    @staticmethod
    def accept_invitation(user: User, otp: str, now: Optional[datetime] = None) -> Result[Membership]:
        """
        Redeem an invitation code.

        Args:
            user: Invited user
            otp: Code received in the invitation link

        Returns:
            Result with the active membership, NOT_FOUND when no pending
            membership of ``user`` holds ``otp``
        """
        with transaction.atomic():
            membership = Membership.objects.select_for_update().find_by_user_and_otp(user, otp)

            return Result.check_with(
                membership,
                [lambda m: Check.check_is_true(m is not None, ErrorCode.NOT_FOUND)],
                lambda m: InvitationService.activate_membership(m, now),
            )

    @staticmethod
    def _get_or_register_user(email: str) -> User:
        user = User.objects.filter(email__iexact=email).first()
        if user is not None:
            return user

        user = User(username=email, email=email, registration_pending=True)
        user.set_unusable_password()
        user.save()

        logger.info(f"Pre-registered user {user.id} from an invitation")
        return user

    @staticmethod
    def _invite_user(user: User, group: Group, current_user: User) -> None:
        membership = Membership.objects.filter(user=user, group=group).first()

        if membership is None:
            Membership.objects.create(
                user=user,
                group=group,
                acceptance_pending=True,
                invitation_otp=None,
                invited_by=current_user,
            )
            return

        if membership.acceptance_pending:
            # Back to "never invited": the next scan issues a fresh code
            membership.invitation_otp = None
            membership.otp_created_at = None
            membership.invited_by = current_user
            membership.save(update_fields=["invitation_otp", "otp_created_at", "invited_by"])

    @staticmethod
    def invite_members(emails: Iterable[str], group: Group, current_user: User) -> Result[bool]:
        """
        Invite a list of email addresses to ``group``.

        Unknown addresses are pre-registered as pending users. Pending members
        are reset so they get a new invitation code; active members are left
        alone. Emails are sent later by the invitation scan.

        Returns:
            Result with True, NOT_AN_ADMIN when ``current_user`` does not
            administer the group
        """

        def invite_all(g: Group) -> bool:
            addresses = {email.strip().lower() for email in emails if email and email.strip()}
            with transaction.atomic():
                for email in sorted(addresses):
                    user = InvitationService._get_or_register_user(email)
                    InvitationService._invite_user(user, g, current_user)

            logger.info(f"User {current_user.id} invited {len(addresses)} addresses to group {g.id}")
            return True

        return Result.check_with(
            group,
            [
                lambda g: Check.check_is_true(
                    MembershipService.is_admin(current_user, g), ErrorCode.NOT_AN_ADMIN
                ),
            ],
            invite_all,
        )
