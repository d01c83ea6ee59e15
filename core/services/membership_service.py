"""
Group membership service.

Membership queries shared by the voting and invitation services, plus the
admin guards for adding members and leaving a group.
"""

import logging

from django.db import transaction
from django.utils import timezone

from core.models import Group, Membership, User
from core.results import Check, ErrorCode, Result

logger = logging.getLogger(__name__)


class MembershipService:
    """Membership rules"""

    @staticmethod
    def is_member(user: User, group: Group) -> bool:
        """Active (non pending) membership of ``user`` in ``group``."""
        if user is None or group is None:
            return False
        return Membership.objects.active().filter(user=user, group=group).exists()

    @staticmethod
    def is_admin(user: User, group: Group) -> bool:
        return Membership.objects.active().admins().filter(user=user, group=group).exists()

    @staticmethod
    def add_user_to_group(current_user: User, user: User, group: Group) -> Result[Membership]:
        """
        Add ``user`` to ``group`` as an active member.

        Only admins of the group can add members.
        """
        return Result.check_with(
            group,
            [
                lambda g: Check.check_is_true(
                    MembershipService.is_admin(current_user, g), ErrorCode.NOT_AN_ADMIN
                ),
                lambda g: Check.check_is_false(
                    Membership.objects.filter(user=user, group=g).exists(),
                    ErrorCode.USER_ALREADY_ON_GROUP,
                ),
            ],
            lambda g: Membership.objects.create(
                user=user,
                group=g,
                acceptance_pending=False,
                invited_by=current_user,
                member_from=timezone.now(),
            ),
        )

    @staticmethod
    def _remove_membership(membership: Membership) -> bool:
        membership.delete()
        return True

    @staticmethod
    def leave_group(user: User, group: Group) -> Result[bool]:
        """
        Remove ``user`` from ``group``.

        The group must keep at least one admin, so its only admin cannot
        leave while other members remain. Group memberships are locked while
        deciding.
        """
        with transaction.atomic():
            memberships = list(Membership.objects.select_for_update().filter(group=group))
            own = next((m for m in memberships if m.user_id == user.id), None)
            admin_count = sum(1 for m in memberships if m.is_admin)

            result = Result.check_with(
                own,
                [
                    lambda m: Check.check_is_true(m is not None, ErrorCode.USER_NOT_IN_GROUP),
                    lambda m: Check.check_is_false(
                        m.is_admin and admin_count == 1 and len(memberships) > 1,
                        ErrorCode.UNIQUE_ADMIN,
                    ),
                ],
                MembershipService._remove_membership,
            )

        if result.is_success:
            logger.info(f"User {user.id} left group {group.id}")
        return result
