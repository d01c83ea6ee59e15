"""
Celery tasks for async operations.

Handles the periodic voting and invitation scans plus the notification emails
they trigger.
"""

import logging
from celery import shared_task
from django.db import DatabaseError
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task
def schedule_votings():
    """
    Periodic task (every 30 seconds):
    - Find groups whose voting window is open and has no voting yet
    - Create the voting and queue its notification
    """
    from core.services.voting_scheduler import VotingScheduler

    try:
        created = VotingScheduler.schedule_votings(timezone.now())
    except DatabaseError:
        logger.exception("Voting scheduling tick failed")
        raise

    return f"Opened {len(created)} votings"


@shared_task
def schedule_invitations():
    """
    Periodic task (every 30 seconds):
    - Find pending memberships that were never invited
    - Give each one an invitation code and queue the invitation email
    """
    from core.services.invitation_scanner import InvitationScanner

    try:
        claimed = InvitationScanner.schedule_invitations(timezone.now())
    except DatabaseError:
        logger.exception("Invitation scan failed")
        raise

    return f"Sent {len(claimed)} invitations"


@shared_task
def notify_voting_members(voting_id: int):
    """
    Email every active member of the group that a voting is open.

    Args:
        voting_id: ID of the newly opened voting
    """
    from core.models import Membership, Voting
    from core.services.email_service import EmailService
    from core.utils.urls import voting_url

    try:
        voting = Voting.objects.select_related("group").get(id=voting_id)
    except Voting.DoesNotExist:
        return f"Voting {voting_id} not found"

    group = voting.group
    action_url = voting_url(group.id, voting.id)
    voting_date = timezone.localtime(voting.created_at).strftime("%Y-%m-%d")

    sent_count = 0
    memberships = Membership.objects.active().filter(group=group).select_related("user")
    for membership in memberships:
        user = membership.user
        try:
            sent = EmailService.send_voting_opened_email(
                recipient_email=user.email,
                recipient_name=user.display_name,
                group_name=group.name,
                voting_date=voting_date,
                action_url=action_url,
            )
        except Exception as e:
            logger.error(f"Error notifying user {user.id} of voting {voting_id}: {e}")
            continue

        if sent:
            sent_count += 1

    logger.info(f"Voting {voting_id} notification sent to {sent_count} members of {group.name}")

    return f"Notified {sent_count} members of voting {voting_id}"


@shared_task
def send_group_invitation(membership_id: int):
    """
    Email the invitation link of a pending membership.

    Args:
        membership_id: ID of the membership that just got its code
    """
    from core.models import Membership
    from core.services.email_service import EmailService
    from core.utils.urls import accept_group_url

    try:
        membership = Membership.objects.select_related("user", "group", "invited_by").get(
            id=membership_id
        )
    except Membership.DoesNotExist:
        return f"Membership {membership_id} not found"

    if not membership.acceptance_pending or not membership.invitation_otp:
        return f"Membership {membership_id} has no pending invitation"

    user = membership.user
    inviter = membership.invited_by
    action_url = accept_group_url(
        membership.group_id, membership.invitation_otp, user.registration_pending
    )

    sent = EmailService.send_group_invitation_email(
        recipient_email=user.email,
        inviting_user_name=inviter.display_name if inviter else membership.group.name,
        group_name=membership.group.name,
        action_url=action_url,
    )

    if not sent:
        return f"Invitation for membership {membership_id} not sent"

    return f"Invitation sent for membership {membership_id}"
