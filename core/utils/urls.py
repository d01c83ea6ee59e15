"""
Front-end links embedded in notification emails.
"""

from urllib.parse import quote

from django.conf import settings


def frontend_url(path: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}{path}"


def voting_url(group_id: int, voting_id: int) -> str:
    return frontend_url(
        settings.FRONTEND_VOTING_PATH.format(group_id=group_id, voting_id=voting_id)
    )


def accept_group_url(group_id: int, otp: str, is_new_user: bool) -> str:
    return frontend_url(
        settings.FRONTEND_ACCEPT_GROUP_PATH.format(
            group_id=group_id,
            is_new_user=str(is_new_user).lower(),
            otp=quote(otp, safe=""),
        )
    )
