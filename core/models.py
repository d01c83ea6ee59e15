"""
Core models for the mood voting platform.

Groups schedule recurring voting windows, members score their mood once per
voting, and pending members are onboarded through single-use invitation
codes. The querysets below are the only place where the invariants that
matter under concurrent scans are enforced: unique constraints and
conditional updates at the database, never in-process bookkeeping.
"""

from datetime import datetime, timedelta
from typing import Optional, Tuple

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.services.eligibility import WEEKDAYS, is_eligible, weekday_of, window_bounds

MIN_SCORE = 1
MAX_SCORE = 5


class Weekday(models.TextChoices):
    MONDAY = "MONDAY", "Monday"
    TUESDAY = "TUESDAY", "Tuesday"
    WEDNESDAY = "WEDNESDAY", "Wednesday"
    THURSDAY = "THURSDAY", "Thursday"
    FRIDAY = "FRIDAY", "Friday"
    SATURDAY = "SATURDAY", "Saturday"
    SUNDAY = "SUNDAY", "Sunday"


class User(AbstractUser):
    """
    Platform user.

    Users created from an invitation email before they ever signed up are
    flagged with ``registration_pending``.
    """

    email = models.EmailField(unique=True)
    registration_pending = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "users"
        indexes = [
            models.Index(fields=["created_at"], name="users_created_idx"),
        ]

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username

    def __str__(self):
        return f"{self.username} ({self.email})"


class GroupQuerySet(models.QuerySet):
    def eligible_for_window(self, now: Optional[datetime] = None) -> "GroupQuerySet":
        """
        Groups that must get a new voting at ``now``.

        Only a fast pre-filter: uniqueness of the voting is guaranteed by
        ``Voting.objects.create_if_absent``.
        """
        now = now or timezone.now()
        today = weekday_of(now)

        eligible_ids = []
        for group in self.all():
            if today not in group.voting_days:
                continue
            start, end = window_bounds(now, group.voting_time, group.voting_duration)
            created_ats = group.votings.filter(created_at__range=(start, end)).values_list(
                "created_at", flat=True
            )
            if is_eligible(
                now, group.voting_days, group.voting_time, group.voting_duration, created_ats
            ):
                eligible_ids.append(group.id)

        return self.filter(id__in=eligible_ids)

    def with_voting_in_current_window(self, now: Optional[datetime] = None) -> "GroupQuerySet":
        """Groups that already have a voting inside today's window."""
        now = now or timezone.now()

        group_ids = []
        for group in self.all():
            start, end = window_bounds(now, group.voting_time, group.voting_duration)
            if group.votings.filter(created_at__range=(start, end)).exists():
                group_ids.append(group.id)

        return self.filter(id__in=group_ids)


class Group(models.Model):
    """
    A team whose members share a voting schedule.

    The schedule is a set of weekdays, a time of day and a duration in hours.
    An empty weekday set means the group never opens a voting automatically.
    """

    name = models.CharField(max_length=150)

    anonymous_vote = models.BooleanField(default=False)

    voting_days = models.JSONField(default=list, blank=True)
    voting_time = models.TimeField()
    voting_duration = models.PositiveIntegerField(
        default=24, validators=[MinValueValidator(1)], help_text="Hours"
    )

    created_at = models.DateTimeField(auto_now_add=True)

    objects = GroupQuerySet.as_manager()

    class Meta:
        db_table = "groups"
        constraints = [
            models.CheckConstraint(
                condition=Q(voting_duration__gt=0), name="group_voting_duration_positive"
            ),
        ]

    def clean(self):
        super().clean()
        if not isinstance(self.voting_days, list):
            raise ValidationError({"voting_days": "Voting days must be a list"})
        unknown = [day for day in self.voting_days if day not in WEEKDAYS]
        if unknown:
            raise ValidationError({"voting_days": f"Unknown weekdays: {', '.join(unknown)}"})

    def window_bounds(self, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
        """Today's voting window for this group."""
        return window_bounds(now or timezone.now(), self.voting_time, self.voting_duration)

    def __str__(self):
        return self.name


class MembershipQuerySet(models.QuerySet):
    def active(self):
        return self.filter(acceptance_pending=False)

    def pending(self):
        return self.filter(acceptance_pending=True)

    def admins(self):
        return self.filter(is_admin=True)

    def pending_never_invited(self, group: Group) -> "MembershipQuerySet":
        """Pending memberships of ``group`` that never got an invitation code."""
        return (
            self.filter(group=group, acceptance_pending=True)
            .filter(Q(invitation_otp__isnull=True) | Q(invitation_otp=""))
            .select_related("user", "group", "invited_by")
        )

    def claim_invitation_slot(
        self, membership_id: int, otp: str, now: Optional[datetime] = None
    ) -> bool:
        """
        Store ``otp`` on a never-invited pending membership.

        The null-OTP condition is re-checked inside the UPDATE, so only one of
        several concurrent claimers wins.

        Returns:
            True if this call claimed the slot, False if it was already claimed
        """
        updated = (
            self.filter(id=membership_id, acceptance_pending=True)
            .filter(Q(invitation_otp__isnull=True) | Q(invitation_otp=""))
            .update(invitation_otp=otp, otp_created_at=now or timezone.now())
        )
        return updated == 1

    def find_by_user_and_otp(self, user: User, otp: str) -> Optional["Membership"]:
        if not otp:
            return None
        return self.filter(user=user, invitation_otp=otp).select_related("group").first()


class Membership(models.Model):
    """
    A user's relationship with a group, including invitation state.

    Created pending with no code (never invited), pending with a code
    (invited) or active. The pending -> active transition clears the code.
    """

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="memberships")
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name="memberships")

    is_admin = models.BooleanField(default=False)
    acceptance_pending = models.BooleanField(default=True)

    invitation_otp = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    otp_created_at = models.DateTimeField(null=True, blank=True)
    invited_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invitations_sent",
    )

    member_from = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = MembershipQuerySet.as_manager()

    class Meta:
        db_table = "memberships"
        constraints = [
            models.UniqueConstraint(fields=["user", "group"], name="unique_user_group"),
        ]
        indexes = [
            models.Index(fields=["group", "acceptance_pending"], name="membership_pending_idx"),
        ]

    @property
    def is_invited(self) -> bool:
        return bool(self.invitation_otp)

    def __str__(self):
        state = "pending" if self.acceptance_pending else "active"
        return f"{self.user.username} in {self.group.name} ({state})"


class VotingQuerySet(models.QuerySet):
    def create_if_absent(
        self, group: Group, window_start: datetime, now: Optional[datetime] = None
    ) -> Tuple["Voting", bool]:
        """
        Create the voting of ``group`` for the window starting at ``window_start``.

        Backed by the (group, window_start) unique constraint: a caller that
        loses the race gets the existing row back with ``created=False``.

        Returns:
            Tuple of (voting, created)
        """
        return self.get_or_create(
            group=group,
            window_start=window_start,
            defaults={
                "created_at": now or timezone.now(),
                "duration": group.voting_duration,
            },
        )

    def update_average(self, voting_id: int, average: Optional[int]) -> int:
        return self.filter(id=voting_id).update(average=average)

    def in_range(self, group: Group, start: datetime, end: datetime) -> "VotingQuerySet":
        return self.filter(group=group, created_at__range=(start, end)).order_by("created_at")


class Voting(models.Model):
    """
    One opened voting window of a group.

    Expiry is derived from ``created_at`` and ``duration`` and never stored.
    """

    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name="votings")
    window_start = models.DateTimeField()
    created_at = models.DateTimeField(default=timezone.now)
    duration = models.PositiveIntegerField(validators=[MinValueValidator(1)], help_text="Hours")

    average = models.IntegerField(null=True, blank=True)
    moving_average = models.FloatField(null=True, blank=True)

    objects = VotingQuerySet.as_manager()

    class Meta:
        db_table = "votings"
        constraints = [
            models.UniqueConstraint(
                fields=["group", "window_start"], name="unique_voting_per_window"
            ),
        ]
        indexes = [
            models.Index(fields=["group", "created_at"], name="voting_group_created_idx"),
        ]

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(hours=self.duration)

    def has_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or timezone.now()) > self.expires_at

    def __str__(self):
        return f"Voting of {self.group.name} at {self.created_at:%Y-%m-%d %H:%M}"


class VoteQuerySet(models.QuerySet):
    def find_by_user_and_voting(self, user: User, voting: Voting) -> Optional["Vote"]:
        return self.filter(user=user, voting=voting).first()


class Vote(models.Model):
    """
    A member's mood score in a voting.

    ``user`` is null for anonymous votes. Duplicate protection for those lives
    in ``VoteReceipt`` so the vote itself stays unattributed.
    """

    voting = models.ForeignKey(Voting, on_delete=models.CASCADE, related_name="votes")
    user = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="votes"
    )

    score = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_SCORE), MaxValueValidator(MAX_SCORE)]
    )
    comment = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(default=timezone.now)

    objects = VoteQuerySet.as_manager()

    class Meta:
        db_table = "votes"
        constraints = [
            models.UniqueConstraint(fields=["voting", "user"], name="unique_vote_per_user"),
            models.CheckConstraint(
                condition=Q(score__gte=MIN_SCORE) & Q(score__lte=MAX_SCORE),
                name="vote_score_range",
            ),
        ]
        indexes = [
            models.Index(fields=["voting", "created_at"], name="vote_voting_created_idx"),
        ]

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    def __str__(self):
        author = self.user.username if self.user else "anonymous"
        return f"Vote {self.score} by {author}"


class VoteReceipt(models.Model):
    """
    Proof that a user voted in a voting, kept apart from the Vote row.

    The (voting, user) unique constraint is what rejects a second vote from
    the same user, anonymous or not.
    """

    voting = models.ForeignKey(Voting, on_delete=models.CASCADE, related_name="receipts")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="vote_receipts")
    voted_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "vote_receipts"
        constraints = [
            models.UniqueConstraint(fields=["voting", "user"], name="unique_receipt_per_user"),
        ]

    def __str__(self):
        return f"{self.user.username} voted in voting {self.voting_id}"
