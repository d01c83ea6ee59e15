"""Tests for model constraints and helpers."""

from datetime import time
from io import StringIO

import pytest
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.db import IntegrityError
from django.test import override_settings

from core.models import Group, Membership, User, Vote
from tests.factories import GroupFactory, MembershipFactory, UserFactory, VoteFactory


@pytest.mark.django_db
class TestGroup:
    def test_unknown_weekday_is_rejected(self):
        group = Group(name="Team", voting_days=["MONDAY", "FUNDAY"], voting_time=time(9, 0))

        with pytest.raises(ValidationError):
            group.full_clean()

    def test_valid_schedule(self):
        group = Group(name="Team", voting_days=["MONDAY", "SUNDAY"], voting_time=time(9, 0))

        group.full_clean()

    def test_zero_duration_is_rejected(self):
        with pytest.raises(IntegrityError):
            GroupFactory(voting_duration=0)


@pytest.mark.django_db
class TestMembership:
    def test_user_once_per_group(self, group, member):
        with pytest.raises(IntegrityError):
            MembershipFactory(group=group, user=member)

    def test_find_by_user_and_otp(self, group):
        membership = MembershipFactory(group=group, acceptance_pending=True, invitation_otp="code")

        assert membership.is_invited
        assert Membership.objects.find_by_user_and_otp(membership.user, "code") == membership
        assert Membership.objects.find_by_user_and_otp(membership.user, "") is None


@pytest.mark.django_db
class TestVote:
    def test_score_range_constraint(self, voting):
        with pytest.raises(IntegrityError):
            VoteFactory(voting=voting, score=6)

    def test_one_attributed_vote_per_user(self, voting):
        user = UserFactory()
        VoteFactory(voting=voting, user=user)

        with pytest.raises(IntegrityError):
            VoteFactory(voting=voting, user=user)

    def test_many_anonymous_votes(self, voting):
        VoteFactory.create_batch(2, voting=voting, user=None)

        assert Vote.objects.filter(voting=voting, user__isnull=True).count() == 2

    def test_str(self, voting):
        assert "anonymous" in str(VoteFactory(voting=voting, user=None))


@pytest.mark.django_db
class TestSchema:
    def test_system_checks_pass(self):
        call_command("check", fail_level="ERROR")

    def test_table_names_do_not_clash(self):
        m2m_tables = {
            field.remote_field.through._meta.db_table
            for model in (User, Membership)
            for field in model._meta.many_to_many
        }

        assert Membership._meta.db_table not in m2m_tables

    @override_settings(MIGRATION_MODULES={})
    def test_migrations_match_models(self):
        out = StringIO()

        call_command("makemigrations", "core", "--check", "--dry-run", stdout=out)

        assert "No changes detected" in out.getvalue()
