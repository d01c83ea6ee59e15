"""
Error-as-value vocabulary shared by every service in the platform.

A ``Check`` is the outcome of a single validation (empty or carrying one
``Error``). ``Result.check_with`` runs an ordered list of checkers against an
input, stops at the first failing check and only calls the success-producing
function when every check passed.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Error:
    """A domain error: stable code plus a human readable message."""

    code: str
    message: str


class ErrorCode:
    """Domain errors returned by the services."""

    NOT_FOUND = Error("API_ERRORS.NOT_FOUND", "The element can't be found")
    USER_NOT_IN_GROUP = Error(
        "API_ERRORS.USER_NOT_IN_GROUP", "The user is not a member of the group"
    )
    NOT_AN_ADMIN = Error("API_ERRORS.NOT_AN_ADMIN", "The user is not an admin on the group")
    USER_ALREADY_ON_GROUP = Error(
        "API_ERRORS.USER_ALREADY_ON_GROUP", "The user is already on the group"
    )
    UNIQUE_ADMIN = Error(
        "API_ERRORS.UNIQUE_ADMIN", "The user is the only admin left in the group"
    )
    SCORE_IS_INVALID = Error("API_ERRORS.SCORE_IS_INVALID", "Score must be between 1 and 5")
    USER_ALREADY_VOTED = Error("API_ERRORS.USER_ALREADY_VOTED", "User already voted")
    VOTING_HAS_EXPIRED = Error("API_ERRORS.VOTING_HAS_EXPIRED", "Current voting has expired")
    ANONYMOUS_VOTE_NOT_ALLOWED = Error(
        "API_ERRORS.ANONYMOUS_VOTE_NOT_ALLOWED", "Voting doesn't allow anonymous votes"
    )
    NOT_SAME_USER = Error(
        "API_ERRORS.NOT_SAME_USER", "Vote seems to be done on behalf of someone else"
    )
    VOTE_DOESNT_BELONG_TO_VOTING = Error(
        "API_ERRORS.VOTE_DOESNT_BELONG_TO_VOTING",
        "The current vote doesn't belong to the target voting",
    )
    BAD_CREDENTIALS = Error(
        "API_ERRORS.BAD_CREDENTIALS", "Provided credentials are not valid"
    )
    SAME_PASSWORD = Error(
        "API_ERRORS.SAME_PASSWORD", "New password must differ from the current one"
    )


@dataclass(frozen=True)
class Check:
    """Outcome of one validation. ``error`` is None when the check passed."""

    error: Optional[Error] = None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @classmethod
    def check_is_true(cls, condition: bool, error: Error) -> "Check":
        return cls(None if condition else error)

    @classmethod
    def check_is_false(cls, condition: bool, error: Error) -> "Check":
        return cls.check_is_true(not condition, error)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a success value or a single domain error."""

    success: Optional[T] = None
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(success=value)

    @classmethod
    def fail(cls, error: Error) -> "Result[Any]":
        return cls(error=error)

    def map(self, func: Callable[[T], U]) -> "Result[U]":
        if self.has_error:
            return Result.fail(self.error)
        return Result.ok(func(self.success))

    def flat_map(self, func: Callable[[T], "Result[U]"]) -> "Result[U]":
        if self.has_error:
            return Result.fail(self.error)
        return func(self.success)

    @staticmethod
    def check_with(
        value: U,
        checkers: Iterable[Callable[[U], Check]],
        on_success: Callable[[U], T],
    ) -> "Result[T]":
        """
        Run ``checkers`` against ``value`` in order.

        Args:
            value: Input every checker receives
            checkers: Functions returning a Check, evaluated lazily
            on_success: Produces the success value once all checks passed

        Returns:
            Result holding the first failing check's error, or the output of
            ``on_success``
        """
        for checker in checkers:
            check = checker(value)
            if check.has_error:
                return Result.fail(check.error)
        return Result.ok(on_success(value))
