"""
Voting engine — peer rating with a per-voter cooldown.

A vote moves the votee's rating by exactly one point and stamps the voter's
``last_voted_at``.  Checks run in a fixed order so that the reported error is
deterministic:

1. voter exists and is not soft-deleted
2. votee exists and is not soft-deleted
3. voter is not the votee
4. voter is outside the cooldown window (sliding, measured from the voter's
   own ``last_voted_at``)
5. the value is +1 or -1

Nothing is written unless every check passes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from karma_api.core.clock import as_utc, utcnow
from karma_api.core.config import settings
from karma_api.core.errors import DomainError, ErrorKind
from karma_api.models.user import User
from karma_api.repositories.user import UserStore

logger = logging.getLogger(__name__)

VALID_VOTES = frozenset({1, -1})


def can_user_vote(
    last_voted_at: datetime | None,
    now: datetime,
    cooldown: timedelta,
) -> bool:
    """True when the voter has never voted or the cooldown has elapsed."""
    if last_voted_at is None:
        return True
    return now - as_utc(last_voted_at) >= cooldown


def is_valid_vote(value: object) -> bool:
    # bool is an int subclass; True must not count as +1
    return isinstance(value, int) and not isinstance(value, bool) and value in VALID_VOTES


class VotingEngine:
    def __init__(
        self,
        repository: UserStore,
        clock: Callable[[], datetime] = utcnow,
        cooldown: timedelta | None = None,
    ):
        self._repo = repository
        self._clock = clock
        self.cooldown = cooldown or timedelta(seconds=settings.VOTE_COOLDOWN_SECONDS)

    async def _get_active(self, user_id: str) -> User | None:
        user = await self._repo.get_by_id(user_id)
        if user is None or user.is_deleted:
            return None
        return user

    async def apply_vote(self, voter_id: str, voted_user_id: str, vote_value: int) -> None:
        voter = await self._get_active(voter_id)
        if voter is None:
            raise DomainError(ErrorKind.VOTER_NOT_FOUND)

        votee = await self._get_active(voted_user_id)
        if votee is None:
            raise DomainError(ErrorKind.VOTEE_NOT_FOUND)

        if voter_id == voted_user_id:
            raise DomainError(ErrorKind.SELF_VOTE)

        now = self._clock()
        if not can_user_vote(voter.last_voted_at, now, self.cooldown):
            raise DomainError(ErrorKind.RATE_LIMITED)

        if not is_valid_vote(vote_value):
            raise DomainError(ErrorKind.INVALID_VOTE_VALUE)

        recorded = await self._repo.record_vote(
            voter_id=voter_id,
            votee_id=voted_user_id,
            value=vote_value,
            now=now,
            cooldown=self.cooldown,
        )
        if not recorded:
            # a concurrent vote by the same voter committed first
            raise DomainError(ErrorKind.RATE_LIMITED)

        logger.info("Vote %+d from %s on %s", vote_value, voter_id, voted_user_id)
