"""Concurrent owner resolution.

Resolves the owners of a path into identity records:

1. Select the last rule matching the path (synchronous)
2. Spawn one task per owner token of that rule
3. Teams fan out into one further task per member
4. Collect identities and errors until every task finishes, the
   deadline passes, or the caller signals cancellation

Errors from one owner never stop its siblings; the caller receives the
partial identities together with every error.
"""

import asyncio
import time
from collections.abc import Coroutine, Sequence
from functools import partial
from typing import Any
from uuid import uuid4

from email_validator import EmailNotValidError, validate_email

from ..config import get_settings
from ..directory.base import DirectoryService
from ..errors import InvalidEmailError, NoMatchingRuleError, TeamNotFoundError
from ..logging import (
    get_context_logger,
    log_lookup_error,
    log_resolution_complete,
    log_resolution_start,
)
from ..models import IdentityRecord, OwnershipRule, ResolutionOutcome
from .matcher import select_rule
from .tokens import Email, TeamRef, UserHandle, classify

logger = get_context_logger(__name__)

# Queued after the last outstanding task finishes
_DONE = object()


class ResolutionRun:
    """Task bookkeeping for a single ``match`` call.

    All tasks spawned for the run, including those spawned recursively for
    team members, report into one queue. An outstanding-task counter
    decides when the run is finished: when it drops to zero a sentinel is
    queued behind the last result.
    """

    def __init__(self, directory: DirectoryService, max_concurrency: int):
        self.run_id = uuid4().hex[:12]
        self.directory = directory
        self.limiter = asyncio.Semaphore(max_concurrency)
        self._results: asyncio.Queue = asyncio.Queue()
        self._tasks: set[asyncio.Task] = set()
        self._outstanding = 0

    @property
    def outstanding(self) -> int:
        """Number of spawned tasks that have not finished yet."""
        return self._outstanding

    def spawn(self, coro: Coroutine[Any, Any, None], label: str) -> None:
        """Run ``coro`` as a task of this run.

        Any exception it raises is queued as an error for the run.
        """
        self._outstanding += 1
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(partial(self._task_done, label))

    def emit(self, identity: IdentityRecord) -> None:
        self._results.put_nowait(identity)

    def _task_done(self, label: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled():
            error = task.exception()
            if error is not None:
                log_lookup_error(self.run_id, label, error)
                self._results.put_nowait(error)
        self._outstanding -= 1
        if self._outstanding == 0:
            self._results.put_nowait(_DONE)

    async def collect(self, outcome: ResolutionOutcome) -> None:
        """Drain results into ``outcome`` until every task has finished.

        Results are appended as they arrive, so a cancelled collection
        leaves everything received so far in ``outcome``.
        """
        if self._outstanding == 0 and self._results.empty():
            return
        while True:
            item = await self._results.get()
            if item is _DONE:
                return
            if isinstance(item, IdentityRecord):
                outcome.identities.append(item)
            else:
                outcome.errors.append(item)

    async def cancel(self) -> None:
        """Cancel every unfinished task and wait for them to unwind."""
        pending = [task for task in self._tasks if not task.done()]
        if not pending:
            return
        logger.debug(
            f"Cancelling {len(pending)} in-flight lookup(s)",
            extra={"run_id": self.run_id, "pending": len(pending)},
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)


class OwnerResolver:
    """Resolves CODEOWNERS owners into people through a directory service.

    The directory is injected and never stored globally, so several
    resolvers against different directories can run side by side.
    """

    def __init__(
        self,
        directory: DirectoryService,
        max_concurrency: int | None = None,
    ):
        """Initialize the resolver.

        Args:
            directory: Directory used for team and user lookups
            max_concurrency: Maximum directory calls in flight per run
                (default from settings)
        """
        if max_concurrency is None:
            max_concurrency = get_settings().max_concurrency
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.directory = directory
        self.max_concurrency = max_concurrency

    async def match(
        self,
        rules: Sequence[OwnershipRule],
        path: str,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ResolutionOutcome:
        """Resolve the owners of ``path``.

        Args:
            rules: Ownership rules in manifest order
            path: Repository-relative file path
            timeout: Seconds to wait for lookups; ``None`` waits for all
            cancel_event: Setting this event stops the run early

        Returns:
            Identities and errors. If no rule matches, the only error is a
            ``NoMatchingRuleError`` and no lookup is made. If the run is cut
            short, unfinished lookups are cancelled and ``timed_out`` or
            ``cancelled`` is set.
        """
        outcome = ResolutionOutcome()
        try:
            rule = select_rule(rules, path)
        except NoMatchingRuleError as e:
            logger.info(str(e), extra={"path": path})
            outcome.errors.append(e)
            return outcome
        outcome.rule = rule

        run = ResolutionRun(self.directory, self.max_concurrency)
        log_resolution_start(run.run_id, path, rule.pattern, len(rule.owners))
        started = time.monotonic()

        for owner in rule.owners:
            run.spawn(self._expand_owner(run, owner), owner)

        collector = asyncio.create_task(run.collect(outcome))
        waiters = {collector}
        cancel_waiter = None
        if cancel_event is not None:
            cancel_waiter = asyncio.create_task(cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not collector.done():
                if cancel_waiter is not None and cancel_waiter.done():
                    outcome.cancelled = True
                else:
                    outcome.timed_out = True
                collector.cancel()
            if cancel_waiter is not None:
                cancel_waiter.cancel()
            await asyncio.gather(
                *(t for t in (collector, cancel_waiter) if t is not None),
                return_exceptions=True,
            )
            await run.cancel()

        log_resolution_complete(
            run.run_id,
            len(outcome.identities),
            len(outcome.errors),
            time.monotonic() - started,
            timed_out=outcome.timed_out,
            cancelled=outcome.cancelled,
        )
        return outcome

    async def _expand_owner(self, run: ResolutionRun, raw: str) -> None:
        token = classify(raw)
        if isinstance(token, TeamRef):
            await self._expand_team(run, token)
        elif isinstance(token, UserHandle):
            await self._fetch_user(run, token.login)
        elif isinstance(token, Email):
            self._expand_email(run, token)

    async def _expand_team(self, run: ResolutionRun, team_ref: TeamRef) -> None:
        async with run.limiter:
            teams = await run.directory.list_teams(team_ref.org)

        # Slugs are compared exactly, GitHub always lowercases them
        team = next((t for t in teams if t.slug == team_ref.slug), None)
        if team is None:
            raise TeamNotFoundError(team_ref.org, team_ref.slug)

        async with run.limiter:
            members = await run.directory.list_team_members(team.id)

        logger.debug(
            f"Expanding {team_ref} into {len(members)} member(s)",
            extra={"run_id": run.run_id, "team_id": team.id},
        )
        for member in members:
            run.spawn(self._fetch_user(run, member.login), f"@{member.login}")

    async def _fetch_user(self, run: ResolutionRun, login: str) -> None:
        async with run.limiter:
            identity = await run.directory.get_user(login)
        run.emit(identity)

    def _expand_email(self, run: ResolutionRun, email: Email) -> None:
        # Directories cannot be searched by email, so the address stands alone
        try:
            validated = validate_email(
                email.address,
                allow_display_name=True,
                check_deliverability=False,
                globally_deliverable=False,
                test_environment=True,
            )
        except EmailNotValidError as e:
            raise InvalidEmailError(email.address, str(e)) from e
        # original is the bare address as written, without any display name
        run.emit(IdentityRecord(email=validated.original))


async def resolve_owners(
    directory: DirectoryService,
    rules: Sequence[OwnershipRule],
    path: str,
    timeout: float | None = None,
    max_concurrency: int | None = None,
) -> ResolutionOutcome:
    """Resolve the owners of ``path`` with a one-off resolver."""
    resolver = OwnerResolver(directory, max_concurrency=max_concurrency)
    return await resolver.match(rules, path, timeout=timeout)
