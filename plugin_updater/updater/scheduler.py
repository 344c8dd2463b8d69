"""
Update scheduling.

This module drives the check cycles of the update manager:
- A one-shot initial check once components had time to register
- Periodic check cycles
- Grouping of components by source repository so each repository is
  queried once per cycle
- Staggered start of the repository checks to bound request bursts
- Per-component checks, usable on their own for manual checks
"""

import asyncio
import inspect
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set

from ..config_loader import DEFAULT_UPDATER_CONFIG, GITHUB_API_URL, validate_setting
from ..models.component import ComponentRecord, ComponentRegistry
from .resolver import fetch_latest_version
from .summary import CycleSummary
from .transaction import apply_update, UpdateResult
from .version import compare_versions

logger = logging.getLogger(__name__)

UNRESOLVED_ERROR = 'Could not determine latest version'

Resolver = Callable[..., Awaitable[Optional[str]]]
Transaction = Callable[[ComponentRecord, str, Dict[str, Any]], Awaitable[UpdateResult]]


class SchedulerState(Enum):
    UNINITIALIZED = 'uninitialized'
    INITIALIZING = 'initializing'
    RUNNING = 'running'
    STOPPED = 'stopped'


def group_by_repository(records: Iterable[ComponentRecord]) -> Dict[str, List[ComponentRecord]]:
    """
    Partition components by their ``owner/repository`` key.

    Args:
        records: Components to group

    Returns:
        dict: Repository key to the components sharing it, in first-seen order
    """
    groups: Dict[str, List[ComponentRecord]] = {}
    for record in records:
        groups.setdefault(record.repo_key, []).append(record)
    return groups


class UpdateScheduler:
    """
    Runs update check cycles over a component registry.

    Repository checks of one cycle start ``stagger_delay`` seconds apart and
    may overlap. Components of one repository are checked one after another.
    Checks of the same component never overlap.
    """

    def __init__(
        self,
        registry: ComponentRegistry,
        summary: CycleSummary,
        config: Dict[str, Any],
        resolver: Optional[Resolver] = None,
        transaction: Optional[Transaction] = None,
    ):
        self.registry = registry
        self.summary = summary
        # Shared with the owner; changes apply to future scheduling
        self.config = config
        self.notifier = None
        self.state = SchedulerState.UNINITIALIZED
        self.last_check: Optional[datetime] = None

        self._resolver = resolver or fetch_latest_version
        self._transaction = transaction or apply_update
        self._initial_task: Optional[asyncio.Task] = None
        self._periodic_task: Optional[asyncio.Task] = None
        self._pending_groups: Set[asyncio.Task] = set()
        self._cycles: Set[asyncio.Task] = set()
        self._checks: Set[asyncio.Task] = set()
        self._locks: Dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> bool:
        """
        Arm the initial check and the periodic checks.

        Does nothing if the scheduler is already initializing or running.
        Requires a running event loop; without one the scheduler stays in its
        current state.

        Returns:
            bool: True if the scheduler is initializing or running afterwards
        """
        if self.state in (SchedulerState.INITIALIZING, SchedulerState.RUNNING):
            return True

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, update scheduling deferred until start()")
            return False

        logger.info("Initializing update scheduler...")
        self.state = SchedulerState.INITIALIZING
        self._initial_task = loop.create_task(self._initial_check())
        self._periodic_task = loop.create_task(self._periodic_checks())
        logger.info(
            f"Periodic update checks scheduled every "
            f"{self._duration('check_interval') / 60:g} minutes"
        )
        return True

    def stop(self):
        """
        Stop scheduling.

        Cancels the periodic checks, a pending initial check and repository
        checks still waiting for their stagger delay. Checks already running
        finish normally. Registered components are kept.
        """
        for task in (self._initial_task, self._periodic_task):
            if task is not None and not task.done():
                task.cancel()
        self._initial_task = None
        self._periodic_task = None

        for task in list(self._pending_groups):
            task.cancel()
        self._pending_groups.clear()

        self.state = SchedulerState.STOPPED
        logger.info("Update scheduler stopped")

    def restart(self) -> bool:
        self.stop()
        return self.initialize()

    async def _initial_check(self):
        await asyncio.sleep(self._duration('initial_delay'))
        self._initial_task = None
        if self.state == SchedulerState.INITIALIZING:
            self.state = SchedulerState.RUNNING
        logger.info("Performing initial update check for all components...")
        self.check_all()

    async def _periodic_checks(self):
        while True:
            await asyncio.sleep(self._duration('check_interval'))
            try:
                self.check_all()
            except Exception as e:
                logger.error(f"Error starting periodic update check: {e}")

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def check_all(self) -> Optional[asyncio.Task]:
        """
        Start a check cycle over every enabled component.

        Must be called from a running event loop. Cycles never overlap: while
        one is still running its task is returned instead of starting another.

        Returns:
            asyncio.Task: Finishes once every repository check of the cycle is
                done and the summary was reported. None if updates are
                disabled or there is nothing to check.
        """
        if not self.config.get('enabled', True):
            logger.info("Update checks are disabled, skipping cycle")
            return None

        running = self._running_cycle()
        if running is not None:
            logger.info("Update check cycle already in progress, not starting another")
            return running

        records = [r for r in self.registry.list_all() if not r.disabled]
        if not records:
            return None

        loop = asyncio.get_running_loop()
        groups = group_by_repository(records)
        logger.info(f"Checking updates for {len(records)} components from {len(groups)} repositories...")
        self.last_check = datetime.now()

        stagger_delay = self._duration('stagger_delay')
        group_tasks = []
        for index, (repo_key, members) in enumerate(groups.items()):
            task = loop.create_task(self._run_group(repo_key, members, index * stagger_delay))
            self._pending_groups.add(task)
            group_tasks.append(task)

        cycle = loop.create_task(self._finish_cycle(group_tasks))
        self._cycles.add(cycle)
        cycle.add_done_callback(self._cycles.discard)
        return cycle

    @property
    def cycle_in_progress(self) -> bool:
        return self._running_cycle() is not None

    def _running_cycle(self) -> Optional[asyncio.Task]:
        for cycle in self._cycles:
            if not cycle.done():
                return cycle
        return None

    def _duration(self, key: str) -> float:
        value = self.config.get(key, DEFAULT_UPDATER_CONFIG[key])
        error = validate_setting(key, value)
        if error:
            logger.warning(f"Invalid {key} setting ({error}), using default")
            return DEFAULT_UPDATER_CONFIG[key]
        return value

    async def _run_group(self, repo_key: str, records: List[ComponentRecord], delay: float):
        try:
            if delay > 0:
                await asyncio.sleep(delay)
        finally:
            self._pending_groups.discard(asyncio.current_task())
        await self.check_repository(repo_key, records)

    async def _finish_cycle(self, group_tasks: List[asyncio.Task]) -> Optional[str]:
        results = await asyncio.gather(*group_tasks, return_exceptions=True)
        cancelled = sum(1 for r in results if isinstance(r, asyncio.CancelledError))
        if cancelled:
            logger.info(f"{cancelled} repository check(s) cancelled before starting")

        message = self.summary.report()
        if message:
            await self._notify('on_cycle_summary', message)
        return message

    async def check_repository(self, repo_key: str, records: List[ComponentRecord]):
        """
        Check every component of one repository against a single lookup.

        Args:
            repo_key: ``owner/repository`` key of the group
            records: Components published from that repository
        """
        try:
            first = records[0]
            latest_version = await self._resolve_latest(first.owner, first.repository)

            if not latest_version:
                logger.warning(f"Could not determine latest version for {repo_key}")
                for record in records:
                    self._record_unresolved(record)
                return

            for record in records:
                await self.check_component(record, latest_version)
        except Exception as e:
            logger.error(f"Error checking repository {repo_key}: {e}")

    # ------------------------------------------------------------------
    # Single component
    # ------------------------------------------------------------------

    async def check_component(
        self,
        record: ComponentRecord,
        latest_version: Optional[str] = None,
    ) -> ComponentRecord:
        """
        Check one component and update it if a newer release exists.

        A started check always runs to completion and holds the component's
        lock until then, even if the caller is cancelled.

        Args:
            record: Component to check
            latest_version: Already resolved release tag; looked up when None

        Returns:
            ComponentRecord: The (mutated) record
        """
        if record.disabled:
            logger.info(f"Skipping {record.name}, updates are disabled")
            return record

        task = asyncio.get_running_loop().create_task(self._check_exclusive(record, latest_version))
        self._checks.add(task)
        task.add_done_callback(self._checks.discard)
        await asyncio.shield(task)
        return record

    async def _check_exclusive(self, record: ComponentRecord, latest_version: Optional[str]):
        lock = self._locks.setdefault(record.name, asyncio.Lock())
        async with lock:
            try:
                await self._check_locked(record, latest_version)
            except Exception as e:
                record.error = str(e)
                record.last_checked = datetime.now()
                record.logger.error(f"Error checking {record.name}: {e}")

    async def _check_locked(self, record: ComponentRecord, latest_version: Optional[str]):
        if not latest_version:
            latest_version = await self._resolve_latest(record.owner, record.repository)

        if not latest_version:
            self._record_unresolved(record)
            return

        record.latest_version = latest_version
        record.last_checked = datetime.now()
        record.error = None

        comparison = compare_versions(record.version, latest_version)

        if comparison < 0:
            record.needs_update = True
            record.logger.info(f"Update available for {record.name}: {record.version} -> {latest_version}")
            await self._update_component(record, latest_version)
        else:
            record.needs_update = False
            if comparison > 0:
                record.logger.info(
                    f"{record.name} running newer version ({record.version}) "
                    f"than latest ({latest_version})"
                )
            elif not record.version:
                record.logger.warning(f"Cannot compare versions for {record.name}: no installed version")
            else:
                record.logger.info(f"{record.name} is up to date ({record.version})")

        self.summary.mark_checked(record.name)

    async def _update_component(self, record: ComponentRecord, latest_version: str):
        result = await self._transaction(record, latest_version, self.config)

        if result.updated:
            record.version = latest_version
            record.needs_update = False
            record.last_updated = datetime.now()
            self.summary.mark_updated(record.name)
            record.logger.info(f"Successfully updated {record.name} to {latest_version}")
            await self._notify(
                'on_component_updated',
                record.name, result.old_version, latest_version, result.backup_path
            )
        else:
            record.error = result.error or 'Update failed'
            record.logger.error(f"Failed to update {record.name}: {record.error}")

    def _record_unresolved(self, record: ComponentRecord):
        record.error = UNRESOLVED_ERROR
        record.last_checked = datetime.now()

    async def _resolve_latest(self, owner: str, repository: str) -> Optional[str]:
        return await self._resolver(
            owner,
            repository,
            api_url=self.config.get('github_api_url') or GITHUB_API_URL,
            timeout=self.config.get('request_timeout', 30),
            token=self.config.get('github_token'),
        )

    async def _notify(self, method: str, *args):
        """Call ``method`` on the notifier if one is configured; it may be a coroutine."""
        callback = getattr(self.notifier, method, None)
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Notifier {method} failed: {e}")
