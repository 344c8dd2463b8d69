"""
Update manager.

The manager is the single entry point used by the host application and the
command surface. It owns the component registry, the configuration, the cycle
summary and the scheduler of one orchestrator instance.
"""

import logging
from typing import Any, Dict, List, Optional

from ..config_loader import DEFAULT_UPDATER_CONFIG, merge_config, save_updater_config
from ..models.component import ComponentRecord, ComponentRegistry
from .scheduler import UpdateScheduler, SchedulerState, Resolver, Transaction
from .summary import CycleSummary

logger = logging.getLogger(__name__)


class UpdateManager:
    """
    Tracks components and keeps them updated from their GitHub releases.

    Usage:
        manager = UpdateManager(get_updater_config())
        manager.register_component('greeter', 'v1.0.0', 'acme', 'plugins',
                                   '/srv/host/plugins/greeter.js')
        status = manager.get_status()
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        notifier=None,
        resolver: Optional[Resolver] = None,
        transaction: Optional[Transaction] = None,
        config_path: Optional[str] = None,
    ):
        self.config = merge_config(DEFAULT_UPDATER_CONFIG, config)
        # Where configure() changes are persisted; None keeps them in memory
        self.config_path = config_path
        self.registry = ComponentRegistry()
        self.summary = CycleSummary()
        self.scheduler = UpdateScheduler(
            self.registry,
            self.summary,
            self.config,
            resolver=resolver,
            transaction=transaction,
        )
        self.scheduler.notifier = notifier

    @property
    def state(self) -> SchedulerState:
        return self.scheduler.state

    @property
    def notifier(self):
        return self.scheduler.notifier

    def set_notifier(self, notifier):
        """
        Set the collaborator told about updates.

        The notifier needs an ``on_component_updated(name, old_version,
        new_version, backup_path)`` method and may have an
        ``on_cycle_summary(message)`` method. Both may be coroutines.
        """
        self.scheduler.notifier = notifier
        logger.info("Update notifier configured")

    def configure(self, **settings) -> Dict[str, Any]:
        """
        Merge settings over the current configuration.

        Only future scheduling is affected; running cycles keep their timing.
        Settings are validated first; on an invalid value nothing changes.

        Returns:
            dict: Copy of the resulting configuration

        Raises:
            ValueError: If a setting has an invalid type or range
        """
        merged = merge_config(self.config, settings, strict=True)
        # Updated in place, the scheduler shares this dict
        self.config.update(merged)
        logger.info("Update manager configuration updated")
        return dict(self.config)

    def save_config(self) -> bool:
        """
        Persist the current configuration to ``config_path``.

        Returns:
            bool: True if saved, False if there is no path or saving failed
        """
        if not self.config_path:
            return False
        return save_updater_config(self.config, path=self.config_path)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_component(
        self,
        name: str,
        version: str,
        owner: str,
        repository: str,
        artifact_path: str,
        component_logger: Optional[logging.Logger] = None,
    ) -> ComponentRecord:
        """
        Register a component for automatic updates.

        The first registration after construction or after ``stop()`` starts
        the scheduler.

        Returns:
            ComponentRecord: The stored record
        """
        record = self.registry.register(
            name, version, owner, repository, artifact_path, component_logger
        )
        if self.scheduler.state in (SchedulerState.UNINITIALIZED, SchedulerState.STOPPED):
            self.scheduler.initialize()
        return record

    def get_component(self, name: str) -> Optional[ComponentRecord]:
        return self.registry.get(name)

    def list_components(self) -> List[str]:
        return self.registry.names()

    def enable(self, name: str) -> bool:
        return self.registry.set_disabled(name, False)

    def disable(self, name: str) -> bool:
        return self.registry.set_disabled(name, True)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    @property
    def cycle_in_progress(self) -> bool:
        return self.scheduler.cycle_in_progress

    def check_all(self):
        """Start a check cycle over all enabled components, see UpdateScheduler.check_all."""
        logger.info("Manually checking all components for updates...")
        return self.scheduler.check_all()

    async def check_one(self, name: str) -> Optional[ComponentRecord]:
        """
        Check a single component right away, with its own release lookup.

        Returns:
            ComponentRecord: The checked record, None if unknown or disabled
        """
        record = self.registry.get(name)
        if record is None:
            logger.error(f"Component {name} not found in registered components")
            return None
        if record.disabled:
            logger.warning(f"Updates for {name} are disabled, not checking")
            return None
        return await self.scheduler.check_component(record)

    def get_status(self) -> Dict[str, Any]:
        """
        Get a snapshot of the update state.

        Returns:
            dict: Status with keys:
                - total_components: Number of registered components
                - last_check: ISO timestamp of the last cycle start, or None
                - updates_available: Components still needing an update
                - components: Per-component state
        """
        records = self.registry.list_all()
        last_check = self.scheduler.last_check
        return {
            'total_components': len(records),
            'last_check': last_check.isoformat() if last_check else None,
            'updates_available': sum(1 for r in records if r.needs_update),
            'components': [
                {
                    'name': r.name,
                    'installed_version': r.version,
                    'latest_version': r.latest_version,
                    'needs_update': r.needs_update,
                    'last_checked': r.last_checked.isoformat() if r.last_checked else None,
                    'error': r.error,
                    'disabled': r.disabled,
                }
                for r in records
            ],
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Start scheduling explicitly, e.g. when components were registered outside a loop."""
        return self.scheduler.initialize()

    def stop(self):
        self.scheduler.stop()

    def restart(self) -> bool:
        return self.scheduler.restart()
