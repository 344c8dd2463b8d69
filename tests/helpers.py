"""Test doubles shared by the scheduler and manager tests."""

import asyncio

from plugin_updater.config_loader import DEFAULT_UPDATER_CONFIG, merge_config
from plugin_updater.updater.transaction import UpdateResult


def make_config(**overrides):
    settings = {'initial_delay': 0, 'stagger_delay': 0, 'check_interval': 3600}
    settings.update(overrides)
    return merge_config(DEFAULT_UPDATER_CONFIG, settings)


class FakeResolver:
    """Answers release lookups from a ``owner/repository`` -> tag mapping."""

    def __init__(self, versions=None):
        self.versions = versions or {}
        self.calls = []
        self.call_times = []

    async def __call__(self, owner, repository, **kwargs):
        self.calls.append(f"{owner}/{repository}")
        self.call_times.append(asyncio.get_running_loop().time())
        return self.versions.get(f"{owner}/{repository}")


class FakeTransaction:
    """Records update attempts and succeeds or fails on demand."""

    def __init__(self, updated=True, error=None, delay=0):
        self.updated = updated
        self.error = error
        self.delay = delay
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, record, target_version, config):
        self.calls.append((record.name, target_version))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        if self.updated:
            return UpdateResult(
                updated=True,
                old_version=record.version,
                new_version=target_version,
                backup_path=f"/backups/{record.name}.backup",
            )
        return UpdateResult(updated=False, old_version=record.version, error=self.error)


class RecordingNotifier:

    def __init__(self):
        self.updates = []
        self.summaries = []

    def on_component_updated(self, name, old_version, new_version, backup_path):
        self.updates.append((name, old_version, new_version, backup_path))

    def on_cycle_summary(self, message):
        self.summaries.append(message)


class AsyncNotifier(RecordingNotifier):

    async def on_component_updated(self, name, old_version, new_version, backup_path):
        await asyncio.sleep(0)
        super().on_component_updated(name, old_version, new_version, backup_path)
