"""
Updater package for the plugin updater.

This package contains the update orchestration functionality for:
- Version comparison of release tags
- Latest release lookup
- Backup creation
- Update transactions (download, backup, write, verify)
- Check cycle scheduling and summaries
- The update manager tying them together
"""

from .version import compare_versions

from .resolver import (
    fetch_latest_version,
    get_latest_release_url,
)

from .backup import (
    create_backup,
    get_backup_path,
)

from .transaction import (
    UpdateResult,
    apply_update,
    get_artifact_url,
)

from .summary import CycleSummary

from .scheduler import (
    SchedulerState,
    UpdateScheduler,
    group_by_repository,
)

from .manager import UpdateManager

__all__ = [
    # Version comparison
    'compare_versions',
    # Release lookup
    'fetch_latest_version',
    'get_latest_release_url',
    # Backup functions
    'create_backup',
    'get_backup_path',
    # Update transaction
    'UpdateResult',
    'apply_update',
    'get_artifact_url',
    # Scheduling
    'CycleSummary',
    'SchedulerState',
    'UpdateScheduler',
    'group_by_repository',
    'UpdateManager',
]
