"""
Component backup management.

Each component has exactly one backup slot under the backup root; creating a
new backup overwrites the previous one.
"""

import os
import asyncio
import logging
from typing import Optional

from ..models.component import ComponentRecord
from ..utils.file_operations import copy_file

logger = logging.getLogger(__name__)


def get_backup_path(record: ComponentRecord, backup_root: str) -> str:
    """
    Get the backup file location of a component.

    Args:
        record: Component whose artifact is backed up
        backup_root: Root directory of all component backups

    Returns:
        str: ``<backup_root>/<name>/<artifact basename>.backup``
    """
    return os.path.join(
        backup_root,
        record.name,
        f"{os.path.basename(record.artifact_path)}.backup"
    )


async def create_backup(record: ComponentRecord, backup_root: str) -> Optional[str]:
    """
    Copy the installed artifact into the component's backup slot.

    Failures are logged and reported as None so the caller can continue
    without a backup.

    Args:
        record: Component to back up
        backup_root: Root directory of all component backups

    Returns:
        str: Path of the backup file, or None if it could not be created
    """
    backup_path = get_backup_path(record, backup_root)
    try:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, copy_file, record.artifact_path, backup_path)
        logger.info(f"Created backup for {record.name} at {backup_path}")
        return backup_path
    except Exception as e:
        logger.warning(f"Failed to create backup for {record.name}: {e}")
        return None
