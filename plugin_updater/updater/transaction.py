"""
Update transaction for a single component.

This module replaces a component's artifact with the copy published under a
release tag. The steps are:
1. Building the raw download URL
2. Downloading the artifact
3. Backing up the installed artifact (best effort)
4. Overwriting the artifact
5. Verifying the written bytes

A failed step ends the transaction with ``updated=False``. Nothing is
restored from the backup, so a verification failure leaves the artifact
altered and needs operator attention.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from ..config_loader import get_backup_root, get_project_root, GITHUB_RAW_URL
from ..models.component import ComponentRecord
from ..utils.file_operations import get_relative_path, read_file_bytes, write_file_bytes
from .backup import create_backup

logger = logging.getLogger(__name__)

VERIFICATION_FAILED = 'File verification failed - update was not written correctly'


@dataclass
class UpdateResult:
    """Outcome of one update transaction."""
    updated: bool
    old_version: str
    new_version: Optional[str] = None
    backup_path: Optional[str] = None
    error: Optional[str] = None


def get_artifact_url(record: ComponentRecord, target_version: str, config: Dict[str, Any]) -> str:
    """
    Build the raw download URL of a component's artifact at a release tag.

    Args:
        record: Component to update
        target_version: Release tag to download from
        config: Updater configuration (``raw_content_url``, ``project_root``)

    Returns:
        str: The artifact URL
    """
    base_url = (config.get('raw_content_url') or GITHUB_RAW_URL).rstrip('/')
    relative_path = get_relative_path(record.artifact_path, get_project_root(config))
    return f"{base_url}/{record.owner}/{record.repository}/{target_version}/{relative_path}"


async def download_artifact(url: str, timeout: float = 60) -> bytes:
    """
    Download an artifact body.

    Raises:
        RuntimeError: if the server does not answer with HTTP 200
        aiohttp.ClientError: on connection problems
        asyncio.TimeoutError: if the download exceeds ``timeout``
    """
    async with aiohttp.ClientSession() as session:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
            if resp.status != 200:
                raise RuntimeError(f"HTTP {resp.status} downloading {url}")
            return await resp.read()


async def apply_update(
    record: ComponentRecord,
    target_version: str,
    config: Dict[str, Any],
) -> UpdateResult:
    """
    Replace a component's artifact with the one published at ``target_version``.

    The record itself is not modified; the caller applies the result.

    Args:
        record: Component to update
        target_version: Release tag to install
        config: Updater configuration

    Returns:
        UpdateResult: ``updated`` is True only if the written file matches the
            downloaded content byte for byte
    """
    old_version = record.version
    try:
        url = get_artifact_url(record, target_version, config)
        logger.info(f"Downloading {record.name} {target_version} from {url}")
        content = await download_artifact(url, config.get('download_timeout', 60))

        backup_path = await create_backup(record, get_backup_root(config))
        if backup_path is None:
            logger.warning(f"Continuing update of {record.name} without a backup")

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, write_file_bytes, record.artifact_path, content)

        written = await loop.run_in_executor(None, read_file_bytes, record.artifact_path)
        if written != content:
            logger.error(
                f"Verification of {record.artifact_path} failed after writing; "
                f"the file was modified and needs manual attention "
                f"(backup: {backup_path or 'none'})"
            )
            raise RuntimeError(VERIFICATION_FAILED)

        return UpdateResult(
            updated=True,
            old_version=old_version,
            new_version=target_version,
            backup_path=backup_path,
        )

    except asyncio.TimeoutError:
        error = f"Timed out downloading {record.name} {target_version}"
        logger.error(f"Update failed for {record.name}: {error}")
        return UpdateResult(updated=False, old_version=old_version, error=error)
    except Exception as e:
        logger.error(f"Update failed for {record.name}: {e}")
        return UpdateResult(updated=False, old_version=old_version, error=str(e) or type(e).__name__)
