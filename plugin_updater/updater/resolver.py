"""
Remote version lookup.

This module asks the GitHub releases API for the latest published release of
a repository. Every failure is reported as ``None``.
"""

import asyncio
import logging
from typing import Dict, Optional

import aiohttp

from .. import __version__
from ..config_loader import GITHUB_API_URL

logger = logging.getLogger(__name__)


def get_request_headers(token: Optional[str] = None) -> Dict[str, str]:
    """
    Get HTTP headers for GitHub API requests.

    Args:
        token: Optional GitHub token, raises the API rate limit

    Returns:
        dict: Request headers
    """
    headers = {
        'Accept': 'application/vnd.github+json',
        'User-Agent': f'plugin-updater/{__version__}',
    }
    if token:
        headers['Authorization'] = f'Bearer {token}'
    return headers


def get_latest_release_url(owner: str, repository: str, api_url: str = GITHUB_API_URL) -> str:
    return f"{api_url.rstrip('/')}/repos/{owner}/{repository}/releases/latest"


async def fetch_latest_version(
    owner: str,
    repository: str,
    api_url: str = GITHUB_API_URL,
    timeout: float = 30,
    token: Optional[str] = None,
) -> Optional[str]:
    """
    Fetch the tag of the latest published release.

    Issues exactly one request. A 404 means the repository does not exist or
    has no releases and is logged as a warning; anything else that goes wrong
    is logged as an error.

    Args:
        owner: Repository owner
        repository: Repository name
        api_url: Base URL of the releases API
        timeout: Total request timeout in seconds
        token: Optional API token

    Returns:
        str: The release tag, or None if it could not be determined
    """
    url = get_latest_release_url(owner, repository, api_url)
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                url,
                headers=get_request_headers(token),
                timeout=aiohttp.ClientTimeout(total=timeout)
            ) as resp:
                if resp.status == 404:
                    logger.warning(f"Repository {owner}/{repository} not found or has no releases")
                    return None
                if resp.status != 200:
                    logger.error(f"Error fetching latest version for {owner}/{repository}: HTTP {resp.status}")
                    return None
                data = await resp.json(content_type=None)
    except asyncio.TimeoutError:
        logger.error(f"Timed out fetching latest version for {owner}/{repository}")
        return None
    except Exception as e:
        logger.error(f"Error fetching latest version from GitHub: {e}")
        return None

    tag = data.get('tag_name') if isinstance(data, dict) else None
    if not tag or not isinstance(tag, str):
        logger.warning(f"Latest release of {owner}/{repository} has no tag_name")
        return None
    return tag
