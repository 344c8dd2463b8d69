"""
File operations utilities.

This module provides path normalization and the blocking read/write helpers
used by update transactions. The read, write and copy helpers run in an executor.
"""

import os
import shutil
import logging

logger = logging.getLogger(__name__)


def get_relative_path(file_path, project_root):
    """Gets the artifact path relative to the project root, for remote URLs.

    Args:
        file_path: absolute or relative path of the artifact
        project_root: directory the remote repository layout is rooted at

    Returns:
        path using forward slashes regardless of the local OS convention
    """
    relative_path = os.path.relpath(os.path.abspath(file_path), os.path.abspath(project_root))
    return relative_path.replace(os.sep, '/').replace('\\', '/')


def read_file_bytes(path):
    """Reads a whole file as bytes."""
    with open(path, 'rb') as f:
        return f.read()


def write_file_bytes(path, data):
    """Overwrites a file with the given bytes.

    Args:
        path: file to overwrite
        data: new content
    """
    with open(path, 'wb') as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())


def copy_file(source_path, dest_path):
    """Copies a file with its metadata, creating the destination directory."""
    os.makedirs(os.path.dirname(dest_path), exist_ok=True)
    shutil.copy2(source_path, dest_path)
