"""
Component data models and registry.

This module provides the record kept for every tracked component and the
in-memory registry that owns those records.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class ComponentRecord:
    """State of one tracked component."""
    name: str
    version: str
    owner: str
    repository: str
    artifact_path: str
    logger: logging.Logger = field(default=logger, repr=False, compare=False)
    disabled: bool = False
    needs_update: bool = False
    latest_version: Optional[str] = None
    last_checked: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def repo_key(self) -> str:
        """Grouping key of the remote release source."""
        return f"{self.owner}/{self.repository}"

    def to_dict(self) -> Dict[str, object]:
        return {
            'name': self.name,
            'version': self.version,
            'owner': self.owner,
            'repository': self.repository,
            'artifact_path': self.artifact_path,
            'disabled': self.disabled,
            'needs_update': self.needs_update,
            'latest_version': self.latest_version,
            'last_checked': _isoformat(self.last_checked),
            'last_updated': _isoformat(self.last_updated),
            'error': self.error,
        }


class ComponentRegistry:
    """
    In-memory table of tracked components keyed by name.

    Lookups of unknown names are soft failures: they are logged and
    reported through the return value, never raised.
    """

    def __init__(self):
        self._components: Dict[str, ComponentRecord] = {}

    def register(
        self,
        name: str,
        version: str,
        owner: str,
        repository: str,
        artifact_path: str,
        component_logger: Optional[logging.Logger] = None,
    ) -> ComponentRecord:
        """
        Insert or overwrite the record stored under ``name``.

        Args:
            name: Unique component name
            version: Installed version string
            owner: Owner of the remote repository
            repository: Name of the remote repository
            artifact_path: Path of the installed artifact
            component_logger: Logger for this component's messages

        Returns:
            ComponentRecord: The freshly created record
        """
        record = ComponentRecord(
            name=name,
            version=version,
            owner=owner,
            repository=repository,
            artifact_path=artifact_path,
            logger=component_logger or logger,
        )
        if name in self._components:
            logger.info(f"Re-registering component {name}, previous state discarded")
        self._components[name] = record
        logger.info(f"Registered component: {name} v{version}")
        return record

    def get(self, name: str) -> Optional[ComponentRecord]:
        return self._components.get(name)

    def list_all(self) -> List[ComponentRecord]:
        """Snapshot of every record."""
        return list(self._components.values())

    def names(self) -> List[str]:
        return list(self._components.keys())

    def set_disabled(self, name: str, disabled: bool) -> bool:
        """
        Enable or disable automatic and manual checks for a component.

        Returns:
            bool: False if the component is not registered
        """
        record = self._components.get(name)
        if record is None:
            logger.warning(f"Component {name} not found in registered components")
            return False
        record.disabled = disabled
        if disabled:
            logger.info(f"Disabled updates for {name}")
        else:
            logger.info(f"Enabled updates for {name}")
        return True

    def __len__(self) -> int:
        return len(self._components)

    def __contains__(self, name: object) -> bool:
        return name in self._components
