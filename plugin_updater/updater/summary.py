"""
Per-cycle summary of checked and updated components.
"""

import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class CycleSummary:
    """
    Accumulates the distinct components checked and updated during one cycle.

    A name is listed at most once per list no matter how often it is marked.
    """

    def __init__(self):
        self.checked: List[str] = []
        self.updated: List[str] = []

    @property
    def total_checked(self) -> int:
        return len(self.checked)

    @property
    def total_updated(self) -> int:
        return len(self.updated)

    def mark_checked(self, name: str):
        if name not in self.checked:
            self.checked.append(name)

    def mark_updated(self, name: str):
        if name not in self.updated:
            self.updated.append(name)

    def reset(self):
        self.checked = []
        self.updated = []

    def format_report(self) -> str:
        """Build the consolidated cycle message without resetting."""
        lines = [
            "Update cycle completed:",
            f"Checked {self.total_checked} component(s): {', '.join(self.checked)}",
        ]
        if self.updated:
            lines.append(f"Updated {self.total_updated} component(s): {', '.join(self.updated)}")
            lines.append("Please restart the host application to apply updates")
        else:
            lines.append("All components are up to date")
        return '\n'.join(lines)

    def report(self) -> Optional[str]:
        """
        Log the consolidated message for this cycle and reset.

        Returns:
            str: The message, or None if nothing was checked this cycle
        """
        if not self.checked and not self.updated:
            return None

        message = self.format_report()
        for line in message.splitlines():
            logger.info(line)

        self.reset()
        return message
