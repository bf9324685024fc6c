"""恢复流程"""

from .planner import RestorePlanner
from .executor import RestoreExecutor

__all__ = ["RestorePlanner", "RestoreExecutor"]
