"""UI layer - PySide6 GUI components"""

from .tray_icon import SystemTrayApp
from .prompt_window import PromptWindow
from .activity_log_window import ActivityLogWindow

__all__ = ["SystemTrayApp", "PromptWindow", "ActivityLogWindow"]
