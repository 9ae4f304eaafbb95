"""
System Tray Application - Main UI entry point.

Architecture Decision: Presentation Layer
This layer only handles UI logic. Accrual, task and scheduling logic live in
the services; the tray app wires the PromptScheduler to the prompt window,
the activity log window and QTimer.
"""

import sys
import asyncio
import logging
from typing import Optional

from PySide6.QtWidgets import QApplication, QSystemTrayIcon, QMenu, QMessageBox
from PySide6.QtGui import QIcon, QPixmap, QColor, QAction
from PySide6.QtCore import QTimer, QLocale

from mari.domain.exceptions import MariError
from mari.domain.models import PromptAction
from mari.infra.config import get_settings
from mari.infra.db import init_db, close_db
from mari.services import AppContext, PromptScheduler
from mari.i18n import tr, set_language
from mari.utils import get_resource_path
from .prompt_window import PromptWindow
from .activity_log_window import ActivityLogWindow
from .qt_timers import QtTimerFactory

logger = logging.getLogger(__name__)


class SystemTrayApp:
    """
    Main application class managing the system tray icon and coordination.
    """

    def __init__(self):
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)  # Keep running when windows close
        self.app.setWindowIcon(self._create_icon())

        # Settings
        self.settings = get_settings()
        prefs = self.settings.preferences
        language = set_language(prefs.language)
        QLocale.setDefault(QLocale(language))

        # Event loop for async operations
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)

        # Services
        self.context = AppContext(increment_seconds=prefs.prompt_interval_seconds)

        # Windows
        self.prompt_window = PromptWindow()
        self.prompt_window.decision_made.connect(self._on_decision)
        self.prompt_window.create_requested.connect(self._on_create_requested)
        self.activity_log = ActivityLogWindow(self.context, self.loop)

        self.scheduler = PromptScheduler(
            self.context,
            QtTimerFactory(self.loop, self.app),
            is_suppressed=self.activity_log.isVisible,
            show_prompt=self._show_prompt,
            hide_prompt=self.prompt_window.hide,
            interval_seconds=prefs.prompt_interval_seconds,
            timeout_seconds=prefs.prompt_timeout_seconds,
        )

        # Setup UI
        self.tray_icon = QSystemTrayIcon(self._create_icon(), self.app)
        self.tray_icon.setToolTip(tr("app.ready"))
        self.tray_icon.activated.connect(self._on_tray_icon_activated)
        self.setup_menu()
        self.tray_icon.show()

        # Initialize on startup
        QTimer.singleShot(0, self._async_init)

    def _create_icon(self):
        """Create the tray icon from assets"""
        icon_path = get_resource_path("mari/assets/icon.png")
        if icon_path.exists():
            return QIcon(str(icon_path))

        # Fallback if icon not found
        pixmap = QPixmap(16, 16)
        pixmap.fill(QColor("green"))
        return QIcon(pixmap)

    def _async_init(self):
        """Open the store, restore the current task and start the period timer"""
        try:
            self.loop.run_until_complete(init_db(self.settings.get_db_url()))
            self.loop.run_until_complete(self.context.load())
        except MariError as e:
            logger.exception("Initialization failed")
            QMessageBox.critical(None, tr("error.title"), tr("error.init", error=e))
            self._quit_application()
            return

        self.scheduler.start()
        self.update_tooltip()

    def setup_menu(self):
        """Setup the system tray context menu"""
        menu = QMenu()

        log_action = QAction(tr("tray.show_log"), self.app)
        log_action.triggered.connect(self._toggle_activity_log)
        menu.addAction(log_action)

        ask_action = QAction(tr("tray.ask_now"), self.app)
        ask_action.triggered.connect(self._ask_now)
        menu.addAction(ask_action)

        menu.addSeparator()

        # Quit Action
        quit_action = QAction(tr("tray.quit"), self.app)
        quit_action.triggered.connect(self._quit_application)
        menu.addAction(quit_action)

        self.tray_icon.setContextMenu(menu)

    async def _show_prompt(self):
        """Load the task list and open the prompt"""
        current = self.context.get_current_task_id()
        tasks = await self.context.tasks.list_for_prompt(current)
        self.prompt_window.open(tasks, current)

    def _on_decision(self, action: str, task_id: Optional[int]):
        try:
            self.loop.run_until_complete(self.scheduler.resolve(PromptAction(action), task_id))
        except MariError as e:
            QMessageBox.warning(None, tr("error.title"), tr("error.save", error=e))
        self.update_tooltip()

    def _on_create_requested(self, name: str):
        """Create the typed task, then treat it as a switch"""
        try:
            task = self.loop.run_until_complete(self.context.tasks.find_or_create(name))
        except MariError as e:
            QMessageBox.warning(None, tr("error.title"), tr("error.save", error=e))
            self.loop.run_until_complete(self.scheduler.resolve(PromptAction.CONFIRM))
            return
        self._on_decision(PromptAction.SWITCH.value, task.id)

    def _ask_now(self):
        """Run a period immediately"""
        self.loop.run_until_complete(self.scheduler.on_period())

    def update_tooltip(self):
        """Show the current task in the tray tooltip"""
        current = self.context.get_current_task_id()
        task = None
        if current is not None:
            try:
                task = self.loop.run_until_complete(self.context.task_repo.get_by_id(current))
            except MariError as e:
                logger.warning(f"Could not load current task: {e}")
        if task:
            self.tray_icon.setToolTip(tr("app.current_task", name=task.name))
        else:
            self.tray_icon.setToolTip(tr("app.ready"))

    def _toggle_activity_log(self):
        if self.activity_log.isVisible():
            self.activity_log.hide()
            return
        self.activity_log.show()
        self.activity_log.activateWindow()
        self.activity_log.raise_()

    def _on_tray_icon_activated(self, reason):
        """Handle tray icon click"""
        if reason == QSystemTrayIcon.Trigger:
            self._toggle_activity_log()

    def _quit_application(self):
        """Quit the application"""
        self.scheduler.shutdown()
        self.activity_log.close()

        if not self.loop.is_closed():
            self.loop.run_until_complete(close_db())
            self.loop.close()

        # Quit Qt application
        self.app.quit()

    def run(self):
        """Run the application"""
        return sys.exit(self.app.exec())
