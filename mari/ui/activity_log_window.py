import asyncio
import datetime
import logging
from typing import List

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QTableWidget, QTableWidgetItem, QPushButton,
    QLabel, QLineEdit, QHeaderView, QMessageBox, QMenu, QAbstractItemView
)
from PySide6.QtCore import Qt, QDate, QLocale, QTimer
from PySide6.QtGui import QAction, QFont

from mari.domain.exceptions import MariError
from mari.domain.models import TimeEntryWithTask
from mari.services.context import AppContext
from mari.utils import format_duration, format_duration_for_edit, parse_duration, today
from mari.i18n import tr

logger = logging.getLogger(__name__)

COL_TASK = 0
COL_DURATION = 1


class ActivityLogWindow(QWidget):
    """
    One day of tracked time: a table of (task, duration) rows with inline
    editing, day navigation and an add-entry row. While this window is
    visible the prompt is suppressed and periods are confirmed silently.
    """

    def __init__(self, context: AppContext, loop=None, parent=None):
        super().__init__(parent)
        self.setWindowTitle(tr("log.title"))
        self.resize(420, 480)

        self.context = context
        self.service = context.activity_log
        self.loop = loop or asyncio.get_event_loop()

        self.day: datetime.date = today()
        self.entries: List[TimeEntryWithTask] = []
        self._populating = False

        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)

        # Day navigation
        nav = QHBoxLayout()
        self.prev_btn = QPushButton("‹")
        self.prev_btn.setToolTip(tr("log.previous_day"))
        self.prev_btn.setFixedWidth(32)
        self.prev_btn.clicked.connect(lambda: self._shift_day(-1))
        nav.addWidget(self.prev_btn)

        self.day_label = QLabel()
        self.day_label.setAlignment(Qt.AlignCenter)
        day_font = QFont()
        day_font.setBold(True)
        self.day_label.setFont(day_font)
        nav.addWidget(self.day_label, 1)

        self.next_btn = QPushButton("›")
        self.next_btn.setToolTip(tr("log.next_day"))
        self.next_btn.setFixedWidth(32)
        self.next_btn.clicked.connect(lambda: self._shift_day(1))
        nav.addWidget(self.next_btn)
        layout.addLayout(nav)

        self.total_label = QLabel()
        self.total_label.setAlignment(Qt.AlignCenter)
        self.total_label.setStyleSheet("font-size: 20px; font-weight: bold;")
        layout.addWidget(self.total_label)

        # Entries
        self.table = QTableWidget(0, 2)
        self.table.setHorizontalHeaderLabels([tr("log.task"), tr("log.duration")])
        self.table.horizontalHeader().setSectionResizeMode(COL_TASK, QHeaderView.Stretch)
        self.table.horizontalHeader().setSectionResizeMode(COL_DURATION, QHeaderView.ResizeToContents)
        self.table.verticalHeader().setVisible(False)
        self.table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.table.setSelectionMode(QAbstractItemView.SingleSelection)
        self.table.setEditTriggers(QAbstractItemView.DoubleClicked | QAbstractItemView.EditKeyPressed)
        self.table.setContextMenuPolicy(Qt.CustomContextMenu)
        self.table.customContextMenuRequested.connect(self._show_context_menu)
        self.table.itemChanged.connect(self._on_item_changed)
        layout.addWidget(self.table, 1)

        self.empty_label = QLabel(tr("log.empty"))
        self.empty_label.setAlignment(Qt.AlignCenter)
        self.empty_label.setStyleSheet("color: gray;")
        layout.addWidget(self.empty_label)

        # Add entry row
        add_row = QHBoxLayout()
        self.task_input = QLineEdit()
        self.task_input.setPlaceholderText(tr("log.task_placeholder"))
        add_row.addWidget(self.task_input, 1)

        self.duration_input = QLineEdit()
        self.duration_input.setPlaceholderText(tr("log.duration_placeholder"))
        self.duration_input.setFixedWidth(70)
        self.duration_input.returnPressed.connect(self._add_entry)
        add_row.addWidget(self.duration_input)

        self.add_btn = QPushButton(tr("log.add_entry"))
        self.add_btn.clicked.connect(self._add_entry)
        add_row.addWidget(self.add_btn)
        layout.addLayout(add_row)

    def showEvent(self, event):
        super().showEvent(event)
        self.day = today()
        self.refresh()

    def _shift_day(self, days: int):
        target = self.day + datetime.timedelta(days=days)
        if target > today():
            return
        self.day = target
        self.refresh()

    def _day_title(self) -> str:
        delta = (today() - self.day).days
        if delta == 0:
            return tr("log.today")
        if delta == 1:
            return tr("log.yesterday")
        return QLocale().toString(QDate(self.day.year, self.day.month, self.day.day), QLocale.LongFormat)

    def refresh(self):
        """Reload entries for the selected day"""
        self.day_label.setText(self._day_title())
        self.next_btn.setEnabled(self.day < today())
        try:
            self.entries = self.loop.run_until_complete(self.service.entries_for_day(self.day))
        except MariError as e:
            logger.error(f"Failed to load entries for {self.day}: {e}")
            QMessageBox.warning(self, tr("error.title"), f"{tr('log.load_failed')}: {e}")
            self.entries = []
        self._populate()

    def _populate(self):
        self._populating = True
        try:
            self.table.setRowCount(len(self.entries))
            for row, entry in enumerate(self.entries):
                name = entry.task_name or tr("log.unknown_task")
                task_item = QTableWidgetItem(name)
                task_item.setData(Qt.UserRole, entry.id)
                self.table.setItem(row, COL_TASK, task_item)

                duration_item = QTableWidgetItem(format_duration(entry.duration))
                duration_item.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
                self.table.setItem(row, COL_DURATION, duration_item)
        finally:
            self._populating = False

        self.empty_label.setVisible(not self.entries)
        self.total_label.setText(format_duration(sum(e.duration for e in self.entries)))

    def _on_item_changed(self, item: QTableWidgetItem):
        if self._populating:
            return
        row = item.row()
        if row < 0 or row >= len(self.entries):
            return
        entry = self.entries[row]

        try:
            if item.column() == COL_TASK:
                name = item.text().strip()
                if name and name != entry.task_name:
                    self.loop.run_until_complete(self.service.rename_entry_task(entry.id, name))
            else:
                seconds = parse_duration(item.text())
                if seconds is None:
                    QMessageBox.warning(self, tr("error.title"),
                                        tr("log.invalid_duration", text=item.text()))
                elif seconds != entry.duration:
                    self.loop.run_until_complete(self.service.update_duration(entry.id, seconds))
        except MariError as e:
            logger.error(f"Failed to update entry {entry.id}: {e}")
            QMessageBox.critical(self, tr("error.title"), tr("error.save", error=e))

        # Deferred until the editor has committed
        QTimer.singleShot(0, self.refresh)

    def _selected_entry(self):
        row = self.table.currentRow()
        if row < 0 or row >= len(self.entries):
            return None
        return self.entries[row]

    def _show_context_menu(self, pos):
        """Show context menu for table"""
        index = self.table.indexAt(pos)
        if not index.isValid():
            return
        self.table.selectRow(index.row())
        entry = self._selected_entry()
        if entry is None:
            return

        menu = QMenu(self)
        edit_action = QAction(tr("log.duration"), self)
        edit_action.triggered.connect(lambda: self._edit_duration(index.row()))
        delete_entry_action = QAction(tr("log.delete_entry"), self)
        delete_entry_action.triggered.connect(lambda: self._delete_entry(entry))
        menu.addAction(edit_action)
        menu.addAction(delete_entry_action)

        if entry.task is not None:
            delete_task_action = QAction(tr("log.delete_task", name=entry.task.name), self)
            delete_task_action.triggered.connect(lambda: self._delete_task(entry))
            menu.addSeparator()
            menu.addAction(delete_task_action)

        menu.exec(self.table.mapToGlobal(pos))

    def _edit_duration(self, row: int):
        item = self.table.item(row, COL_DURATION)
        if item is None:
            return
        self._populating = True
        item.setText(format_duration_for_edit(self.entries[row].duration))
        self._populating = False
        self.table.editItem(item)

    def _delete_entry(self, entry: TimeEntryWithTask):
        try:
            self.loop.run_until_complete(self.service.delete_entry(entry.id))
        except MariError as e:
            QMessageBox.critical(self, tr("error.title"), tr("error.save", error=e))
        self.refresh()

    def _delete_task(self, entry: TimeEntryWithTask):
        reply = QMessageBox.question(
            self, tr("log.delete_task", name=entry.task.name),
            tr("log.confirm_delete_task", name=entry.task.name),
            QMessageBox.Yes | QMessageBox.No, QMessageBox.No
        )
        if reply != QMessageBox.Yes:
            return
        try:
            self.loop.run_until_complete(self.context.tasks.delete(entry.task_id))
        except MariError as e:
            QMessageBox.critical(self, tr("error.title"), tr("error.save", error=e))
        self.refresh()

    def _add_entry(self):
        name = self.task_input.text().strip()
        text = self.duration_input.text().strip()
        if not name or not text:
            return
        seconds = parse_duration(text)
        if seconds is None:
            QMessageBox.warning(self, tr("error.title"), tr("log.invalid_duration", text=text))
            return
        if seconds == 0:
            return

        try:
            self.loop.run_until_complete(self.service.create_entry(name, seconds, self.day))
        except MariError as e:
            logger.error(f"Failed to add entry: {e}")
            QMessageBox.critical(self, tr("error.title"), tr("error.save", error=e))
            return

        self.task_input.clear()
        self.duration_input.clear()
        self.task_input.setFocus()
        self.refresh()
