"""
Prompt Window - the periodic "what are you working on?" popup.

Keyboard driven: arrows pick a task, Enter switches to it (or creates the
typed task), Ctrl+Enter confirms the current task, Escape denies. Losing
focus counts as a confirm. The window only emits decisions; the tray app
forwards them to the PromptScheduler.
"""

from typing import List, Optional

from PySide6.QtWidgets import (
    QApplication, QWidget, QVBoxLayout, QLabel, QLineEdit, QListWidget, QListWidgetItem
)
from PySide6.QtCore import Qt, Signal, QTimer, QEvent
from PySide6.QtGui import QFont

from mari.domain.models import Task, PromptAction
from mari.services.task_service import filter_for_prompt
from mari.i18n import tr


class PromptWindow(QWidget):
    """
    Frameless always-on-top prompt at the top right of the screen.
    """

    decision_made = Signal(str, object)  # (action, task_id or None)
    create_requested = Signal(str)  # new task name, switch to it

    def __init__(self, parent=None):
        super().__init__(parent)
        self.tasks: List[Task] = []
        self.current_task_id: Optional[int] = None

        self.setWindowTitle(tr("app.name"))
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint |
            Qt.FramelessWindowHint |
            Qt.Tool
        )
        self.setFixedSize(300, 250)
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 8)

        title = QLabel(tr("prompt.title"))
        title_font = QFont()
        title_font.setBold(True)
        title.setFont(title_font)
        layout.addWidget(title)

        self.task_list = QListWidget()
        self.task_list.setFocusPolicy(Qt.NoFocus)
        self.task_list.itemClicked.connect(self._on_item_clicked)
        layout.addWidget(self.task_list, 1)

        self.hint_label = QLabel()
        self.hint_label.setStyleSheet("color: gray;")
        layout.addWidget(self.hint_label)

        self.name_input = QLineEdit()
        self.name_input.setPlaceholderText(tr("prompt.new_task_placeholder"))
        self.name_input.textChanged.connect(self._populate)
        self.name_input.installEventFilter(self)
        layout.addWidget(self.name_input)

        keys = QLabel(tr("prompt.hints"))
        keys.setStyleSheet("color: gray; font-size: 10px;")
        layout.addWidget(keys)

    def open(self, tasks: List[Task], current_task_id: Optional[int]):
        """Show the prompt with the current task first and pre-selected"""
        self.tasks = tasks
        self.current_task_id = current_task_id
        self.name_input.blockSignals(True)
        self.name_input.clear()
        self.name_input.blockSignals(False)
        self._populate()

        self._position_top_right()
        self.show()
        self.raise_()
        self.activateWindow()
        self.name_input.setFocus()

    def _visible_tasks(self) -> List[Task]:
        return filter_for_prompt(self.tasks, self.current_task_id, self.name_input.text())

    def _populate(self, *_):
        self.task_list.clear()
        for task in self._visible_tasks():
            label = f"● {task.name}" if task.id == self.current_task_id else task.name
            item = QListWidgetItem(label)
            item.setData(Qt.UserRole, task.id)
            if task.id == self.current_task_id:
                font = item.font()
                font.setBold(True)
                item.setFont(font)
            self.task_list.addItem(item)

        if self.task_list.count():
            self.task_list.setCurrentRow(0)
            self.hint_label.setText("")
        elif self.name_input.text().strip():
            self.hint_label.setText(tr("prompt.create_hint", name=self.name_input.text().strip()))
        else:
            self.hint_label.setText(tr("prompt.no_tasks"))

    def _position_top_right(self):
        screen = QApplication.primaryScreen()
        if not screen:
            return
        area = screen.availableGeometry()
        self.move(area.x() + area.width() - self.width() - 8, area.y() + 8)

    def eventFilter(self, obj, event):
        """Keyboard navigation while typing in the name field"""
        if obj is self.name_input and event.type() == QEvent.KeyPress:
            key = event.key()
            if key == Qt.Key_Down:
                self._move_selection(1)
                return True
            if key == Qt.Key_Up:
                self._move_selection(-1)
                return True
            if key in (Qt.Key_Return, Qt.Key_Enter):
                if event.modifiers() & (Qt.ControlModifier | Qt.MetaModifier):
                    self._decide(PromptAction.CONFIRM)
                else:
                    self._select_or_create()
                return True
            if key == Qt.Key_Escape:
                self._decide(PromptAction.DENY)
                return True
        return super().eventFilter(obj, event)

    def changeEvent(self, event):
        if event.type() == QEvent.ActivationChange and not self.isActiveWindow():
            # Small delay to allow internal focus changes
            QTimer.singleShot(100, self._on_focus_lost)
        super().changeEvent(event)

    def _on_focus_lost(self):
        if self.isVisible() and not self.isActiveWindow():
            self._decide(PromptAction.CONFIRM)

    def _move_selection(self, step: int):
        count = self.task_list.count()
        if count:
            row = min(max(self.task_list.currentRow() + step, 0), count - 1)
            self.task_list.setCurrentRow(row)

    def _select_or_create(self):
        item = self.task_list.currentItem()
        if item is not None:
            self._decide(PromptAction.SWITCH, item.data(Qt.UserRole))
            return
        name = self.name_input.text().strip()
        if name:
            self.hide()
            self.create_requested.emit(name)

    def _on_item_clicked(self, item: QListWidgetItem):
        self._decide(PromptAction.SWITCH, item.data(Qt.UserRole))

    def _decide(self, action: PromptAction, task_id: Optional[int] = None):
        self.hide()
        self.decision_made.emit(action.value, task_id)
