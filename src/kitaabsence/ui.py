import os
import sys
import datetime
import logging
from typing import Dict, List, Optional

from dateutil.relativedelta import relativedelta
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QTabWidget, QCalendarWidget, QPushButton, QLabel, QListWidget,
    QListWidgetItem, QMessageBox, QComboBox, QGroupBox, QRadioButton,
    QLineEdit, QFileDialog, QDialog, QTableWidget, QTableWidgetItem,
    QHeaderView, QAbstractItemView, QCompleter,
)
from PySide6.QtGui import QTextCharFormat, QBrush, QColor, QPainter, QFont
from PySide6.QtCore import Qt, QDate, QRect, QThread, Signal, QObject, QStringListModel

from kitaabsence import config
from kitaabsence.commands import CommandBridge
from kitaabsence.data import Database
from kitaabsence.date_range import RangeSelection, MONTH_NAMES
from kitaabsence.export_utils import export_month_pdf, export_filename
from kitaabsence.models import Child, AbsenceWithChild
from kitaabsence.statistics import summarize_month, counts_by_date


# === Constants ===
APP_TITLE = "Kita Abwesenheit"
CSV_FILE_FILTER = "CSV-Datei (*.csv)"
PDF_FILE_FILTER = "PDF-Datei (*.pdf)"
CSV_OPEN_TITLE = "CSV-Datei öffnen"
PDF_SAVE_TITLE = "PDF Export speichern"
CSV_INFO_TEXT = ("CSV-Format: Name, Gruppe, Geburtsdatum (YYYY-MM-DD) - "
                 "erste Zeile wird als Header übersprungen")
GENERIC_ERROR_TITLE = "Fehler"
IMPORT_ERROR_TEXT = "Fehler beim Importieren der CSV-Datei"
SAVE_ERROR_TEXT = "Speichern fehlgeschlagen. Details stehen im Log."
DELETE_ERROR_TEXT = "Löschen fehlgeschlagen. Details stehen im Log."

# === UI Text Constants ===
TAB_CALENDAR = "Kalender"
TAB_CHILDREN = "Kinder"
ADD_ABSENCE_BTN_TEXT = "Abwesenheit eintragen"
DELETE_ABSENCE_BTN_TEXT = "Abwesenheit löschen"
EXPORT_BTN_TEXT = "PDF Export"
TODAY_BTN_TEXT = "Heute"
IMPORT_BTN_TEXT = "CSV Import"
ADD_CHILD_BTN_TEXT = "Kind hinzufügen"
SAVE_BTN_TEXT = "Speichern"
CANCEL_BTN_TEXT = "Abbrechen"
EDIT_BTN_TEXT = "Bearbeiten"
DELETE_BTN_TEXT = "Löschen"
CHOOSE_CHILD_TEXT = "Kind auswählen..."
NO_ABSENCES_TEXT = "Keine Abwesenheiten an diesem Tag"
NO_CHILDREN_TEXT = "Noch keine Kinder vorhanden"
NO_MATCH_TEXT = "Keine Kinder gefunden"
WEEKDAY_NAMES = ["Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag"]

# Farbkonstanten
COLOR_ABSENT_DAY = '#FEF2F2'
COLOR_BADGE = '#EF4444'
COLOR_RANGE = '#DBEAFE'
COLOR_RANGE_EDGE = '#2563EB'


def qdate_to_date(qdate):
    """Hilfsfunktion: QDate -> datetime.date"""
    return qdate.toPython() if hasattr(qdate, 'toPython') else datetime.date(qdate.year(), qdate.month(), qdate.day())


def date_to_qdate(d: datetime.date) -> QDate:
    return QDate(d.year, d.month, d.day)


def set_date_format(calendar, date_obj, color_hex, bold=False, text_color=None):
    fmt = QTextCharFormat()
    fmt.setBackground(QBrush(QColor(color_hex)))
    if bold:
        fmt.setFontWeight(QFont.Bold)
    if text_color:
        fmt.setForeground(QBrush(QColor(text_color)))
    calendar.setDateTextFormat(date_to_qdate(date_obj), fmt)


def format_range(start: str, end: str) -> str:
    s = datetime.date.fromisoformat(start)
    e = datetime.date.fromisoformat(end)
    if s == e:
        return f"{s.day}.{s.month}.{s.year}"
    return f"{s.day}.{s.month}. - {e.day}.{e.month}.{e.year}"


# Dialog-Helfer (in Tests ersetzbar)
def ask_confirmation(parent, title: str, text: str) -> bool:
    return QMessageBox.question(parent, title, text) == QMessageBox.Yes


def show_error(parent, title: str, text: str):
    QMessageBox.critical(parent, title, text)


def show_info(parent, title: str, text: str):
    QMessageBox.information(parent, title, text)


def ask_open_filename(parent, title: str, directory: str, file_filter: str) -> str:
    fn, _ = QFileDialog.getOpenFileName(parent, title, directory, file_filter)
    return fn


def ask_save_filename(parent, title: str, default_path: str, file_filter: str) -> str:
    fn, _ = QFileDialog.getSaveFileName(parent, title, default_path, file_filter)
    return fn


class AbsenceCalendar(QCalendarWidget):
    """Monatsraster mit rotem Zähler-Badge an Tagen mit Abwesenheiten."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setGridVisible(True)
        self.setFirstDayOfWeek(Qt.Monday)
        self.setVerticalHeaderFormat(QCalendarWidget.NoVerticalHeader)
        self.setNavigationBarVisible(False)
        self.counts: Dict[str, int] = {}

    def set_counts(self, counts: Dict[str, int]):
        self.counts = dict(counts)
        self.setDateTextFormat(QDate(), QTextCharFormat())
        for iso, n in self.counts.items():
            if n > 0:
                set_date_format(self, datetime.date.fromisoformat(iso), COLOR_ABSENT_DAY)
        self.updateCells()

    def count_for(self, qdate: QDate) -> int:
        return self.counts.get(qdate_to_date(qdate).isoformat(), 0)

    def paintCell(self, painter, rect, qdate):
        super().paintCell(painter, rect, qdate)
        n = self.count_for(qdate)
        if n <= 0:
            return
        painter.save()
        size = max(12, min(20, rect.height() // 2))
        badge = QRect(rect.right() - size - 2, rect.top() + 2, size, size)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor(COLOR_BADGE))
        painter.drawEllipse(badge)
        font = QFont(painter.font())
        font.setBold(True)
        font.setPointSize(7)
        painter.setFont(font)
        painter.setPen(QColor('white'))
        painter.drawText(badge, Qt.AlignCenter, str(n))
        painter.restore()


class DateRangePicker(QWidget):
    """Kompakter Datumswähler für einen Tag oder einen Zeitraum."""
    rangeChanged = Signal()

    def __init__(self, start: datetime.date, parent=None):
        super().__init__(parent)
        self.selection = RangeSelection(start)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self.calendar = QCalendarWidget()
        self.calendar.setGridVisible(True)
        self.calendar.setFirstDayOfWeek(Qt.Monday)
        self.calendar.setVerticalHeaderFormat(QCalendarWidget.NoVerticalHeader)
        self.calendar.setSelectedDate(date_to_qdate(start))
        layout.addWidget(self.calendar)
        self.info = QLabel()
        self.info.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.info)

        self.calendar.clicked.connect(self.on_day_clicked)
        self._refresh()

    def set_range_mode(self, is_range: bool):
        self.selection.set_range_mode(is_range)
        self._refresh()
        self.rangeChanged.emit()

    def on_day_clicked(self, qdate):
        self.click(qdate_to_date(qdate))

    def click(self, day: datetime.date):
        self.selection.click(day)
        self._refresh()
        self.rangeChanged.emit()

    def range(self):
        return self.selection.range()

    def _refresh(self):
        cal = self.calendar
        cal.setDateTextFormat(QDate(), QTextCharFormat())
        r = self.selection.range()
        if r:
            start, end = r
            d = start
            while d <= end:
                set_date_format(cal, d, COLOR_RANGE)
                d += datetime.timedelta(days=1)
            set_date_format(cal, start, COLOR_RANGE_EDGE, bold=True, text_color='white')
            set_date_format(cal, end, COLOR_RANGE_EDGE, bold=True, text_color='white')
        self.info.setText(self.selection.describe())


class AddAbsenceDialog(QDialog):
    def __init__(self, children: List[Child], initial: datetime.date, parent=None):
        super().__init__(parent)
        self.setWindowTitle(ADD_ABSENCE_BTN_TEXT)
        layout = QVBoxLayout(self)

        layout.addWidget(QLabel("Kind"))
        self.child_combo = QComboBox()
        self.child_combo.addItem(CHOOSE_CHILD_TEXT, 0)
        for child in children:
            label = f"{child.name} ({child.group})" if child.group else child.name
            self.child_combo.addItem(label, child.id)
        layout.addWidget(self.child_combo)

        layout.addWidget(QLabel("Zeitraum"))
        mode = QHBoxLayout()
        self.rb_single = QRadioButton("Einzelner Tag")
        self.rb_single.setChecked(True)
        self.rb_range = QRadioButton("Zeitraum")
        mode.addWidget(self.rb_single)
        mode.addWidget(self.rb_range)
        layout.addLayout(mode)

        self.picker = DateRangePicker(initial)
        layout.addWidget(self.picker)

        layout.addWidget(QLabel("Grund (optional)"))
        self.reason = QLineEdit()
        self.reason.setPlaceholderText("z.B. Urlaub, Krankheit...")
        layout.addWidget(self.reason)

        btns = QHBoxLayout()
        self.btn_cancel = QPushButton(CANCEL_BTN_TEXT)
        self.btn_save = QPushButton(SAVE_BTN_TEXT)
        btns.addStretch()
        btns.addWidget(self.btn_cancel)
        btns.addWidget(self.btn_save)
        layout.addLayout(btns)

        self.child_combo.currentIndexChanged.connect(self._update_save_enabled)
        self.rb_range.toggled.connect(self.picker.set_range_mode)
        self.picker.rangeChanged.connect(self._update_save_enabled)
        self.btn_cancel.clicked.connect(self.reject)
        self.btn_save.clicked.connect(self.accept)
        self._update_save_enabled()

    def selected_child_id(self) -> int:
        return self.child_combo.currentData() or 0

    def _update_save_enabled(self, *args):
        self.btn_save.setEnabled(bool(self.selected_child_id()) and self.picker.range() is not None)

    def payload(self) -> dict:
        start, end = self.picker.range()
        return {
            'child_id': self.selected_child_id(),
            'start_date': start.isoformat(),
            'end_date': end.isoformat(),
            'reason': self.reason.text().strip() or None,
        }


class CalendarTab(QWidget):
    def __init__(self, parent):
        super().__init__()
        self.parent = parent
        self.bridge: CommandBridge = parent.bridge
        today = datetime.date.today()
        self.current_month = today.replace(day=1)
        self.selected_date: Optional[datetime.date] = None
        self.stats: List[Dict] = []
        self.children: List[Child] = []
        self.day_absences: List[AbsenceWithChild] = []

        layout = QHBoxLayout(self)

        # Kalender
        left = QVBoxLayout()
        nav = QHBoxLayout()
        self.btn_prev = QPushButton("<")
        self.month_label = QLabel()
        self.month_label.setAlignment(Qt.AlignCenter)
        self.btn_next = QPushButton(">")
        self.btn_today = QPushButton(TODAY_BTN_TEXT)
        nav.addWidget(self.btn_prev)
        nav.addWidget(self.month_label, 1)
        nav.addWidget(self.btn_next)
        nav.addWidget(self.btn_today)
        left.addLayout(nav)
        self.calendar = AbsenceCalendar()
        left.addWidget(self.calendar)
        layout.addLayout(left, 3)

        # Seitenleiste
        side = QVBoxLayout()
        self.btn_add = QPushButton(ADD_ABSENCE_BTN_TEXT)
        side.addWidget(self.btn_add)

        self.day_group = QGroupBox("Tagesdetails")
        day_layout = QVBoxLayout(self.day_group)
        self.day_title = QLabel()
        self.day_info = QLabel()
        self.day_list = QListWidget()
        self.btn_delete = QPushButton(DELETE_ABSENCE_BTN_TEXT)
        day_layout.addWidget(self.day_title)
        day_layout.addWidget(self.day_info)
        day_layout.addWidget(self.day_list)
        day_layout.addWidget(self.btn_delete)
        self.day_group.setVisible(False)
        side.addWidget(self.day_group)

        month_group = QGroupBox("Monatsübersicht")
        month_layout = QVBoxLayout(month_group)
        self.lbl_days = QLabel()
        self.lbl_total = QLabel()
        self.btn_export = QPushButton(EXPORT_BTN_TEXT)
        month_layout.addWidget(self.lbl_days)
        month_layout.addWidget(self.lbl_total)
        month_layout.addWidget(self.btn_export)
        side.addWidget(month_group)
        side.addStretch()
        layout.addLayout(side, 1)

        # Signale
        self.btn_prev.clicked.connect(lambda: self.show_month(self.current_month - relativedelta(months=1)))
        self.btn_next.clicked.connect(lambda: self.show_month(self.current_month + relativedelta(months=1)))
        self.btn_today.clicked.connect(lambda: self.show_month(datetime.date.today()))
        self.calendar.currentPageChanged.connect(self.on_page_changed)
        self.calendar.clicked.connect(self.on_day_clicked)
        self.btn_add.clicked.connect(self.on_add_absence)
        self.btn_delete.clicked.connect(self.on_delete_absence)
        self.btn_export.clicked.connect(self.on_export_pdf)

        self.show_month(self.current_month)

    @property
    def year(self) -> int:
        return self.current_month.year

    @property
    def month(self) -> int:
        return self.current_month.month

    def show_month(self, d: datetime.date):
        self.current_month = d.replace(day=1)
        self.calendar.setCurrentPage(self.year, self.month)
        self.month_label.setText(f"{MONTH_NAMES[self.month - 1]} {self.year}")
        self.load_month_data()

    def on_page_changed(self, year: int, month: int):
        if (year, month) != (self.year, self.month):
            self.show_month(datetime.date(year, month, 1))

    def refresh(self):
        self.load_month_data()
        if self.selected_date:
            self.load_day()

    def load_month_data(self):
        try:
            stats = self.bridge.invoke('statistics-for-month', {'year': self.year, 'month': self.month})
            children = [Child.from_row(r) for r in self.bridge.invoke('list-children')]
        except Exception as e:
            logging.error(f"Fehler beim Laden: {e}")
            return
        self.stats = stats
        self.children = children
        self.calendar.set_counts(counts_by_date(stats))
        summary = summarize_month(stats)
        self.lbl_days.setText(f"Tage mit Abwesenheiten: {summary['days_with_absences']}")
        self.lbl_total.setText(f"Gesamt Abwesenheitstage: {summary['total_absence_days']}")

    def on_day_clicked(self, qdate):
        self.select_date(qdate_to_date(qdate))

    def select_date(self, d: Optional[datetime.date]):
        self.selected_date = d
        if d is None:
            self.day_group.setVisible(False)
            return
        self.load_day()

    def load_day(self):
        d = self.selected_date
        try:
            rows = self.bridge.invoke('list-absences-for-day', d.isoformat())
        except Exception as e:
            logging.error(f"Fehler beim Laden der Tagesabwesenheiten: {e}")
            return
        self.day_absences = [AbsenceWithChild.from_row(r) for r in rows]
        self.day_title.setText(f"{WEEKDAY_NAMES[d.weekday()]}, {d.day}. {MONTH_NAMES[d.month - 1]} {d.year}")
        n = len(self.day_absences)
        if n == 0:
            self.day_info.setText(NO_ABSENCES_TEXT)
        else:
            self.day_info.setText(f"{n} Kind{'er' if n != 1 else ''} abwesend:")
        self.day_list.clear()
        for abw in self.day_absences:
            detail = format_range(abw.start_date, abw.end_date)
            if abw.child_group:
                detail = f"{abw.child_group} • {detail}"
            text = f"{abw.child_name}\n{detail}"
            if abw.reason:
                text += f"\n{abw.reason}"
            item = QListWidgetItem(text)
            item.setData(Qt.UserRole, abw.id)
            self.day_list.addItem(item)
        self.btn_delete.setEnabled(n > 0)
        self.day_group.setVisible(True)

    def on_add_absence(self):
        dlg = AddAbsenceDialog(self.children, self.selected_date or datetime.date.today(), self)
        if dlg.exec() == QDialog.Accepted:
            self.submit_absence(dlg.payload())

    def submit_absence(self, payload: dict) -> Optional[int]:
        try:
            new_id = self.bridge.invoke('add-absence', payload)
        except Exception as e:
            logging.error(f"Fehler beim Hinzufügen: {e}")
            show_error(self, GENERIC_ERROR_TITLE, SAVE_ERROR_TEXT)
            return None
        self.parent.on_data_changed()
        return new_id

    def on_delete_absence(self):
        item = self.day_list.currentItem()
        if not item:
            return
        if not ask_confirmation(self, "Löschen bestätigen", "Abwesenheit wirklich löschen?"):
            return
        try:
            self.bridge.invoke('delete-absence', item.data(Qt.UserRole))
        except Exception as e:
            logging.error(f"Fehler beim Löschen: {e}")
            show_error(self, GENERIC_ERROR_TITLE, DELETE_ERROR_TEXT)
            return
        self.parent.on_data_changed()

    def on_export_pdf(self):
        directory = config.load_config().get('last_export_dir') or ''
        default = os.path.join(directory, export_filename(self.year, self.month))
        fn = ask_save_filename(self, PDF_SAVE_TITLE, default, PDF_FILE_FILTER)
        if not fn:
            return
        config.remember('last_export_dir', os.path.dirname(fn))
        self.parent.start_export(list(self.stats), self.year, self.month, fn)


class ChildrenTab(QWidget):
    def __init__(self, parent):
        super().__init__()
        self.parent = parent
        self.bridge: CommandBridge = parent.bridge
        self.children: List[Child] = []
        self.filtered: List[Child] = []
        self.editing_id: Optional[int] = None
        self.edit_fields: Dict[str, QLineEdit] = {}
        layout = QVBoxLayout(self)

        header = QHBoxLayout()
        self.title = QLabel()
        header.addWidget(self.title, 1)
        self.btn_import = QPushButton(IMPORT_BTN_TEXT)
        self.btn_show_add = QPushButton(ADD_CHILD_BTN_TEXT)
        header.addWidget(self.btn_import)
        header.addWidget(self.btn_show_add)
        layout.addLayout(header)

        self.search = QLineEdit()
        self.search.setPlaceholderText("Suchen nach Name oder Gruppe...")
        layout.addWidget(self.search)

        # Neues Kind
        self.add_form = QGroupBox("Neues Kind hinzufügen")
        form = QHBoxLayout(self.add_form)
        self.new_name = QLineEdit()
        self.new_name.setPlaceholderText("Name *")
        self.new_group = QLineEdit()
        self.new_group.setPlaceholderText("Gruppe")
        self.new_birth = QLineEdit()
        self.new_birth.setPlaceholderText("Geburtsdatum (YYYY-MM-DD)")
        self.btn_save_new = QPushButton(SAVE_BTN_TEXT)
        self.btn_cancel_new = QPushButton(CANCEL_BTN_TEXT)
        for w in (self.new_name, self.new_group, self.new_birth, self.btn_save_new, self.btn_cancel_new):
            form.addWidget(w)
        self.add_form.setVisible(False)
        layout.addWidget(self.add_form)
        self.group_model = QStringListModel(self)
        self.group_completer = QCompleter(self.group_model, self)
        self.group_completer.setCaseSensitivity(Qt.CaseInsensitive)
        self.new_group.setCompleter(self.group_completer)

        info = QLabel(CSV_INFO_TEXT)
        info.setStyleSheet("color: gray; font-size: 11px;")
        layout.addWidget(info)

        self.table = QTableWidget(0, 4)
        self.table.setHorizontalHeaderLabels(["Name", "Gruppe", "Geburtsdatum", "Aktionen"])
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.table.setSelectionMode(QAbstractItemView.NoSelection)
        self.table.verticalHeader().setVisible(False)
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        layout.addWidget(self.table)

        # Signale
        self.search.textChanged.connect(self.apply_filter)
        self.btn_import.clicked.connect(self.on_import_csv)
        self.btn_show_add.clicked.connect(self.show_add_form)
        self.btn_save_new.clicked.connect(self.on_add_child)
        self.btn_cancel_new.clicked.connect(self.hide_add_form)
        self.new_name.textChanged.connect(
            lambda text: self.btn_save_new.setEnabled(bool(text.strip())))
        self.btn_save_new.setEnabled(False)

        self.load_children()

    def groups(self) -> List[str]:
        return sorted({c.group for c in self.children if c.group})

    def load_children(self):
        try:
            rows = self.bridge.invoke('list-children')
        except Exception as e:
            logging.error(f"Fehler beim Laden der Kinder: {e}")
            return
        self.children = [Child.from_row(r) for r in rows]
        self.group_model.setStringList(self.groups())
        self.title.setText(f"Kinderliste ({len(self.children)})")
        self.apply_filter()

    def apply_filter(self, *args):
        term = self.search.text().strip().lower()
        self.filtered = [c for c in self.children
                         if term in c.name.lower() or term in c.group.lower()]
        self.render_table()

    def _action_buttons(self, *buttons) -> QWidget:
        w = QWidget()
        hl = QHBoxLayout(w)
        hl.setContentsMargins(2, 0, 2, 0)
        for b in buttons:
            hl.addWidget(b)
        return w

    def render_table(self):
        self.table.clearSpans()
        self.table.setRowCount(0)
        self.edit_fields = {}
        if not self.filtered:
            self.table.setRowCount(1)
            self.table.setSpan(0, 0, 1, 4)
            item = QTableWidgetItem(NO_MATCH_TEXT if self.search.text().strip() else NO_CHILDREN_TEXT)
            item.setTextAlignment(Qt.AlignCenter)
            self.table.setItem(0, 0, item)
            return
        self.table.setRowCount(len(self.filtered))
        for row, child in enumerate(self.filtered):
            if child.id == self.editing_id:
                for col, key, value in ((0, 'name', child.name), (1, 'group', child.group),
                                        (2, 'birth_date', child.birth_date or '')):
                    edit = QLineEdit(value)
                    if key == 'group':
                        edit.setCompleter(self.group_completer)
                    self.edit_fields[key] = edit
                    self.table.setCellWidget(row, col, edit)
                btn_save = QPushButton(SAVE_BTN_TEXT)
                btn_cancel = QPushButton(CANCEL_BTN_TEXT)
                btn_save.clicked.connect(lambda _=False, cid=child.id: self.on_save_edit(cid))
                btn_cancel.clicked.connect(self.cancel_editing)
                self.table.setCellWidget(row, 3, self._action_buttons(btn_save, btn_cancel))
            else:
                self.table.setItem(row, 0, QTableWidgetItem(child.name))
                self.table.setItem(row, 1, QTableWidgetItem(child.group or "-"))
                self.table.setItem(row, 2, QTableWidgetItem(child.birth_date or "-"))
                btn_edit = QPushButton(EDIT_BTN_TEXT)
                btn_delete = QPushButton(DELETE_BTN_TEXT)
                btn_edit.clicked.connect(lambda _=False, c=child: self.start_editing(c))
                btn_delete.clicked.connect(lambda _=False, c=child: self.on_delete_child(c))
                self.table.setCellWidget(row, 3, self._action_buttons(btn_edit, btn_delete))

    def show_add_form(self):
        self.add_form.setVisible(True)
        self.new_name.setFocus()

    def hide_add_form(self):
        self.add_form.setVisible(False)
        for w in (self.new_name, self.new_group, self.new_birth):
            w.clear()

    def on_add_child(self):
        name = self.new_name.text().strip()
        if not name:
            return
        payload = {
            'name': name,
            'group': self.new_group.text().strip(),
            'birth_date': self.new_birth.text().strip() or None,
        }
        try:
            self.bridge.invoke('add-child', payload)
        except Exception as e:
            logging.error(f"Fehler beim Hinzufügen: {e}")
            show_error(self, GENERIC_ERROR_TITLE, SAVE_ERROR_TEXT)
            return
        self.hide_add_form()
        self.parent.on_data_changed()

    def start_editing(self, child: Child):
        self.editing_id = child.id
        self.render_table()

    def cancel_editing(self):
        self.editing_id = None
        self.render_table()

    def on_save_edit(self, child_id: int):
        name = self.edit_fields['name'].text().strip()
        if not name:
            return
        payload = {
            'id': child_id,
            'name': name,
            'group': self.edit_fields['group'].text().strip(),
            'birth_date': self.edit_fields['birth_date'].text().strip() or None,
        }
        try:
            self.bridge.invoke('update-child', payload)
        except Exception as e:
            logging.error(f"Fehler beim Aktualisieren: {e}")
            show_error(self, GENERIC_ERROR_TITLE, SAVE_ERROR_TEXT)
            return
        self.editing_id = None
        self.parent.on_data_changed()

    def on_delete_child(self, child: Child):
        if not ask_confirmation(self, "Löschen bestätigen",
                                f'Möchten Sie "{child.name}" wirklich löschen?'):
            return
        try:
            self.bridge.invoke('delete-child', child.id)
        except Exception as e:
            logging.error(f"Fehler beim Löschen: {e}")
            show_error(self, GENERIC_ERROR_TITLE, DELETE_ERROR_TEXT)
            return
        if self.editing_id == child.id:
            self.editing_id = None
        self.parent.on_data_changed()

    def on_import_csv(self):
        try:
            content = self.bridge.invoke('open-file-dialog')
            if content is None:
                return
            count = self.bridge.invoke('import-children-csv', content)
        except Exception as e:
            logging.error(f"Fehler beim CSV-Import: {e}")
            show_error(self, "CSV-Import", IMPORT_ERROR_TEXT)
            return
        show_info(self, "CSV-Import", f"{count} Kinder erfolgreich importiert!")
        self.parent.on_data_changed()


class ExportWorker(QObject):
    finished = Signal(str)
    error = Signal(str)

    def __init__(self, stats, year, month, out_fn):
        super().__init__()
        self.stats = stats
        self.year = year
        self.month = month
        self.out_fn = out_fn

    def run(self):
        logging.info("[KitaAbwesenheit] ExportWorker.run gestartet.")
        try:
            export_month_pdf(self.stats, self.year, self.month, self.out_fn)
            self.finished.emit(self.out_fn)
        except OSError as e:
            logging.error(f"ExportWorker OSError: {e}")
            self.error.emit(f"Dateifehler: {e}")
        except Exception as e:
            logging.error(f"ExportWorker error: {e}")
            self.error.emit(str(e))


class MainWindow(QMainWindow):
    def __init__(self, bridge: CommandBridge = None):
        super().__init__()
        self.setWindowTitle(APP_TITLE)
        self.resize(1400, 900)
        self.setMinimumSize(1100, 750)
        self.bridge = bridge if bridge is not None else CommandBridge(Database())
        if self.bridge.choose_file is None:
            self.bridge.choose_file = self.choose_csv_file
        self.export_thread = None
        self.export_worker = None

        # Stelle sicher, dass die DB-Verbindung geschlossen wird
        app = QApplication.instance()
        app.aboutToQuit.connect(self.cleanup)

        self.tabs = QTabWidget()
        self.setCentralWidget(self.tabs)
        self.calendar_tab = CalendarTab(self)
        self.children_tab = ChildrenTab(self)
        self.tabs.addTab(self.calendar_tab, TAB_CALENDAR)
        self.tabs.addTab(self.children_tab, TAB_CHILDREN)

    def choose_csv_file(self) -> Optional[str]:
        directory = config.load_config().get('last_csv_dir') or ''
        fn = ask_open_filename(self, CSV_OPEN_TITLE, directory, CSV_FILE_FILTER)
        if not fn:
            return None
        config.remember('last_csv_dir', os.path.dirname(fn))
        return fn

    def on_data_changed(self):
        # nach jedem Schreibzugriff alles neu laden statt lokal zu patchen
        self.calendar_tab.refresh()
        self.children_tab.load_children()

    def start_export(self, stats, year, month, fn):
        logging.info("[KitaAbwesenheit] PDF-Export angefordert.")
        if self.export_thread and self.export_thread.isRunning():
            logging.info("[KitaAbwesenheit] Export-Thread läuft bereits.")
            return
        self.export_thread = QThread()
        self.export_worker = ExportWorker(stats, year, month, fn)
        self.export_worker.moveToThread(self.export_thread)
        self.export_thread.started.connect(self.export_worker.run)
        self.export_worker.finished.connect(self.on_export_finished)
        self.export_worker.error.connect(self.on_export_error)
        self.export_worker.finished.connect(self.export_thread.quit)
        self.export_worker.error.connect(self.export_thread.quit)
        self.export_worker.finished.connect(self.export_worker.deleteLater)
        self.export_worker.error.connect(self.export_worker.deleteLater)
        self.export_thread.finished.connect(self.export_thread.deleteLater)
        self.export_thread.finished.connect(self._forget_export_thread)
        self.export_thread.start()

    def _forget_export_thread(self):
        self.export_thread = None
        self.export_worker = None

    def on_export_finished(self, fn):
        show_info(self, 'Export', f"PDF erfolgreich gespeichert: {fn}")

    def on_export_error(self, msg):
        logging.error(f"Export error: {msg}")
        show_error(self, 'Export-Fehler', msg)

    def cleanup(self):
        thread = self.export_thread
        if thread is not None:
            try:
                if thread.isRunning():
                    thread.quit()
                    thread.wait()
            except RuntimeError:
                pass  # Thread-Objekt wurde bereits gelöscht
            self.export_thread = None
        if self.bridge and self.bridge.db:
            self.bridge.db.close()


def run_app(db_path: Optional[str] = None) -> int:
    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName(APP_TITLE)
    try:
        db = Database(db_path)
    except Exception as e:
        # ohne Datenbank kann die Anwendung nicht arbeiten
        show_error(None, "Datenbankfehler", f"Die Datenbank konnte nicht geöffnet werden:\n{e}")
        return 1
    win = MainWindow(CommandBridge(db))
    win.show()
    return app.exec()
