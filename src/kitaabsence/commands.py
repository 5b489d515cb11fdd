import os
import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional

from kitaabsence.csv_import import parse_children_csv
from kitaabsence.data import Database
from kitaabsence.errors import UnknownCommandError, ValidationError
from kitaabsence.models import (
    AddChildRequest, UpdateChildRequest, MonthRequest, AddAbsenceRequest, DayStatistic,
)
from kitaabsence.statistics import month_bounds, month_days
from kitaabsence.validators import require_int, require_iso_date

_CHILD_COLUMNS = 'id, name, group_name AS "group", birth_date'

_ABSENCE_WITH_CHILD = """
    SELECT a.id, a.child_id, a.start_date, a.end_date, a.reason,
           c.name AS child_name, c.group_name AS child_group
    FROM absences a
    JOIN children c ON a.child_id = c.id
    WHERE a.start_date <= ? AND a.end_date >= ?
"""


class CommandBridge:
    """
    Einzige Schnittstelle zwischen Oberfläche und Datenbank.

    Jeder Befehl hat einen festen Namen, nimmt einfache Daten entgegen und gibt
    einfache Daten zurück (dicts, Listen, int, bool, str oder None). Nutzdaten
    werden hier in typisierte Requests übersetzt und geprüft.

    `choose_file` liefert für 'open-file-dialog' einen Dateipfad oder None
    (Abbruch). Die Oberfläche übergibt dafür einen QFileDialog.
    """

    def __init__(self, db: Database, choose_file: Optional[Callable[[], Optional[str]]] = None):
        self.db = db
        self.choose_file = choose_file
        self._handlers: Dict[str, Callable[[Any], Any]] = {
            'list-children': self.list_children,
            'add-child': self.add_child,
            'update-child': self.update_child,
            'delete-child': self.delete_child,
            'import-children-csv': self.import_children_csv,
            'list-absences-for-month': self.list_absences_for_month,
            'list-absences-for-day': self.list_absences_for_day,
            'add-absence': self.add_absence,
            'delete-absence': self.delete_absence,
            'statistics-for-month': self.statistics_for_month,
            'open-file-dialog': self.open_file_dialog,
        }

    @property
    def command_names(self) -> List[str]:
        return list(self._handlers)

    def invoke(self, name: str, payload: Any = None) -> Any:
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownCommandError(name)
        logging.debug(f"Befehl {name}: {payload!r}")
        try:
            return handler(payload)
        except ValidationError as e:
            logging.warning(f"Befehl {name} abgelehnt: {e}")
            raise
        except Exception as e:
            logging.error(f"Befehl {name} fehlgeschlagen: {e}")
            raise

    # === Kinder ===

    def list_children(self, payload=None) -> List[Dict]:
        return self.db.query_all(
            f"SELECT {_CHILD_COLUMNS} FROM children ORDER BY group_name, name"
        )

    def add_child(self, payload) -> int:
        req = AddChildRequest.from_payload(payload)
        self.db.run_sql(
            "INSERT INTO children (name, group_name, birth_date) VALUES (?,?,?)",
            (req.name, req.group, req.birth_date)
        )
        new_id = self.db.last_insert_id()
        logging.info(f"Kind angelegt: id={new_id} name={req.name!r}")
        return new_id

    def update_child(self, payload) -> bool:
        req = UpdateChildRequest.from_payload(payload)
        changed = self.db.run_sql(
            "UPDATE children SET name=?, group_name=?, birth_date=? WHERE id=?",
            (req.name, req.group, req.birth_date, req.id)
        )
        return changed > 0

    def delete_child(self, payload) -> bool:
        child_id = require_int(payload, 'ID')
        with self.db.batch():
            # Abwesenheiten explizit zuerst, nicht nur über ON DELETE CASCADE
            self.db.run_sql("DELETE FROM absences WHERE child_id=?", (child_id,))
            deleted = self.db.run_sql("DELETE FROM children WHERE id=?", (child_id,))
        if deleted:
            logging.info(f"Kind id={child_id} gelöscht")
        return deleted > 0

    def import_children_csv(self, payload) -> int:
        if not isinstance(payload, str):
            raise ValidationError("CSV-Inhalt muss Text sein")
        children = parse_children_csv(payload)
        with self.db.batch():
            for child in children:
                self.db.run_sql(
                    "INSERT INTO children (name, group_name, birth_date) VALUES (?,?,?)",
                    (child.name, child.group, child.birth_date)
                )
        logging.info(f"CSV-Import: {len(children)} Kinder importiert")
        return len(children)

    # === Abwesenheiten ===

    def list_absences_for_month(self, payload) -> List[Dict]:
        req = MonthRequest.from_payload(payload)
        first, last = month_bounds(req.year, req.month)
        return self.db.query_all(
            _ABSENCE_WITH_CHILD + " ORDER BY a.start_date, c.name",
            (last, first)
        )

    def list_absences_for_day(self, payload) -> List[Dict]:
        day = require_iso_date(payload, 'Datum')
        return self.db.query_all(
            _ABSENCE_WITH_CHILD + " ORDER BY c.group_name, c.name",
            (day, day)
        )

    def add_absence(self, payload) -> int:
        req = AddAbsenceRequest.from_payload(payload)
        self.db.run_sql(
            "INSERT INTO absences (child_id, start_date, end_date, reason) VALUES (?,?,?,?)",
            (req.child_id, req.start_date, req.end_date, req.reason)
        )
        return self.db.last_insert_id()

    def delete_absence(self, payload) -> bool:
        absence_id = require_int(payload, 'ID')
        return self.db.run_sql("DELETE FROM absences WHERE id=?", (absence_id,)) > 0

    def statistics_for_month(self, payload) -> List[Dict]:
        req = MonthRequest.from_payload(payload)
        stats = []
        for day in month_days(req.year, req.month):
            iso = day.isoformat()
            row = self.db.query_one(
                "SELECT COUNT(*) AS count FROM absences WHERE start_date <= ? AND end_date >= ?",
                (iso, iso)
            )
            stats.append(asdict(DayStatistic(iso, row['count'] if row else 0)))
        return stats

    # === Dialog ===

    def open_file_dialog(self, payload=None) -> Optional[str]:
        if self.choose_file is None:
            logging.warning("Kein Dateidialog konfiguriert")
            return None
        path = self.choose_file()
        if not path:
            return None
        if os.path.splitext(path)[1].lower() != '.csv':
            raise ValidationError(f"Nur CSV-Dateien erlaubt: {path}")
        with open(path, 'r', encoding='utf-8-sig') as f:
            return f.read()
