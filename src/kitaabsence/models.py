# src/kitaabsence/models.py
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from kitaabsence.errors import ValidationError
from kitaabsence.validators import (
    require_non_empty, require_int, require_iso_date, require_month,
    optional_text, optional_birth_date,
)


@dataclass
class Child:
    """Ein Kind der Kita."""
    id: Optional[int] = field(default=None, init=False)    # db-Primärschlüssel
    name: str
    group: str = ''               # Freitext, keine feste Liste
    birth_date: Optional[str] = None   # ISO-Text

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Child':
        child = cls(row['name'], row.get('group') or '', row.get('birth_date'))
        child.id = row['id']
        return child


@dataclass
class Absence:
    """Abwesenheit eines Kindes von start_date bis end_date (inklusive)."""
    id: Optional[int] = field(default=None, init=False)    # db-Primärschlüssel
    child_id: int
    start_date: str
    end_date: str
    reason: Optional[str] = None


@dataclass
class AbsenceWithChild(Absence):
    """Abwesenheit inklusive Name und Gruppe des Kindes (für Kalender und Tagesansicht)."""
    child_name: str = ''
    child_group: str = ''

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'AbsenceWithChild':
        abw = cls(row['child_id'], row['start_date'], row['end_date'], row.get('reason'),
                  row.get('child_name') or '', row.get('child_group') or '')
        abw.id = row['id']
        return abw


@dataclass
class DayStatistic:
    date: str
    count: int = 0


# === Request-Typen der Befehle ===

def _require_mapping(payload: Any, command: str) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError(f"{command}: Nutzdaten müssen ein Objekt sein")
    return payload


@dataclass
class AddChildRequest:
    name: str
    group: str = ''
    birth_date: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> 'AddChildRequest':
        p = _require_mapping(payload, 'add-child')
        return cls(
            name=require_non_empty(p.get('name'), 'Name'),
            group=optional_text(p.get('group'), 'Gruppe') or '',
            birth_date=optional_birth_date(p.get('birth_date')),
        )


@dataclass
class UpdateChildRequest:
    id: int
    name: str
    group: str = ''
    birth_date: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> 'UpdateChildRequest':
        p = _require_mapping(payload, 'update-child')
        return cls(
            id=require_int(p.get('id'), 'ID'),
            name=require_non_empty(p.get('name'), 'Name'),
            group=optional_text(p.get('group'), 'Gruppe') or '',
            birth_date=optional_birth_date(p.get('birth_date')),
        )


@dataclass
class MonthRequest:
    year: int
    month: int

    @classmethod
    def from_payload(cls, payload: Any) -> 'MonthRequest':
        p = _require_mapping(payload, 'month')
        year, month = require_month(p.get('year'), p.get('month'))
        return cls(year, month)


@dataclass
class AddAbsenceRequest:
    child_id: int
    start_date: str
    end_date: str
    reason: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> 'AddAbsenceRequest':
        p = _require_mapping(payload, 'add-absence')
        if not p.get('child_id'):
            raise ValidationError("Kein Kind ausgewählt")
        child_id = require_int(p.get('child_id'), 'Kind')
        start = require_iso_date(p.get('start_date'), 'Von-Datum')
        # ohne Enddatum: eintägige Abwesenheit
        end = require_iso_date(p['end_date'], 'Bis-Datum') if p.get('end_date') else start
        if end < start:
            raise ValidationError(f"Bis-Datum {end} liegt vor Von-Datum {start}")
        return cls(child_id, start, end, optional_text(p.get('reason'), 'Grund'))
