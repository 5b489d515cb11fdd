# src/kitaabsence/validators.py
import re
from datetime import date, datetime
from typing import Any, Optional

from dateutil import parser as date_parser

from kitaabsence.errors import ValidationError

# ISO-Form, die fromisoformat abgelehnt hat (z.B. Monat 13)
_ISO_SHAPE = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}$")
# Tag und Monat vorne, z.B. 24.12.2020 oder 3/4/2021
_DAY_FIRST = re.compile(r"^(\d{1,2})\D+(\d{1,2})\D+\d{2,4}$")
# zwei verschiedene Vorgaben, damit fehlende Datumsteile auffallen
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} darf nicht leer sein")
    return value.strip()


def optional_text(value: Any, field_name: str) -> Optional[str]:
    """Leere Texte werden zu None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} muss Text sein")
    return value.strip() or None


def require_int(value: Any, field_name: str) -> int:
    # bool ist ein int, als ID aber sicher ein Fehler
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} muss eine Zahl sein")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValidationError(f"{field_name} muss eine Zahl sein")


def require_iso_date(value: Any, field_name: str) -> str:
    """Erwartet ein Datum im Format YYYY-MM-DD (oder date) und liefert den ISO-Text."""
    # datetime ist auch ein date, die Uhrzeit darf nicht mit gespeichert werden
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} fehlt")
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        raise ValidationError(f"{field_name} ist kein gültiges Datum: {value!r}")


def parse_date_lenient(value: str) -> date:
    """
    ISO-Daten direkt, alles andere (z.B. 24.12.2020) über dateutil mit Tag vorne.
    ISO muss zuerst probiert werden, sonst dreht dayfirst=True Monat und Tag.
    Unvollständige Angaben (nur Jahr, nur Monat) und vertauschte Felder werden
    abgelehnt statt ergänzt.
    """
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    if _ISO_SHAPE.match(text):
        raise ValidationError(f"Kein gültiges Datum: {value!r}")
    try:
        first = date_parser.parse(text, dayfirst=True, default=_DEFAULT_A)
        second = date_parser.parse(text, dayfirst=True, default=_DEFAULT_B)
    except (ValueError, OverflowError):
        raise ValidationError(f"Kein gültiges Datum: {value!r}")
    if first != second:
        raise ValidationError(f"Unvollständiges Datum: {value!r}")
    m = _DAY_FIRST.match(text)
    if m and (first.day, first.month) != (int(m.group(1)), int(m.group(2))):
        raise ValidationError(f"Kein gültiges Datum: {value!r}")
    return first.date()


def optional_birth_date(value: Any, field_name: str = "Geburtsdatum") -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} muss Text sein")
    if not value.strip():
        return None
    return parse_date_lenient(value).isoformat()


def require_month(year: Any, month: Any):
    y = require_int(year, "Jahr")
    m = require_int(month, "Monat")
    if not 1 <= m <= 12:
        raise ValidationError(f"Monat muss zwischen 1 und 12 liegen, nicht {m}")
    if not 1 <= y <= 9999:
        raise ValidationError(f"Ungültiges Jahr: {y}")
    return y, m
