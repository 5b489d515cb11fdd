import re
import logging
from typing import List

from kitaabsence.errors import ValidationError
from kitaabsence.models import Child
from kitaabsence.validators import parse_date_lenient

_SEPARATORS = re.compile(r"[,;]")
_QUOTES = '"\''


def _clean(field: str) -> str:
    return field.strip().strip(_QUOTES).strip()


def parse_children_csv(content: str) -> List[Child]:
    """
    Kinderliste aus CSV-Text lesen.

    Format: erste Zeile ist der Header und wird übersprungen. Danach pro Zeile
    Name, Gruppe, Geburtsdatum getrennt durch Komma oder Semikolon. Anführungszeichen
    an den Feldgrenzen werden entfernt, Trennzeichen in Feldern werden nicht unterstützt.
    Zeilen ohne Namen werden übersprungen.
    """
    children = []
    for lineno, raw in enumerate(content.splitlines()):
        if lineno == 0:
            continue
        line = raw.strip()
        if not line:
            continue
        parts = [_clean(p) for p in _SEPARATORS.split(line)]
        name = parts[0] if parts else ''
        if not name:
            logging.info(f"CSV-Zeile {lineno + 1} ohne Namen übersprungen")
            continue
        group = parts[1] if len(parts) > 1 else ''
        birth = parts[2] if len(parts) > 2 and parts[2] else None
        if birth is not None:
            try:
                birth = parse_date_lenient(birth).isoformat()
            except ValidationError:
                # unbekanntes Format: Text unverändert übernehmen
                logging.warning(f"CSV-Zeile {lineno + 1}: Geburtsdatum {birth!r} nicht erkannt")
        children.append(Child(name, group, birth))
    return children
