from datetime import date
from typing import Optional, Tuple

MONTH_NAMES = [
    'Januar', 'Februar', 'März', 'April', 'Mai', 'Juni',
    'Juli', 'August', 'September', 'Oktober', 'November', 'Dezember',
]
MONTH_ABBR = ['Jan.', 'Feb.', 'März', 'Apr.', 'Mai', 'Juni',
              'Juli', 'Aug.', 'Sep.', 'Okt.', 'Nov.', 'Dez.']


class RangeSelection:
    """
    Auswahlzustand des Datumsbereich-Pickers.

    Im Bereichsmodus setzt der erste Klick den Start. Ein zweiter Klick vor dem
    Start beginnt den Bereich dort neu, ein zweiter Klick am oder nach dem Start
    setzt das Ende. Ein umgekehrter Bereich entsteht nie.
    """

    def __init__(self, start: Optional[date] = None, is_range: bool = False):
        self.start = start
        self.end = start
        self.is_range = is_range
        self.selecting_end = False

    def set_range_mode(self, is_range: bool):
        self.is_range = is_range
        self.selecting_end = False
        # Wechsel in den Einzelmodus: Ende fällt auf den Start zurück
        if not is_range:
            self.end = self.start

    def click(self, day: date):
        if not self.is_range:
            self.start = self.end = day
            return
        if not self.selecting_end or self.start is None:
            self.start = self.end = day
            self.selecting_end = True
        elif day < self.start:
            self.start = self.end = day
        else:
            self.end = day
            self.selecting_end = False

    def range(self) -> Optional[Tuple[date, date]]:
        if self.start is None:
            return None
        return self.start, self.end or self.start

    def describe(self) -> str:
        """Kurztext unter dem Picker, z.B. '3. Feb. – 7. Feb. 2025'."""
        if self.start is None:
            return ''
        if self.is_range and self.selecting_end:
            return 'Enddatum wählen'
        s, e = self.range()
        if self.is_range and e != s:
            return f"{s.day}. {MONTH_ABBR[s.month - 1]} – {e.day}. {MONTH_ABBR[e.month - 1]} {e.year}"
        return f"{s.day}. {MONTH_NAMES[s.month - 1]} {s.year}"
