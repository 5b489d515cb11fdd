import calendar
from datetime import date
from typing import Dict, List, Tuple


def month_days(year: int, month: int) -> List[date]:
    """Alle Kalendertage des Monats (28 bis 31 Stück)."""
    last = calendar.monthrange(year, month)[1]
    return [date(year, month, d) for d in range(1, last + 1)]


def month_bounds(year: int, month: int) -> Tuple[str, str]:
    """Erster und letzter Tag des Monats als ISO-Text."""
    days = month_days(year, month)
    return days[0].isoformat(), days[-1].isoformat()


def summarize_month(stats: List[Dict]) -> Dict[str, int]:
    """
    Zusammenfassung der Tagesstatistik eines Monats:
      days_with_absences : Anzahl Tage mit mindestens einer Abwesenheit
      total_absence_days : Summe aller Abwesenheiten über alle Tage
    """
    counts = [int(s['count']) for s in stats]
    return {
        'days_with_absences': sum(1 for c in counts if c > 0),
        'total_absence_days': sum(counts),
    }


def counts_by_date(stats: List[Dict]) -> Dict[str, int]:
    return {s['date']: int(s['count']) for s in stats}
