# src/kitaabsence/charts.py

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.ticker import MaxNLocator

COLOR_NONE = '#CBD5E1'
COLOR_ABSENT = '#EF4444'


def create_bar_chart(values: list[int], labels: list[str], filename: str, title: str = None):
    """
    Erstellt ein Balkendiagramm und speichert es als PNG.
    :param values: Werte pro Balken (z.B. Abwesenheiten pro Tag).
    :param labels: Beschriftung der x-Achse (z.B. Tag im Monat).
    :param filename: Pfad zur Ausgabedatei.
    :param title: (Optional) Überschrift.
    """
    fig, ax = plt.subplots(figsize=(8, 3))
    if not values or sum(values) == 0:
        ax.text(0.5, 0.5, "Keine Daten", ha="center", va="center", fontsize=14)
        ax.axis("off")
    else:
        colors = [COLOR_ABSENT if v > 0 else COLOR_NONE for v in values]
        ax.bar(labels, values, color=colors)
        ax.set_ylabel('Abwesend')
        ax.yaxis.set_major_locator(MaxNLocator(integer=True))
        ax.grid(True, axis='y', linestyle=':')
        plt.setp(ax.get_xticklabels(), fontsize=7)
    if title:
        ax.set_title(title)
    fig.tight_layout()
    fig.savefig(filename, bbox_inches="tight")
    plt.close(fig)
