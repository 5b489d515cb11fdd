import os
import sqlite3
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

from kitaabsence.config import default_db_path
from kitaabsence.errors import StoreNotInitializedError


class Database:
    """
    Eingebettete SQLite-Datenbank mit Kindern und Abwesenheiten.

    Gearbeitet wird auf einer In-Memory-Kopie; nach jedem Schreibzugriff wird
    der komplette Bestand in die Datei geschrieben (kein WAL, kein inkrementelles
    Speichern). Bei ':memory:' gibt es keine Datei.
    """

    def __init__(self, db_path: str = None):
        try:
            self.db_path = db_path or default_db_path()
            self.conn = sqlite3.connect(':memory:')
            self.conn.row_factory = sqlite3.Row
            if self.db_path != ':memory:':
                os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
                if os.path.exists(self.db_path):
                    self._load_file()
            self.conn.execute("PRAGMA foreign_keys = ON;")
            self._in_batch = False
            self._ensure_tables()
            self.save()
        except Exception as e:
            logging.error(f"Database connection error: {e}")
            raise

    def _load_file(self):
        src = sqlite3.connect(self.db_path)
        try:
            src.backup(self.conn)
        finally:
            src.close()

    def _ensure_tables(self):
        cur = self.conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS children (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          name TEXT NOT NULL,
          group_name TEXT NOT NULL DEFAULT '',
          birth_date TEXT
        )""")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS absences (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          child_id INTEGER NOT NULL,
          start_date TEXT NOT NULL,
          end_date TEXT NOT NULL,
          reason TEXT,
          FOREIGN KEY(child_id) REFERENCES children(id) ON DELETE CASCADE
        )""")

        # Bereichsabfragen laufen immer über start_date/end_date
        cur.execute("""
        CREATE INDEX IF NOT EXISTS idx_absences_dates
          ON absences(start_date, end_date)
        """)
        self.conn.commit()

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise StoreNotInitializedError()
        return self.conn

    def save(self):
        """Kompletten Bestand in die Datei schreiben (über Temp-Datei + replace)."""
        conn = self._connection()
        if self.db_path == ':memory:':
            return
        tmp_path = self.db_path + '.tmp'
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        dst = sqlite3.connect(tmp_path)
        try:
            conn.backup(dst)
        finally:
            dst.close()
        os.replace(tmp_path, self.db_path)

    # Abfragen
    def query_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        cur = self._connection().execute(sql, tuple(params))
        try:
            return [dict(row) for row in cur.fetchall()]
        finally:
            cur.close()

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        rows = self.query_all(sql, params)
        return rows[0] if rows else None

    def run_sql(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Schreibende Anweisung ausführen, speichern, Anzahl geänderter Zeilen liefern."""
        conn = self._connection()
        try:
            cur = conn.execute(sql, tuple(params))
        except sqlite3.Error:
            if not self._in_batch:
                conn.rollback()
            raise
        count = cur.rowcount
        cur.close()
        if not self._in_batch:
            conn.commit()
            self.save()
        return count

    def last_insert_id(self) -> int:
        row = self.query_one("SELECT last_insert_rowid() AS id")
        return row['id'] if row else 0

    @contextmanager
    def batch(self):
        """Mehrere Anweisungen als eine Einheit: ein Commit, ein Speichervorgang."""
        conn = self._connection()
        if self._in_batch:
            yield self
            return
        self._in_batch = True
        try:
            yield self
        except Exception:
            conn.rollback()
            raise
        else:
            conn.commit()
            self.save()
        finally:
            self._in_batch = False

    # Export
    def export_to_sql(self, filename: str):
        """Dump aller Tabellen als SQL-Statements"""
        with open(filename, 'w', encoding='utf-8') as f:
            for line in self._connection().iterdump():
                f.write(f"{line}\n")

    def close(self):
        """Schließe die Datenbankverbindung sauber"""
        if self.conn:
            self.conn.close()
            self.conn = None
