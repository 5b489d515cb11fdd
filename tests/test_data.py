import os
import sqlite3

import pytest

from kitaabsence.data import Database
from kitaabsence.errors import StoreNotInitializedError


@pytest.fixture
def file_db(tmp_path):
    path = tmp_path / 'kita.db'
    db = Database(str(path))
    try:
        yield db, path
    finally:
        db.close()


def test_tables_and_index_exist(db):
    names = {r['name'] for r in db.query_all("SELECT name FROM sqlite_master")}
    assert {'children', 'absences', 'idx_absences_dates'} <= names


def test_new_file_is_written_on_open(file_db):
    db, path = file_db
    assert path.exists()
    assert not os.path.exists(str(path) + '.tmp')


def test_write_survives_reopen(tmp_path):
    path = str(tmp_path / 'kita.db')
    db = Database(path)
    db.run_sql("INSERT INTO children (name, group_name) VALUES (?, ?)", ('Anna', 'Sonne'))
    new_id = db.last_insert_id()
    db.close()

    # Datei direkt lesen, ohne Database
    raw = sqlite3.connect(path)
    try:
        rows = raw.execute("SELECT id, name, group_name FROM children").fetchall()
    finally:
        raw.close()
    assert rows == [(new_id, 'Anna', 'Sonne')]

    db2 = Database(path)
    try:
        assert db2.query_one("SELECT name FROM children WHERE id=?", (new_id,))['name'] == 'Anna'
    finally:
        db2.close()


def test_run_sql_returns_rowcount(db):
    db.run_sql("INSERT INTO children (name) VALUES ('A')")
    db.run_sql("INSERT INTO children (name) VALUES ('B')")
    assert db.run_sql("UPDATE children SET group_name='X'") == 2
    assert db.run_sql("DELETE FROM children WHERE id=?", (999,)) == 0


def test_foreign_keys_cascade(db):
    db.run_sql("INSERT INTO children (name) VALUES ('A')")
    cid = db.last_insert_id()
    db.run_sql("INSERT INTO absences (child_id, start_date, end_date) VALUES (?,?,?)",
               (cid, '2025-01-01', '2025-01-02'))
    db.run_sql("DELETE FROM children WHERE id=?", (cid,))
    assert db.query_all("SELECT * FROM absences") == []


def test_absence_for_unknown_child_is_rejected(db):
    with pytest.raises(sqlite3.IntegrityError):
        db.run_sql("INSERT INTO absences (child_id, start_date, end_date) VALUES (?,?,?)",
                   (42, '2025-01-01', '2025-01-01'))
    assert db.query_all("SELECT * FROM absences") == []


def test_batch_rolls_back_on_error(tmp_path):
    path = str(tmp_path / 'kita.db')
    db = Database(path)
    try:
        with pytest.raises(sqlite3.IntegrityError):
            with db.batch():
                db.run_sql("INSERT INTO children (name) VALUES ('A')")
                db.run_sql("INSERT INTO children (name) VALUES (NULL)")
        assert db.query_all("SELECT * FROM children") == []
    finally:
        db.close()


def test_batch_saves_once(tmp_path, monkeypatch):
    db = Database(str(tmp_path / 'kita.db'))
    calls = []
    monkeypatch.setattr(db, 'save', lambda: calls.append(1))
    with db.batch():
        for name in ('A', 'B', 'C'):
            db.run_sql("INSERT INTO children (name) VALUES (?)", (name,))
    assert calls == [1]
    assert len(db.query_all("SELECT * FROM children")) == 3
    db.close()


def test_closed_store_raises(db):
    db.close()
    with pytest.raises(StoreNotInitializedError):
        db.query_all("SELECT * FROM children")
    with pytest.raises(StoreNotInitializedError):
        db.run_sql("DELETE FROM children")


def test_export_to_sql(db, tmp_path):
    db.run_sql("INSERT INTO children (name, group_name) VALUES ('Ben', 'Mond')")
    out = tmp_path / 'dump.sql'
    db.export_to_sql(str(out))
    text = out.read_text(encoding='utf-8')
    assert 'CREATE TABLE' in text
    assert 'Ben' in text


def test_default_path_in_app_dir(isolated_home):
    db = Database()
    try:
        assert db.db_path == str(isolated_home / '.kitaabsence' / 'kita_abwesenheit.db')
        assert os.path.exists(db.db_path)
    finally:
        db.close()
