import sqlite3

from kitaabsence import main
from kitaabsence.data import Database


def test_parse_args():
    args = main.parse_args(['--db-path', 'x.db', '--log-level', 'DEBUG'])
    assert args.db_path == 'x.db'
    assert args.log_level == 'DEBUG'
    assert args.dump_sql is None


def test_dump_sql(tmp_path):
    db_file = tmp_path / 'kita.db'
    db = Database(str(db_file))
    db.run_sql("INSERT INTO children (name, group_name) VALUES ('Anna', 'Sonne')")
    db.close()

    out = tmp_path / 'dump.sql'
    assert main.main(['--db-path', str(db_file), '--dump-sql', str(out)]) == 0
    script = out.read_text(encoding='utf-8')
    assert 'Anna' in script

    # Dump lässt sich in eine leere Datenbank einspielen
    conn = sqlite3.connect(':memory:')
    try:
        conn.executescript(script)
        assert conn.execute("SELECT name FROM children").fetchall() == [('Anna',)]
    finally:
        conn.close()


def test_dump_sql_unwritable_target(tmp_path):
    out = tmp_path / 'fehlt' / 'dump.sql'
    assert main.main(['--db-path', str(tmp_path / 'kita.db'), '--dump-sql', str(out)]) == 1
