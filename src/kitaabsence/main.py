# src/kitaabsence/main.py

import argparse
import logging
import os
import sys

from kitaabsence.config import app_dir, load_config
from kitaabsence.data import Database

LOG_FILE_NAME = 'kitaabsence.log'
LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='kitaabsence',
        description='Abwesenheiten von Kita-Kindern erfassen und auswerten.'
    )
    parser.add_argument('--db-path', help='Pfad zur Datenbankdatei')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Log-Level (Standard aus der Konfiguration)')
    parser.add_argument('--dump-sql', metavar='DATEI',
                        help='Datenbank als SQL-Dump schreiben und beenden')
    return parser.parse_args(argv)


def setup_logging(level: str):
    handlers = [logging.StreamHandler()]
    try:
        handlers.append(logging.FileHandler(os.path.join(app_dir(), LOG_FILE_NAME), encoding='utf-8'))
    except OSError as e:
        print(f"Logdatei nicht verfügbar: {e}", file=sys.stderr)
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO),
                        format=LOG_FORMAT, handlers=handlers)


def dump_sql(db_path, filename) -> int:
    try:
        db = Database(db_path)
    except Exception:
        return 1
    try:
        db.export_to_sql(filename)
    except OSError as e:
        logging.error(f"SQL-Dump fehlgeschlagen: {e}")
        return 1
    finally:
        db.close()
    logging.info(f"SQL-Dump geschrieben: {filename}")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = load_config()
    setup_logging(args.log_level or cfg.get('log_level') or 'INFO')
    db_path = args.db_path or cfg.get('db_path') or None

    if args.dump_sql:
        return dump_sql(db_path, args.dump_sql)

    # Qt erst hier laden, damit der Dump ohne Oberfläche läuft
    from kitaabsence.ui import run_app
    return run_app(db_path)


if __name__ == '__main__':
    sys.exit(main())
