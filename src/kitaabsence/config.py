import json
import logging
import os

APP_DIR_NAME = '.kitaabsence'
DB_FILE_NAME = 'kita_abwesenheit.db'

DEFAULTS = {
    'db_path': None,          # None = Standardpfad im App-Verzeichnis
    'log_level': 'INFO',
    'last_csv_dir': '',
    'last_export_dir': '',
}


def app_dir() -> str:
    base = os.path.join(os.path.expanduser('~'), APP_DIR_NAME)
    os.makedirs(base, exist_ok=True)
    return base


def default_db_path() -> str:
    return os.path.join(app_dir(), DB_FILE_NAME)


def _config_path():
    return os.path.join(app_dir(), 'kitaabsence_config.json')


def load_config() -> dict:
    path = _config_path()
    cfg = dict(DEFAULTS)
    if not os.path.exists(path):
        return cfg
    try:
        with open(path, 'r', encoding='utf-8') as f:
            stored = json.load(f)
    except (OSError, ValueError) as e:
        logging.warning(f"Konfiguration {path} nicht lesbar, nutze Standardwerte: {e}")
        return cfg
    if isinstance(stored, dict):
        cfg.update(stored)
    return cfg


def save_config(cfg: dict):
    path = _config_path()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(cfg, f, ensure_ascii=False, indent=2)


def remember(key: str, value):
    """Einzelnen Wert setzen und sofort speichern; Schreibfehler sind nicht fatal."""
    cfg = load_config()
    cfg[key] = value
    try:
        save_config(cfg)
    except OSError as e:
        logging.warning(f"Konfiguration konnte nicht gespeichert werden: {e}")
