import os

# Qt-Tests ohne Display (CI/headless) lauffaehig machen
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

import pytest

from kitaabsence.commands import CommandBridge
from kitaabsence.data import Database


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    # Konfiguration, Log und Standard-DB landen im Testverzeichnis
    home = tmp_path / 'home'
    home.mkdir()
    monkeypatch.setenv('HOME', str(home))
    monkeypatch.setenv('USERPROFILE', str(home))
    return home


@pytest.fixture
def db():
    database = Database(':memory:')
    try:
        yield database
    finally:
        database.close()


@pytest.fixture
def bridge(db):
    return CommandBridge(db)
