# src/kitaabsence/errors.py


class KitaError(Exception):
    """Basisklasse für alle Fehler der Anwendung."""


class StoreNotInitializedError(KitaError):
    """Die Datenbank wurde nie geöffnet oder bereits geschlossen."""

    def __init__(self, message: str = "Datenbank nicht initialisiert"):
        super().__init__(message)


class ValidationError(KitaError):
    """Ungültige Nutzdaten für einen Befehl."""


class UnknownCommandError(KitaError):
    """Befehlsname ist nicht im Katalog."""

    def __init__(self, name: str):
        super().__init__(f"Unbekannter Befehl: {name}")
        self.name = name
