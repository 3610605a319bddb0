from __future__ import annotations


class StoreError(Exception):
    """Feil fra det underliggende lageret (disk eller dokumentdatabase)."""


class DocumentExistsError(StoreError):
    """Dokumentet finnes allerede (ved create-if-absent)."""


class PlannerError(Exception):
    """Feil som vises for brukeren som en enkel melding."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MigrationError(PlannerError):
    """Migreringen feilet og kan forsøkes på nytt."""


class AuthError(Exception):
    """Autentiseringsfeil med en kjent feilkode (f.eks. auth/email-already-in-use)."""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


class CalendarError(Exception):
    """Feil fra Google Kalender eller OAuth-utvekslingen."""
