from __future__ import annotations

from typing import Dict

GENERIC_AUTH_MESSAGE = "Noe gikk galt. Prøv igjen."

AUTH_ERROR_MESSAGES: Dict[str, str] = {
    "auth/email-already-in-use": "E-postadressen er allerede i bruk",
    "auth/invalid-email": "Ugyldig e-postadresse",
    "auth/missing-household": "Husstanden må ha et navn",
    "auth/household-exists": "Husstanden finnes allerede",
}


def auth_error_message(code: str | None) -> str:
    """Brukervennlig melding for en feilkode; ukjente koder gir en generell melding."""
    return AUTH_ERROR_MESSAGES.get(code or "", GENERIC_AUTH_MESSAGE)


__all__ = ["AUTH_ERROR_MESSAGES", "GENERIC_AUTH_MESSAGE", "auth_error_message"]
