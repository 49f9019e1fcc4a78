"""Credential loading for the Spanner client."""

from __future__ import annotations

import os

import google.auth
from google.auth import exceptions as auth_exceptions
from google.auth.credentials import AnonymousCredentials, Credentials
from google.oauth2 import service_account

from spandb.errors import InterfaceError

SPANNER_SCOPES = [
    "https://www.googleapis.com/auth/spanner.data",
    "https://www.googleapis.com/auth/spanner.admin",
]

EMULATOR_ENV = "SPANNER_EMULATOR_HOST"


def emulator_host() -> str | None:
    """Return the emulator address if SPANNER_EMULATOR_HOST is set."""
    return os.environ.get(EMULATOR_ENV) or None


def load_credentials(credentials_file: str | None = None) -> Credentials:
    """Load credentials: service-account file → emulator → ADC.

    The emulator accepts anonymous credentials. Application Default Credentials
    cover gcloud logins, workload identity and GOOGLE_APPLICATION_CREDENTIALS.
    """
    if credentials_file:
        try:
            return service_account.Credentials.from_service_account_file(
                credentials_file, scopes=SPANNER_SCOPES
            )
        except (OSError, ValueError) as e:
            raise InterfaceError(
                f"cannot load service account file {credentials_file!r}: {e}"
            ) from e

    if emulator_host() is not None:
        return AnonymousCredentials()

    try:
        credentials, _ = google.auth.default(scopes=SPANNER_SCOPES)
    except auth_exceptions.DefaultCredentialsError as e:
        raise InterfaceError(
            f"no Google Cloud credentials found: {e}. "
            "Run `gcloud auth application-default login` or set credentials_file."
        ) from e
    return credentials
