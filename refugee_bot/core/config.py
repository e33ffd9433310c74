"""Konfigurationsmodul für den Refugee Support WhatsApp Bot: lädt zentrale
Umgebungsvariablen (Twilio, Dialogflow, Datenbank, Logging) via Pydantic-Settings."""
from typing import Any, Dict, List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Hält alle konfigurierbaren Werte, die der Bot zur Laufzeit
    benötigt (z.B. Twilio-Token, Dialogflow-Projekt, Datenbank-URL)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    environment: str = Field(
        "development", validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV")
    )
    base_url: str = Field("", alias="BASE_URL")
    service_port: int = Field(3000, alias="SERVICE_PORT")

    # Twilio: Auth-Token ist gleichzeitig das Shared Secret für die Signaturprüfung.
    twilio_account_sid: str = Field("", alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: str = Field("", alias="TWILIO_AUTH_TOKEN")

    # Dialogflow ES (REST v2). Ohne Projekt-ID bleibt der lokale Keyword-Pfad aktiv.
    # Ohne Credentials-Datei gelten die Application Default Credentials.
    dialogflow_enabled: bool = Field(False, alias="DIALOGFLOW_ENABLED")
    dialogflow_project_id: str = Field("", alias="DIALOGFLOW_PROJECT_ID")
    dialogflow_credentials_file: str = Field("", alias="DIALOGFLOW_CREDENTIALS_FILE")
    dialogflow_language_code: str = Field("en", alias="DIALOGFLOW_LANGUAGE_CODE")
    dialogflow_timeout: float = Field(10.0, alias="DIALOGFLOW_TIMEOUT")

    database_url: str = Field("sqlite:///./refugee_bot.db", alias="DATABASE_URL")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str = Field("refugee_bot.log", alias="LOG_FILE")

    enable_admin_backend: bool = Field(False, alias="ENABLE_ADMIN_BACKEND")
    seed_demo_data: bool = Field(False, alias="SEED_DEMO_DATA")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def validate_for_startup(self) -> List[str]:
        """Liefert eine Liste von Konfigurationsproblemen (leer = alles ok).

        In Produktion sind Twilio-Token und BASE_URL Pflicht, da ohne sie
        keine Signaturprüfung möglich ist.
        """
        problems = []
        if self.is_production:
            if not self.twilio_auth_token:
                problems.append("TWILIO_AUTH_TOKEN is required in production")
            if not self.base_url:
                problems.append("BASE_URL is required in production")
        if self.dialogflow_enabled and not self.dialogflow_project_id:
            problems.append("DIALOGFLOW_ENABLED is set but DIALOGFLOW_PROJECT_ID is missing")
        return problems

    def summary(self) -> Dict[str, Any]:
        # Keine Secrets, nur ob sie gesetzt sind.
        return {
            "environment": self.environment,
            "twilio_configured": bool(self.twilio_account_sid and self.twilio_auth_token),
            "dialogflow_enabled": self.dialogflow_enabled,
            "database": self.database_url.split(":", 1)[0],
            "admin_backend": self.enable_admin_backend,
        }


settings = Settings()
