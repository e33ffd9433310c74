"""Anbindung an Dialogflow ES (REST v2) für die Intent-Erkennung.

Der Client ist optional: ist Dialogflow deaktiviert oder unvollständig
konfiguriert, liefert ``build_nlu_client`` None und der Resolver nutzt
ausschließlich die lokalen Keyword-Regeln.

Authentifizierung läuft über google-auth Credentials (Service Account oder
Application Default Credentials). Abgelaufene Access-Tokens werden vor dem
Aufruf erneuert, ein 401 führt zu genau einem Refresh mit erneutem Versuch.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import google.auth
import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as AuthRequest
from google.oauth2 import service_account

from refugee_bot.core.config import Settings
from refugee_bot.core.errors import UpstreamFailure
from refugee_bot.core.models import NLUResult

logger = logging.getLogger(__name__)

DIALOGFLOW_API = "https://dialogflow.googleapis.com/v2"
DIALOGFLOW_SCOPES = [
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/dialogflow",
]


def load_credentials(credentials_file: str = ""):
    """Lädt Service-Account-Credentials aus einer Datei, sonst die
    Application Default Credentials (GOOGLE_APPLICATION_CREDENTIALS, GCE, ...)."""
    if credentials_file:
        return service_account.Credentials.from_service_account_file(
            credentials_file, scopes=DIALOGFLOW_SCOPES
        )
    credentials, _ = google.auth.default(scopes=DIALOGFLOW_SCOPES)
    return credentials


class DialogflowClient:
    """Sendet Nutzertexte an den Dialogflow-Agenten und liefert Intent,
    Parameter und Fulfillment-Text zurück."""

    def __init__(
        self,
        project_id: str,
        credentials,
        language_code: str = "en",
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.project_id = project_id
        self.credentials = credentials
        self.language_code = language_code
        self.client = http_client or httpx.AsyncClient(base_url=DIALOGFLOW_API, timeout=timeout)

    def session_path(self, session_key: str) -> str:
        return f"/projects/{self.project_id}/agent/sessions/{session_key}:detectIntent"

    async def _access_token(self, force_refresh: bool = False) -> str:
        if force_refresh or not self.credentials.valid:
            # refresh() ist blockierend (requests), daher im ThreadPool
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self.credentials.refresh, AuthRequest())
            logger.info("Dialogflow access token refreshed")
        return self.credentials.token

    async def _post(self, path: str, payload: Dict[str, Any], force_refresh: bool = False) -> httpx.Response:
        token = await self._access_token(force_refresh)
        return await self.client.post(path, json=payload, headers={"Authorization": f"Bearer {token}"})

    async def detect_intent(self, text: str, session_key: str) -> NLUResult:
        """Ruft detectIntent für die Session auf.

        Wirft UpstreamFailure bei Netzwerk-/HTTP-/Auth-Fehlern und wenn die
        Antwort kein queryResult enthält.
        """
        path = self.session_path(session_key)
        payload = {
            "queryInput": {
                "text": {"text": text, "languageCode": self.language_code},
            }
        }
        logger.debug(f"Sending request to Dialogflow [Session {session_key}]")

        try:
            response = await self._post(path, payload)
            if response.status_code == 401:
                logger.warning(f"Dialogflow rejected access token [Session {session_key}], refreshing")
                response = await self._post(path, payload, force_refresh=True)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, GoogleAuthError, ValueError) as exc:
            raise UpstreamFailure("dialogflow", str(exc)) from exc

        query_result = body.get("queryResult")
        if not query_result:
            raise UpstreamFailure("dialogflow", "no queryResult in response")

        result = NLUResult(
            intent_name=(query_result.get("intent") or {}).get("displayName"),
            parameters=query_result.get("parameters") or {},
            fulfillment_text=query_result.get("fulfillmentText") or "",
        )
        logger.debug(f"Received Dialogflow response [Session {session_key}]: intent={result.intent_name}")
        return result

    async def aclose(self) -> None:
        await self.client.aclose()


def build_nlu_client(settings: Settings) -> Optional[DialogflowClient]:
    """Erzeugt den Dialogflow-Client oder None, wenn er nicht nutzbar ist."""
    if not settings.dialogflow_enabled:
        logger.warning("Dialogflow is disabled. Using built-in keyword logic.")
        return None
    if not settings.dialogflow_project_id:
        logger.warning("Dialogflow enabled but project id missing. Using built-in keyword logic.")
        return None

    try:
        credentials = load_credentials(settings.dialogflow_credentials_file)
    except (GoogleAuthError, OSError, ValueError) as e:
        logger.error(f"Failed to load Dialogflow credentials: {e}. Using built-in keyword logic.")
        return None

    client = DialogflowClient(
        project_id=settings.dialogflow_project_id,
        credentials=credentials,
        language_code=settings.dialogflow_language_code,
        timeout=settings.dialogflow_timeout,
    )
    logger.info("Dialogflow service initialized successfully")
    return client
