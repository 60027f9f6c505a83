"""Microsoft Graph registry adapter.

Translates Graph `application` / `passwordCredential` payloads into domain
models. Authentication is delegated to a token provider callable.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httpx

from rotator.domain.rotation.models import Application, Credential, format_instant, parse_instant
from rotator.domain.rotation.ports import RegistryClient
from rotator.errors import NotFoundError, RegistryError

logger = logging.getLogger(__name__)

DEFAULT_GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
GRAPH_DEFAULT_SCOPE = "https://graph.microsoft.com/.default"
DEFAULT_TIMEOUT = 30.0

_APPLICATION_SELECT = "id,appId,displayName,passwordCredentials"

TokenProvider = Callable[[], str]


def azure_token_provider(credential: Any, scope: str = GRAPH_DEFAULT_SCOPE) -> TokenProvider:
    """Wrap an azure.identity credential as a bearer token callable."""
    def _get() -> str:
        return credential.get_token(scope).token
    return _get


def odata_quote(value: str) -> str:
    """Escape a value for use inside a single-quoted OData string literal."""
    return value.replace("'", "''")


def parse_password_credential(payload: Dict[str, Any]) -> Credential:
    return Credential(
        key_id=payload["keyId"],
        display_name=payload.get("displayName"),
        end_date_time=parse_instant(payload["endDateTime"]),
        secret_value=payload.get("secretText")
    )


def parse_application(payload: Dict[str, Any]) -> Application:
    return Application(
        object_id=payload.get("id") or "",
        app_id=payload.get("appId") or "",
        display_name=payload.get("displayName"),
        credentials=[parse_password_credential(c) for c in payload.get("passwordCredentials") or []]
    )


class GraphRegistryClient(RegistryClient):
    """Registry client over the Graph v1.0 REST API."""

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str = DEFAULT_GRAPH_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None
    ):
        self._token_provider = token_provider
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._token_provider()}",
            "Content-Type": "application/json"
        }
        try:
            response = self._client.request(method, f"{self._base_url}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise RegistryError(f"Graph request {method} {path} failed: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(f"Graph resource not found: {path}")
        elif response.status_code >= 400:
            raise RegistryError(
                f"Graph returned {response.status_code} for {method} {path}",
                details={"status_code": response.status_code, "body": response.text[:500]}
            )

        return response.json()

    def find_application(self, app_id: str) -> Application:
        body = self._request(
            "GET",
            "/applications",
            params={"$filter": f"appId eq '{odata_quote(app_id)}'", "$select": _APPLICATION_SELECT}
        )
        matches = body.get("value") or []
        if not matches:
            raise NotFoundError(f"Application with appId {app_id} not found", details={"app_id": app_id})
        return parse_application(matches[0])

    def list_credentials(self, object_id: str) -> List[Credential]:
        body = self._request("GET", f"/applications/{object_id}", params={"$select": "passwordCredentials"})
        return [parse_password_credential(c) for c in body.get("passwordCredentials") or []]

    def create_credential(self, object_id: str, display_name: str, end_date: datetime) -> Credential:
        body = self._request(
            "POST",
            f"/applications/{object_id}/addPassword",
            json={
                "passwordCredential": {
                    "displayName": display_name,
                    "endDateTime": format_instant(end_date)
                }
            }
        )
        credential = parse_password_credential(body)
        logger.info(f"Graph created password credential {credential.key_id} on {object_id}")
        return credential
