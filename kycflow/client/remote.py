"""HTTP client for the verification authority.

Attaches the session header when a session exists and turns every non-success
outcome into one of the `kycflow.client.errors` types. No retries: the status
poller is the only repetition in the system.
"""
from typing import Any, Dict, Optional

import httpx

from kycflow.settings import settings
from kycflow.client.errors import (
    HttpError,
    MalformedResponse,
    SessionInvalidError,
    TransportFailure,
)
from kycflow.store.models import IdDocuments, StatusReport
from kycflow.observability.logging import log


def _is_session_invalid(status_code: int, message: str) -> bool:
    if status_code in settings.AUTH_FAILURE_STATUS_CODES:
        return True
    lowered = (message or "").lower()
    return any(marker in lowered for marker in settings.SESSION_INVALID_MARKERS)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"HTTP error, status={response.status_code}"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"Request failed with status {response.status_code}"


class RemoteClient:
    """Authenticated requests against the authority's API base."""

    def __init__(
        self,
        session_store,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._store = session_store
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=settings.REQUEST_TIMEOUT_SEC if timeout is None else timeout,
            transport=transport,
        )

    def _headers(self) -> dict:
        headers = {}
        session = self._store.current()
        if session is not None:
            headers[settings.SESSION_HEADER] = session.id
        return headers

    async def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self._client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.TimeoutException as e:
            log(event="remote_timeout", endpoint=endpoint, errorType=type(e).__name__)
            raise TransportFailure("The request timed out. Please try again.") from e
        except httpx.TransportError as e:
            log(event="remote_transport_error", endpoint=endpoint, errorType=type(e).__name__, error=str(e)[:200])
            raise TransportFailure("Unable to reach the verification service.") from e

        if not response.is_success:
            message = _error_message(response)
            log(event="remote_http_error", endpoint=endpoint, statusCode=response.status_code, error=message[:200])
            if _is_session_invalid(response.status_code, message):
                raise SessionInvalidError(message, response.status_code)
            raise HttpError(message, response.status_code)

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                data = response.json()
            except ValueError as e:
                raise MalformedResponse("The server sent an unreadable response.", response.status_code) from e
            if isinstance(data, dict):
                return data
            return {"message": None, "data": data}
        return {"message": None, "text": response.text}

    async def signup(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/signup", json=fields)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._request("POST", "/login", json={"email": email, "password": password})

    async def get_status(self) -> StatusReport:
        data = await self._request("GET", "/status")
        return StatusReport.from_payload(data)

    async def submit_id_verification(self, documents: IdDocuments) -> Dict[str, Any]:
        files = {
            "front": (documents.front.filename, documents.front.content, documents.front.content_type),
            "back": (documents.back.filename, documents.back.content, documents.back.content_type),
        }
        return await self._request("POST", "/submit-id-verification", files=files)

    async def submit_card_details(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/submit-card-details", json=fields)

    async def submit_otp(self, otp: str) -> Dict[str, Any]:
        return await self._request("POST", "/submit-otp", json={"otp": otp})

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
