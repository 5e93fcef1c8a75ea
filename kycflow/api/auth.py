from fastapi import Header, HTTPException
from kycflow.settings import settings


def require_api_key(x_api_key: str = Header(default="", alias="x-api-key")):
    """
    Guards the workflow routes (view, auth actions, submissions, refresh).

    With API_KEY unset the surface is meant for a browser on the same machine
    and stays open. Once API_KEY is set, every workflow route needs a matching
    x-api-key header; /health stays open for liveness checks.
    """
    expected = settings.API_KEY
    if not expected:
        return
    if x_api_key != expected:
        raise HTTPException(status_code=401, detail="Invalid API key")
