from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kycflow.api.routes import router
from kycflow.core.orchestrator import VerificationWorkflow
from kycflow.settings import settings
from kycflow.observability.logging import log


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One workflow per process: this surface serves a single local user
    workflow = VerificationWorkflow()
    app.state.workflow = workflow
    await workflow.startup()
    log(event="boot", apiBaseUrl=settings.API_BASE_URL, pollIntervalSec=settings.STATUS_POLL_INTERVAL_SEC)
    try:
        yield
    finally:
        await workflow.aclose()


app = FastAPI(title="Identity Verification Client", lifespan=lifespan)

origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
def health():
    return {"status": "ok"}
