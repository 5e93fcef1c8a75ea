from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Request, UploadFile

from kycflow.api.auth import require_api_key
from kycflow.api.schemas import ActionResponse, ViewSnapshot
from kycflow.core.orchestrator import VerificationWorkflow
from kycflow.store.models import DocumentImage, IdDocuments, Module

router = APIRouter(dependencies=[Depends(require_api_key)])


def get_workflow(request: Request) -> VerificationWorkflow:
    return request.app.state.workflow


def _respond(workflow: VerificationWorkflow, ok: bool) -> ActionResponse:
    return ActionResponse(ok=ok, view=ViewSnapshot.model_validate(workflow.view.snapshot()))


async def _document(upload: Optional[UploadFile]) -> Optional[DocumentImage]:
    if upload is None:
        return None
    content = await upload.read()
    if not content:
        return None
    return DocumentImage(
        filename=upload.filename or "document",
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )


@router.get("/view", response_model=ViewSnapshot)
async def view(workflow: VerificationWorkflow = Depends(get_workflow)):
    return ViewSnapshot.model_validate(workflow.view.snapshot())


@router.post("/signup", response_model=ActionResponse)
async def signup(
    payload: Optional[Dict[str, Any]] = Body(None),
    workflow: VerificationWorkflow = Depends(get_workflow),
):
    ok = await workflow.signup(payload or {})
    return _respond(workflow, ok)


@router.post("/login", response_model=ActionResponse)
async def login(
    payload: Optional[Dict[str, Any]] = Body(None),
    workflow: VerificationWorkflow = Depends(get_workflow),
):
    payload = payload or {}
    ok = await workflow.login(str(payload.get("email") or ""), str(payload.get("password") or ""))
    return _respond(workflow, ok)


@router.post("/logout", response_model=ActionResponse)
async def logout(workflow: VerificationWorkflow = Depends(get_workflow)):
    workflow.logout(reason="user")
    return _respond(workflow, True)


@router.post("/refresh", response_model=ActionResponse)
async def refresh(workflow: VerificationWorkflow = Depends(get_workflow)):
    await workflow.refresh_status(source="manual")
    return _respond(workflow, workflow.store.current() is not None)


@router.post("/submit-id-verification", response_model=ActionResponse)
async def submit_id_verification(
    front: Optional[UploadFile] = File(None),
    back: Optional[UploadFile] = File(None),
    workflow: VerificationWorkflow = Depends(get_workflow),
):
    documents = IdDocuments(front=await _document(front), back=await _document(back))
    ok = await workflow.submit(Module.ID_VERIFICATION, documents)
    return _respond(workflow, ok)


@router.post("/submit-card-details", response_model=ActionResponse)
async def submit_card_details(
    payload: Optional[Dict[str, Any]] = Body(None),
    workflow: VerificationWorkflow = Depends(get_workflow),
):
    ok = await workflow.submit(Module.CARD_DETAILS, payload or {})
    return _respond(workflow, ok)


@router.post("/submit-otp", response_model=ActionResponse)
async def submit_otp(
    payload: Optional[Dict[str, Any]] = Body(None),
    workflow: VerificationWorkflow = Depends(get_workflow),
):
    ok = await workflow.submit(Module.OTP, payload or {})
    return _respond(workflow, ok)
