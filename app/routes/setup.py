from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends
from starlette.concurrency import run_in_threadpool

from app.models.setup import (
    ErrorResponse,
    LinkResponse,
    StatusResponse,
    Step1Request,
    Step1Response,
)
from app.services.bridge_documents_service import BridgeDocumentsService
from app.services.bridge_files_service import BridgeFilesService
from app.services.dependencies import (
    get_bridge_documents_service,
    get_bridge_files_service,
    get_setup_status_service,
    get_synapse_registration_service,
)
from app.services.setup.synapse_registration_service import LinkResult, SynapseRegistrationService
from app.services.setup_status_service import SetupStatusService

router = APIRouter(
    prefix="/api",
    tags=["setup"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)


def _link_response(result: LinkResult) -> LinkResponse:
    return LinkResponse(
        success=result.success,
        message=result.message,
        registration_path=str(result.registration_path) if result.registration_path else None,
    )


@router.post("/setup/step1", response_model=Step1Response)
async def generate_bridge_files(
    payload: Optional[Step1Request] = Body(default=None),
    documents: BridgeDocumentsService = Depends(get_bridge_documents_service),
    files: BridgeFilesService = Depends(get_bridge_files_service),
) -> Step1Response:
    # MissingMatrixUserError is raised before anything touches the disk.
    built = documents.build(payload.matrix_user if payload else None)
    await run_in_threadpool(files.write, built)
    return Step1Response(message="Configuration files created", bot_username=built.bot_user_id)


@router.post("/setup/step2", response_model=LinkResponse, response_model_exclude_none=True)
async def copy_registration_to_synapse(
    synapse: SynapseRegistrationService = Depends(get_synapse_registration_service),
) -> LinkResponse:
    result = await run_in_threadpool(synapse.copy_registration)
    return _link_response(result)


@router.post("/setup/step3", response_model=LinkResponse, response_model_exclude_none=True)
async def register_in_synapse_config(
    synapse: SynapseRegistrationService = Depends(get_synapse_registration_service),
) -> LinkResponse:
    result = await run_in_threadpool(synapse.patch_homeserver_config)
    return _link_response(result)


@router.get("/status", response_model=StatusResponse)
async def setup_status(
    svc: SetupStatusService = Depends(get_setup_status_service),
) -> StatusResponse:
    status = await run_in_threadpool(svc.status)
    return StatusResponse(
        config_exists=status.config_exists,
        registration_exists=status.registration_exists,
        synapse_accessible=status.synapse_accessible,
        registration_in_synapse=status.registration_in_synapse,
    )
