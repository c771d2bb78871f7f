from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError
from typing import Any, Optional
import logging

from auth_service import auth_service
from diagram_generator import diagram_generator, derive_title
from diagram_store import diagram_store
from prompt_enhancer import prompt_enhancer
from user_friendly_errors import ServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["diagrams"])


class EnhancePromptRequest(BaseModel):
    idea: Optional[Any] = None
    context: Optional[Any] = None


class GenerateDiagramRequest(BaseModel):
    text: Optional[Any] = None
    diagramType: Optional[Any] = None
    diagramTypeName: Optional[Any] = None


def _raise_service_error(exc: ServiceError):
    raise HTTPException(status_code=exc.status_code, detail=exc.to_response_body()) from exc


async def _require_user(request: Request) -> str:
    user_id = await auth_service.get_user_id_from_request(request)
    if not user_id:
        raise HTTPException(status_code=401, detail={"error": "Unauthorized"})
    return user_id


async def _read_json_object(request: Request, model):
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail={"error": "Invalid JSON in request body."})
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail={"error": "Invalid JSON in request body."})
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"error": "Invalid request body.", "details": e.errors()})


@router.post("/enhance-prompt")
async def enhance_prompt_endpoint(request: Request):
    """Refine a rough idea into a detailed diagram prompt"""
    user_id = await _require_user(request)
    req = await _read_json_object(request, EnhancePromptRequest)
    try:
        suggested_prompt = await prompt_enhancer.enhance(req.idea, req.context)
    except ServiceError as e:
        logger.error(f"Error in /api/enhance-prompt for user {user_id}: {e.message}")
        _raise_service_error(e)
    return {"suggestedPrompt": suggested_prompt}


@router.post("/generate")
async def generate_diagram_endpoint(request: Request):
    """Generate a Mermaid diagram with analysis, persist it and return it"""
    user_id = await _require_user(request)
    req = await _read_json_object(request, GenerateDiagramRequest)
    try:
        diagram_type = diagram_generator.validate_request(req.text, req.diagramType, req.diagramTypeName)
        result = await run_in_threadpool(diagram_generator.generate, user_id, req.text, req.diagramTypeName)

        analysis = result["analysis"]
        diagram_id = await run_in_threadpool(
            diagram_store.insert_diagram,
            user_id,
            derive_title(analysis["summary"], req.text),
            req.text,
            diagram_type,
            result["diagram_code"],
            analysis,
        )
    except ServiceError as e:
        logger.error(f"Error in /api/generate for user {user_id}: {e.message}")
        _raise_service_error(e)

    return {
        "message": "Diagram generated successfully.",
        "diagramId": diagram_id,
        "diagramCode": result["diagram_code"],
        "analysis": analysis,
    }


@router.get("/diagrams")
async def list_diagrams_endpoint(request: Request, limit: int = Query(50, ge=1, le=100)):
    """Return the caller's saved diagrams, newest first"""
    user_id = await _require_user(request)
    try:
        diagrams = await run_in_threadpool(diagram_store.list_user_diagrams, user_id, limit)
    except ServiceError as e:
        _raise_service_error(e)
    return {"diagrams": diagrams}
