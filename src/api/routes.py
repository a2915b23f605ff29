"""
API Routes

Thin proxy in front of the decision service:
- Model catalog and model metadata pass-through
- Single and batch decision requests, each logged to the database
- Decision log lookup

Upstream failures and malformed request bodies are returned as
``{"error": "..."}`` with status 500.
A decision that was obtained but could not be logged is still returned.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from src.models.decision import BatchDecisionRequest, DecisionLogRecord, DecisionRequest
from src.storage.database import DecisionLogStore
from src.tom.client import JSON_API, DecisionServiceError, TomClient

logger = logging.getLogger(__name__)

router = APIRouter()


# ===== Dependencies =====

def get_tom_client(request: Request) -> TomClient:
    """Decision service client owned by the application lifespan."""
    return request.app.state.tom_client


def get_log_store(request: Request) -> DecisionLogStore:
    """Decision log store bound to the application's database."""
    return DecisionLogStore(request.app.state.database)


def _json_api(content: Any) -> JSONResponse:
    return JSONResponse(content=content, status_code=status.HTTP_200_OK, media_type=JSON_API)


def _body_schema(model: type[BaseModel]) -> dict[str, Any]:
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }


async def _read_body(request: Request, model: type[BaseModel]) -> Any:
    """
    Parse and validate a JSON request body.

    Raises:
        ValueError: with a displayable message for malformed bodies
    """
    try:
        raw = await request.json()
    except ValueError:
        raise ValueError("Invalid request body: not valid JSON")
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValueError(f"Invalid request body: {problems}")


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(
        content={"error": str(exc) or type(exc).__name__},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# ===== Model catalog =====

@router.get("/models")
async def list_models(tom: TomClient = Depends(get_tom_client)):
    """List available decision models (upstream JSON:API document)."""
    try:
        return _json_api(await tom.fetch_models())
    except DecisionServiceError as exc:
        return _error(exc)


@router.get("/models/{model_id}")
async def get_model(model_id: str, tom: TomClient = Depends(get_tom_client)):
    """Get one model's metadata (upstream JSON:API document)."""
    try:
        return _json_api(await tom.fetch_model(model_id))
    except DecisionServiceError as exc:
        return _error(exc)


# ===== Decisions =====

@router.post("/decision", openapi_extra=_body_schema(DecisionRequest))
async def request_decision(
    request: Request,
    tom: TomClient = Depends(get_tom_client),
    store: DecisionLogStore = Depends(get_log_store),
):
    """Forward one scenario to the decision service and log the result."""
    try:
        body = await _read_body(request, DecisionRequest)
    except ValueError as exc:
        return _error(exc)

    try:
        result = await tom.submit_decision(body.model_id, body.input_data)
    except DecisionServiceError as exc:
        return _error(exc)

    try:
        await store.record(body.model_id, body.input_data, result)
    except Exception as exc:
        logger.warning("Decision log persist failed (non-fatal): %s", exc)

    return _json_api(result)


@router.post("/decision/batch", openapi_extra=_body_schema(BatchDecisionRequest))
async def request_batch_decision(
    request: Request,
    tom: TomClient = Depends(get_tom_client),
    store: DecisionLogStore = Depends(get_log_store),
):
    """Forward a batch of scenarios and log one record per input/result pair."""
    try:
        body = await _read_body(request, BatchDecisionRequest)
    except ValueError as exc:
        return _error(exc)

    try:
        results = await tom.submit_batch(body.model_id, body.batch_inputs)
    except DecisionServiceError as exc:
        return _error(exc)

    try:
        await store.record_batch(body.model_id, body.batch_inputs, results)
    except Exception as exc:
        logger.warning("Batch decision log persist failed (non-fatal): %s", exc)

    return _json_api(results)


# ===== Decision log =====

@router.get("/decisions", response_model=list[DecisionLogRecord])
async def list_decisions(
    model_id: Optional[str] = Query(default=None, alias="modelId"),
    limit: int = Query(default=50, ge=1, le=500),
    store: DecisionLogStore = Depends(get_log_store),
):
    """Most recent decision log records, newest first."""
    try:
        return await store.list_recent(model_id=model_id, limit=limit)
    except Exception as exc:
        logger.error("list_decisions failed: %s", exc)
        return _error(exc)


@router.get("/decisions/{log_id}", response_model=DecisionLogRecord)
async def get_decision(
    log_id: UUID,
    store: DecisionLogStore = Depends(get_log_store),
):
    """One decision log record."""
    try:
        record = await store.get(log_id)
    except Exception as exc:
        logger.error("get_decision failed: %s", exc)
        return _error(exc)

    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Decision log {log_id} not found",
        )
    return record
