from __future__ import annotations

import asyncio
import time
from typing import Any

import inject
from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from src.dayreport.application.registry import TaskRegistry
from src.dayreport.domain.exceptions import InputValidationError, TaskNotFoundError
from src.dayreport.domain.repositories import FileRevealer

router = APIRouter(tags=["tasks"])


def get_registry() -> TaskRegistry:
    return inject.instance(TaskRegistry)


def get_revealer() -> FileRevealer:
    return inject.instance(FileRevealer)


class SubmitResponse(BaseModel):
    task_id: str = Field(..., description="Identifier of the started task")


class RevealRequest(BaseModel):
    path: str = Field(..., description="Artifact or task directory to reveal")


@router.get("/health", summary="Liveness check")
def health(request: Request) -> dict[str, Any]:
    settings = request.app.state.settings
    return {
        "status": "ok",
        "port": settings.PORT,
        "version": settings.APP_VERSION,
        "timestamp": int(time.time() * 1000),
    }


@router.post(
    "/tasks",
    response_model=SubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a report task",
    description=(
        "Fetches every page of `apiUrl`, groups the records by day and writes one "
        "report per day. Progress is pushed to websocket subscribers on `/ws`."
    ),
    responses={400: {"description": "The request was rejected before any work started."}},
)
async def submit_task(
    payload: dict[str, Any] = Body(...),
    registry: TaskRegistry = Depends(get_registry),
) -> SubmitResponse:
    try:
        task = await registry.submit(payload)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return SubmitResponse(task_id=task.id)


@router.get("/tasks", summary="List known tasks")
def list_tasks(registry: TaskRegistry = Depends(get_registry)) -> list[dict]:
    return [task.to_wire() for task in registry.list_tasks()]


@router.get("/tasks/{task_id}", summary="Get one task")
def get_task(task_id: str, registry: TaskRegistry = Depends(get_registry)) -> dict:
    try:
        return registry.get(task_id).to_wire()
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/files/reveal", summary="Show an output location in the file manager")
async def reveal_file(
    body: RevealRequest, revealer: FileRevealer = Depends(get_revealer)
) -> dict[str, str]:
    try:
        path = await asyncio.to_thread(revealer.reveal, body.path)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except OSError as exc:
        raise HTTPException(status_code=500, detail="Could not open file location") from exc
    return {"path": str(path)}
