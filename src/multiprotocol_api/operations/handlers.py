"""Task and analysis operations, and the registry that serves them."""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from datetime import UTC, datetime

from multiprotocol_api.operations.registry import Operation, OperationContext, OperationRegistry
from multiprotocol_api.schemas import (
    AnalysisReport,
    AnalysisRequest,
    AnalysisResponse,
    CreateTaskRequest,
    CreateTaskResponse,
    ListTasksRequest,
    ListTasksResponse,
    Task,
)

logger = logging.getLogger(__name__)


async def create_task(params: CreateTaskRequest, ctx: OperationContext) -> CreateTaskResponse:
    task = Task(
        id=uuid.uuid4(),
        title=params.title,
        status="pending",
        createdAt=datetime.now(tz=UTC),
    )
    # Store backends block (file I/O, locks); keep them off the event loop.
    await asyncio.to_thread(ctx.store.append, task)
    logger.info("Task created", extra={"task_id": str(task.id)})
    return CreateTaskResponse(task=task)


async def list_tasks(_params: ListTasksRequest, ctx: OperationContext) -> ListTasksResponse:
    return ListTasksResponse(tasks=await asyncio.to_thread(ctx.store.list))


async def run_analysis(params: AnalysisRequest, _ctx: OperationContext) -> AnalysisResponse:
    # Placeholder scoring: only the range and the notes format are contractual.
    return AnalysisResponse(
        report=AnalysisReport(
            taskId=params.taskId,
            score=random.random(),
            notes=(
                f"Analysis for task {params.taskId} at depth {params.depth} "
                "completed successfully."
            ),
        )
    )


OPERATIONS: tuple[Operation, ...] = (
    Operation(
        name="createTask",
        input_model=CreateTaskRequest,
        output_model=CreateTaskResponse,
        handler=create_task,
        description="Create a new task from a title. The task starts as 'pending'.",
    ),
    Operation(
        name="listTasks",
        input_model=ListTasksRequest,
        output_model=ListTasksResponse,
        handler=list_tasks,
        description="List every task in creation order.",
    ),
    Operation(
        name="runAnalysis",
        input_model=AnalysisRequest,
        output_model=AnalysisResponse,
        handler=run_analysis,
        description="Run an analysis for a task id at a depth between 1 and 5.",
    ),
)


def build_registry() -> OperationRegistry:
    return OperationRegistry(OPERATIONS)
