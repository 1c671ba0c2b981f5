"""Pydantic models shared by every protocol surface.

Field names are the wire names (camelCase) so that the same models drive request
validation, response rendering, MCP tool schemas and the OpenAPI document.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

TaskStatus = Literal["pending", "running", "done"]


class Task(BaseModel):
    id: UUID = Field(examples=["123e4567-e89b-12d3-a456-426614174000"])
    title: str = Field(min_length=1, examples=["Complete the project report"])
    status: TaskStatus = "pending"
    createdAt: datetime = Field(examples=["2025-03-07T10:00:00Z"])


class CreateTaskRequest(BaseModel):
    title: Annotated[str, Field(min_length=1, examples=["Schedule a team meeting"])]


class CreateTaskResponse(BaseModel):
    success: Literal[True] = True
    task: Task


class ListTasksRequest(BaseModel):
    """listTasks takes no parameters; unknown keys are ignored."""


class ListTasksResponse(BaseModel):
    success: Literal[True] = True
    tasks: list[Task]


class AnalysisRequest(BaseModel):
    taskId: UUID = Field(examples=["123e4567-e89b-12d3-a456-426614174000"])
    depth: int = Field(default=1, ge=1, le=5, examples=[2])

    @field_validator("depth", mode="before")
    @classmethod
    def depth_is_a_json_number(cls, value: Any) -> Any:
        # Integral floats (2.0) are depths; strings and booleans are not.
        if isinstance(value, (str, bool)):
            raise PydanticCustomError("int_type", "Input should be a valid integer")
        return value


class AnalysisReport(BaseModel):
    taskId: UUID
    score: float = Field(ge=0.0, le=1.0, examples=[0.95])
    notes: str = Field(examples=["Analysis complete, no major issues found."])


class AnalysisResponse(BaseModel):
    success: Literal[True] = True
    report: AnalysisReport


class FieldViolation(BaseModel):
    """One violated constraint of a ValidationFailed error."""

    path: list[str | int]
    code: str
    message: str
    expected: dict[str, Any] | None = None
    received: Any = None


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
    details: list[FieldViolation] | None = None


class HealthResponse(BaseModel):
    ok: Literal[True] = True
    ts: datetime
    version: str


class RpcRequest(BaseModel):
    """Envelope accepted by ``POST /rpc``."""

    model_config = ConfigDict(extra="ignore")

    method: Annotated[str, Field(strict=True)]
    params: Any = None


class ResultResponse(BaseModel):
    """Success envelope shared by the RPC and tool adapters."""

    success: Literal[True] = True
    result: Any


class ToolExecuteRequest(BaseModel):
    """Envelope accepted by ``POST /mcp/execute``; ``params`` must be present."""

    model_config = ConfigDict(extra="ignore")

    tool: Annotated[str, Field(strict=True, min_length=1)]
    params: Any


class ToolDescriptor(BaseModel):
    name: str
    description: str
    schema_: dict[str, Any] = Field(alias="schema")

    model_config = ConfigDict(populate_by_name=True)


class ToolListResponse(BaseModel):
    tools: list[ToolDescriptor]
