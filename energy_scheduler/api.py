"""
API wrapper functions for energy-aware schedule optimization.
"""

import logging
import threading
import uuid
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from .config import GeneticConfig, settings
from .core import optimize_schedule
from .energy import EnergyMatrix
from .exceptions import SchedulerError
from .models import (
    ActivityCategory,
    Complexity,
    FixedCommitment,
    FlexibleTask,
    OptimizationResult,
    Priority,
)
from .schemas import (
    ActivityModel,
    ScheduleRequest,
    ScheduleResponse,
    ScheduleResultModel,
)

logger = logging.getLogger(__name__)


def split_activities(
    activities: list[ActivityModel],
) -> tuple[list[FixedCommitment], list[FlexibleTask]]:
    """
    Split mixed activity records into commitments and flexible tasks.

    Study and assignment records become flexible tasks; everything else is a
    fixed commitment and needs start and end times.

    Raises:
        ValueError: If a fixed activity lacks start or end
    """
    fixed: list[FixedCommitment] = []
    flexible: list[FlexibleTask] = []
    for activity in activities:
        if activity.type.is_flexible:
            flexible.append(
                FlexibleTask(
                    id=activity.id,
                    title=activity.title,
                    category=activity.type,
                    complexity=activity.complexity,
                    priority=activity.priority,
                    deadline=activity.deadline,
                )
            )
            continue
        if activity.start is None or activity.end is None:
            raise ValueError(f"Fixed activity {activity.id} needs start and end times")
        fixed.append(
            FixedCommitment(
                id=activity.id,
                title=activity.title,
                category=activity.type,
                start=activity.start,
                end=activity.end,
            )
        )
    return fixed, flexible


def _error_response(message: str, error_code: str) -> dict[str, Any]:
    response = ScheduleResponse(
        result=ScheduleResultModel(
            success=False,
            status=f"ERROR: {message}",
            error_code=error_code,
        ),
        request_id=str(uuid.uuid4()),
        generated_at=datetime.now(),
    )
    return response.model_dump(mode="json")


def optimize_schedule_api(
    request_data: dict[str, Any],
    *,
    config: GeneticConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> dict[str, Any]:
    """
    API wrapper for schedule optimization.

    Args:
        request_data: Dictionary containing schedule request data
        config: Base engine configuration; defaults to environment settings
        cancel_event: Set to stop the search after the current generation

    Returns:
        Dictionary containing schedule response data. Invalid requests produce
        a response with ``success`` false instead of raising.
    """
    request_id = str(uuid.uuid4())
    try:
        request = ScheduleRequest.model_validate(request_data)

        fixed, flexible = split_activities(request.activities)
        fixed += [commitment.to_domain() for commitment in request.fixed_commitments]
        flexible += [task.to_domain() for task in request.flexible_tasks]

        energy_matrix = None
        if request.energy_patterns:
            energy_matrix = EnergyMatrix.from_patterns(
                pattern.model_dump() for pattern in request.energy_patterns
            )

        overrides = request.config.model_dump(exclude_none=True)
        if request.seed is not None:
            overrides["random_seed"] = request.seed
        base_config = config or settings.to_genetic_config()
        engine_config = base_config.with_overrides(**overrides)

        result = optimize_schedule(
            fixed,
            flexible,
            request.window.to_domain() if request.window else None,
            energy_matrix=energy_matrix,
            history=[record.to_domain() for record in request.history],
            strategy=request.strategy,
            prioritize_task_ids=request.prioritize_task_ids,
            config=engine_config,
            cancel_event=cancel_event,
        )
    except ValidationError as e:
        logger.warning(f"Rejected schedule request {request_id}: {e.error_count()} validation errors")
        return _error_response(str(e), "VALIDATION_ERROR")
    except SchedulerError as e:
        logger.warning(f"Schedule request {request_id} failed: {e.message}")
        return _error_response(e.message, e.error_code or "SCHEDULER_ERROR")
    except ValueError as e:
        logger.warning(f"Schedule request {request_id} failed: {e}")
        return _error_response(str(e), "VALIDATION_ERROR")

    response = ScheduleResponse(
        result=ScheduleResultModel.from_result(result),
        request_id=request_id,
        generated_at=datetime.now(),
    )
    return response.model_dump(mode="json")


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def create_task_from_dict(task_data: dict[str, Any]) -> FlexibleTask:
    """
    Create FlexibleTask instance from dictionary data.

    Unknown complexity or priority values fall back to moderate/medium, and an
    unparseable deadline is dropped.

    Args:
        task_data: Dictionary containing task data

    Returns:
        FlexibleTask instance
    """
    try:
        complexity = Complexity(str(task_data.get("complexity", "moderate")).lower())
    except ValueError:
        complexity = Complexity.MODERATE

    try:
        priority = Priority(str(task_data.get("priority", "medium")).lower())
    except ValueError:
        priority = Priority.MEDIUM

    try:
        category = ActivityCategory(str(task_data.get("category", "study")).lower())
    except ValueError:
        category = ActivityCategory.STUDY
    if not category.is_flexible:
        category = ActivityCategory.STUDY

    session_hours = task_data.get("session_hours")
    return FlexibleTask(
        id=task_data["id"],
        title=task_data["title"],
        category=category,
        complexity=complexity,
        priority=priority,
        deadline=_parse_datetime(task_data.get("deadline")),
        session_hours=float(session_hours) if session_hours is not None else None,
        sessions=int(task_data.get("sessions", 1)),
    )


def create_commitment_from_dict(commitment_data: dict[str, Any]) -> FixedCommitment:
    """
    Create FixedCommitment instance from dictionary data.

    Raises:
        ValueError: If start or end is missing or not ISO formatted
    """
    start = _parse_datetime(commitment_data.get("start"))
    end = _parse_datetime(commitment_data.get("end"))
    if start is None or end is None:
        raise ValueError(f"Invalid commitment times: {commitment_data.get('start')} - {commitment_data.get('end')}")

    try:
        category = ActivityCategory(str(commitment_data.get("category", "other")).lower())
    except ValueError:
        category = ActivityCategory.OTHER

    return FixedCommitment(
        id=commitment_data["id"],
        title=commitment_data["title"],
        category=category,
        start=start,
        end=end,
    )


def format_schedule_result(result: OptimizationResult) -> dict[str, Any]:
    """
    Format OptimizationResult as a compact, display-oriented dictionary.
    """
    return {
        "success": result.success,
        "status": result.status,
        "days": [
            {
                "date": day.date.isoformat(),
                "blocks": [
                    {
                        "task_id": block.task_id,
                        "title": block.title,
                        "category": block.category.value,
                        "start": block.start.strftime("%H:%M"),
                        "end": block.end.strftime("%H:%M"),
                        "is_fixed": block.is_fixed,
                    }
                    for block in day.blocks
                ],
            }
            for day in result.days
        ],
        "unscheduled_tasks": result.unscheduled_tasks,
        "total_scheduled_hours": result.total_scheduled_hours,
        "fitness": result.fitness,
        "generations_run": result.generations_run,
        "solve_time_seconds": result.solve_time_seconds,
    }


def validate_schedule_request(request_data: dict[str, Any]) -> str | None:
    """
    Validate schedule request data.

    Args:
        request_data: Dictionary containing request data

    Returns:
        Error message if validation fails, None if valid
    """
    tasks = request_data.get("flexible_tasks", [])
    activities = request_data.get("activities", [])
    if not isinstance(tasks, list):
        return "Flexible tasks must be a list"
    if not isinstance(activities, list):
        return "Activities must be a list"

    has_flexible = bool(tasks) or any(
        isinstance(a, dict) and str(a.get("type", "")).lower() in ("study", "assignment")
        for a in activities
    )
    if has_flexible and "window" not in request_data:
        return "Missing required field: window"

    for i, task in enumerate(tasks):
        if not isinstance(task, dict):
            return f"Task {i} must be a dictionary"
        for field in ("id", "title"):
            if field not in task:
                return f"Task {i} missing required field: {field}"

    commitments = request_data.get("fixed_commitments", [])
    if not isinstance(commitments, list):
        return "Fixed commitments must be a list"
    for i, commitment in enumerate(commitments):
        if not isinstance(commitment, dict):
            return f"Commitment {i} must be a dictionary"
        for field in ("id", "title", "start", "end"):
            if field not in commitment:
                return f"Commitment {i} missing required field: {field}"

    window = request_data.get("window")
    if window is not None:
        if not isinstance(window, dict) or "start" not in window or "end" not in window:
            return "Window must have start and end"
        try:
            start = datetime.strptime(str(window["start"]), "%Y-%m-%d")
            end = datetime.strptime(str(window["end"]), "%Y-%m-%d")
        except ValueError:
            return "Window dates must be in YYYY-MM-DD format"
        if end < start:
            return "Window end must not be before start"

    return None
