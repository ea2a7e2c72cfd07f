from fastapi import APIRouter, Depends, HTTPException
from typing import List

from discipline.api.dependencies.services import get_scoring_engine
from discipline.api.schemas import CatalogResponse, CategoryGroupResponse, TaskDefinitionResponse
from discipline.domain.services.scoring_engine import ScoringEngine
from discipline.domain.services.task_catalog import CATEGORY_INFO

router = APIRouter(prefix="/catalog", tags=["Catalog"])


@router.get("", response_model=CatalogResponse)
def get_catalog(scoring: ScoringEngine = Depends(get_scoring_engine)):
    """Every task definition plus the thresholds that apply today."""
    catalog = scoring.catalog
    count = scoring.task_count()
    return CatalogResponse(
        tasks=catalog.all(),
        mandatory_count=count,
        total_mandatory_points=catalog.total_mandatory_points(),
        total_possible_points=catalog.total_possible_points(),
        safe_threshold=scoring.safe_threshold(count),
        warning_threshold=scoring.warning_threshold(count),
    )


@router.get("/categories", response_model=List[CategoryGroupResponse])
def get_categories(scoring: ScoringEngine = Depends(get_scoring_engine)):
    grouped = scoring.catalog.tasks_grouped_by_category()
    return [
        CategoryGroupResponse(
            category=category,
            name=CATEGORY_INFO[category]["name"],
            icon=CATEGORY_INFO[category]["icon"],
            tasks=tasks,
        )
        for category, tasks in grouped.items()
    ]


@router.get("/tasks/{task_id}", response_model=TaskDefinitionResponse)
def get_task(task_id: str, scoring: ScoringEngine = Depends(get_scoring_engine)):
    task = scoring.catalog.get(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task
