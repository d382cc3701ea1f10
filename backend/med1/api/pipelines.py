"""
Pipeline endpoints.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db
from ..core.transactions import transaction
from ..models.lead import Lead
from ..models.pipeline import Pipeline
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.outbound import PipelineCreate, PipelineResponse
from ..services.cache import get_cache


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/pipelines", tags=["Pipelines"])


@router.get("", response_model=List[PipelineResponse])
async def list_pipelines(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[PipelineResponse]:
    """Own pipelines, oldest first, with the number of leads in each."""
    lead_counts = dict(
        db.query(Lead.pipeline_id, func.count(Lead.id))
        .filter(Lead.user_id == user.id, Lead.pipeline_id.isnot(None))
        .group_by(Lead.pipeline_id)
        .all()
    )
    pipelines = db.query(Pipeline).filter(Pipeline.user_id == user.id).order_by(Pipeline.created_at).all()
    return [
        PipelineResponse(
            id=pipeline.id,
            name=pipeline.name,
            description=pipeline.description,
            created_at=pipeline.created_at,
            lead_count=lead_counts.get(pipeline.id, 0),
        )
        for pipeline in pipelines
    ]


@router.post("", response_model=PipelineResponse, status_code=status.HTTP_201_CREATED)
async def create_pipeline(
    body: PipelineCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Pipeline:
    try:
        pipeline = Pipeline(user_id=user.id, name=body.name, description=body.description)
        db.add(pipeline)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating pipeline for user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create pipeline")
    return pipeline


@router.delete("", response_model=SuccessResponse)
async def delete_pipeline(
    pipeline_id: UUID = Query(..., description="Pipeline to delete"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    """Detach the pipeline's leads, then delete it, in one transaction."""
    pipeline = db.query(Pipeline).filter(Pipeline.id == pipeline_id, Pipeline.user_id == user.id).first()
    if not pipeline:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pipeline not found")

    try:
        with transaction(db):
            detached = (
                db.query(Lead)
                .filter(Lead.pipeline_id == pipeline.id)
                .update({Lead.pipeline_id: None}, synchronize_session=False)
            )
            db.delete(pipeline)
    except Exception as e:
        logger.error(f"Error deleting pipeline {pipeline_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete pipeline")

    get_cache().invalidate_user(user.id)
    logger.info(f"Pipeline {pipeline_id} deleted, {detached} leads detached")
    return SuccessResponse(message="Pipeline deleted")
