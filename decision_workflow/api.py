"""
Decision Workflow API

FastAPI adapter over the workflow engine. Identity and authorization are
resolved upstream; roles and approver ids arrive in the request body.
"""

from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Depends, Request, status
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from . import __version__
from .config import get_config
from .exceptions import WorkflowNotFoundError
from .insights import WorkflowInsights
from .logging_config import setup_logging
from .models import DecisionType, WorkflowStatus
from .schemas import (
    CreateWorkflowRequest, StageUpdateRequest, ApprovalRequest,
    EscalationRequest, MilestoneUpdateRequest
)
from .store import workflow_to_dict
from .workflows import DecisionWorkflowEngine


def insights_to_dict(insights: WorkflowInsights) -> Dict[str, Any]:
    """Convert insights to a JSON-compatible dictionary"""
    return {
        "bottlenecks": insights.bottlenecks,
        "predictions": {
            "estimated_completion": insights.predictions.estimated_completion.isoformat(),
            "confidence": insights.predictions.confidence,
            "factors": insights.predictions.factors
        },
        "recommendations": insights.recommendations,
        "risk_factors": [
            {**asdict(risk), "level": risk.level.value}
            for risk in insights.risk_factors
        ],
        "efficiency": insights.efficiency
    }


def get_engine(request: Request) -> DecisionWorkflowEngine:
    return request.app.state.engine


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, WorkflowNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def create_app(engine: Optional[DecisionWorkflowEngine] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Decision Workflow API",
        description="Template-driven decision approval workflows",
        version=__version__
    )
    app.state.engine = engine or DecisionWorkflowEngine()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "decision_workflow_api",
            "version": __version__
        }

    @app.post("/workflows", status_code=status.HTTP_201_CREATED)
    async def create_workflow(request: CreateWorkflowRequest,
                              engine: DecisionWorkflowEngine = Depends(get_engine)):
        """Create a workflow from its decision type's template"""
        try:
            workflow = engine.create_workflow(request.to_params())
        except ValueError as e:
            raise _http_error(e)
        return workflow_to_dict(workflow)

    @app.get("/workflows")
    async def list_workflows(status: Optional[WorkflowStatus] = None,
                             decision_type: Optional[DecisionType] = None,
                             entity_id: Optional[str] = None,
                             engine: DecisionWorkflowEngine = Depends(get_engine)):
        """List workflows, newest first"""
        workflows = engine.list_workflows(status=status, decision_type=decision_type, entity_id=entity_id)
        return {"workflows": [workflow_to_dict(w) for w in workflows]}

    @app.get("/workflows/{workflow_id}")
    async def get_workflow(workflow_id: str, engine: DecisionWorkflowEngine = Depends(get_engine)):
        """Get a workflow"""
        workflow = engine.get_workflow(workflow_id)
        if not workflow:
            raise HTTPException(status_code=404, detail=f"Workflow {workflow_id} not found")
        return workflow_to_dict(workflow)

    @app.patch("/workflows/{workflow_id}/stages/{stage_id}")
    async def update_stage(workflow_id: str, stage_id: str, request: StageUpdateRequest,
                           engine: DecisionWorkflowEngine = Depends(get_engine)):
        """Update the current stage; completing it advances the workflow"""
        try:
            workflow = engine.update_workflow_stage(
                workflow_id, stage_id, request.model_dump(exclude_unset=True)
            )
        except ValueError as e:
            raise _http_error(e)
        return workflow_to_dict(workflow)

    @app.post("/workflows/{workflow_id}/approvals")
    async def process_approval(workflow_id: str, request: ApprovalRequest,
                               engine: DecisionWorkflowEngine = Depends(get_engine)):
        """Record an approval or rejection"""
        try:
            workflow = engine.process_approval(
                workflow_id, request.role, request.decision,
                comments=request.comments, approver=request.approver
            )
        except ValueError as e:
            raise _http_error(e)
        return workflow_to_dict(workflow)

    @app.post("/workflows/{workflow_id}/escalations", status_code=status.HTTP_201_CREATED)
    async def escalate_workflow(workflow_id: str, request: EscalationRequest,
                                engine: DecisionWorkflowEngine = Depends(get_engine)):
        """Escalate a workflow"""
        try:
            escalation = engine.escalate_workflow(
                workflow_id, request.reason, request.escalated_to, escalated_by=request.escalated_by
            )
        except ValueError as e:
            raise _http_error(e)
        return {
            "escalation_id": escalation.id,
            "escalated_to": escalation.escalated_to.value,
            "escalated_at": escalation.escalated_at.isoformat()
        }

    @app.patch("/workflows/{workflow_id}/milestones/{milestone_id}")
    async def update_milestone(workflow_id: str, milestone_id: str, request: MilestoneUpdateRequest,
                               engine: DecisionWorkflowEngine = Depends(get_engine)):
        """Update a milestone's status"""
        try:
            milestone = engine.update_milestone(
                workflow_id, milestone_id, request.status, completed_date=request.completed_date
            )
        except ValueError as e:
            raise _http_error(e)
        return {
            "milestone_id": milestone.id,
            "status": milestone.status.value,
            "completed_date": milestone.completed_date.isoformat() if milestone.completed_date else None
        }

    @app.get("/workflows/{workflow_id}/insights")
    async def get_insights(workflow_id: str, engine: DecisionWorkflowEngine = Depends(get_engine)):
        """Bottlenecks, predictions and recommendations for a workflow"""
        try:
            insights = engine.get_workflow_insights(workflow_id)
        except ValueError as e:
            raise _http_error(e)
        return insights_to_dict(insights)

    @app.get("/users/{user_id}/workflows")
    async def get_user_workflows(user_id: str, role: str,
                                 engine: DecisionWorkflowEngine = Depends(get_engine)):
        """Workflows visible to a user acting in a role"""
        workflows = engine.get_workflows_for_user(user_id, role)
        return {"workflows": [workflow_to_dict(w) for w in workflows]}

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)
    uvicorn.run(
        "decision_workflow.api:create_app",
        factory=True,
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level="info"
    )
