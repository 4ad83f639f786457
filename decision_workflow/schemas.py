"""
Pydantic schemas for API requests
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from .models import (
    DecisionContext, CreateWorkflowParams, Priority, EntityType,
    StakeholderRole, ApprovalDecision, MilestoneStatus
)


class DecisionContextModel(BaseModel):
    summary: str
    risk_assessment: Dict[str, Any] = Field(default_factory=dict)
    financial_impact: Dict[str, Any] = Field(default_factory=dict)
    strategic_implications: List[str] = Field(default_factory=list)
    supporting_data: List[Dict[str, Any]] = Field(default_factory=list)
    related_decisions: List[str] = Field(default_factory=list)
    recommendations: List[Dict[str, Any]] = Field(default_factory=list)

    def to_context(self) -> DecisionContext:
        return DecisionContext(
            summary=self.summary,
            risk_assessment=self.risk_assessment,
            financial_impact=self.financial_impact,
            strategic_implications=self.strategic_implications,
            supporting_data=self.supporting_data,
            related_decisions=self.related_decisions,
            recommendations=self.recommendations
        )


class CreateWorkflowRequest(BaseModel):
    title: str
    decision_type: str = Field(..., description="Decision type, e.g. investment or strategic")
    priority: Priority
    entity_type: EntityType
    entity_id: str
    context: DecisionContextModel
    target_decision: datetime

    def to_params(self) -> CreateWorkflowParams:
        return CreateWorkflowParams(
            title=self.title,
            decision_type=self.decision_type,
            priority=self.priority,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            context=self.context.to_context(),
            target_decision=self.target_decision
        )


class StageUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    required_actions: Optional[List[str]] = None
    completed_actions: Optional[List[str]] = None
    estimated_duration: Optional[str] = None
    actual_duration: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ApprovalRequest(BaseModel):
    role: StakeholderRole
    decision: ApprovalDecision
    comments: Optional[str] = None
    approver: Optional[str] = Field(None, description="Identity resolved by the caller's auth context")


class EscalationRequest(BaseModel):
    reason: str
    escalated_to: StakeholderRole
    escalated_by: Optional[str] = None


class MilestoneUpdateRequest(BaseModel):
    status: MilestoneStatus
    completed_date: Optional[datetime] = None
