"""
Workflow Insights Module

Read-only analytics over a stored workflow: what is blocking it, when it is
expected to finish, and what reviewers should consider. The prediction,
risk factors and efficiency are fixed heuristics taken from configuration,
not fitted models.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from .config import DecisionWorkflowConfig, get_config
from .exceptions import WorkflowNotFoundError
from .models import DecisionWorkflow, MilestoneStatus, Priority, RiskLevel
from .store import WorkflowStore


PREDICTION_FACTORS = ["Historical data", "Current workload", "Complexity assessment"]

EXPEDITE_RECOMMENDATION = "Consider expedited review process"
RISK_REVIEW_RECOMMENDATION = "Engage additional risk review"


@dataclass
class TimePredictions:
    estimated_completion: datetime
    confidence: float
    factors: List[str] = field(default_factory=list)


@dataclass
class WorkflowRisk:
    type: str
    level: RiskLevel
    description: str
    impact: float


@dataclass
class WorkflowInsights:
    """Derived view of a workflow's progress"""
    bottlenecks: List[str]
    predictions: TimePredictions
    recommendations: List[str]
    risk_factors: List[WorkflowRisk]
    efficiency: float


class WorkflowInsightGenerator:
    """Computes insights from the workflow store without modifying it"""

    def __init__(self, store: WorkflowStore, config: Optional[DecisionWorkflowConfig] = None):
        self.store = store
        self.config = config or get_config()

    def get_workflow_insights(self, workflow_id: str) -> WorkflowInsights:
        workflow = self.store.get(workflow_id)
        if not workflow:
            raise WorkflowNotFoundError(workflow_id)

        return WorkflowInsights(
            bottlenecks=self.identify_bottlenecks(workflow),
            predictions=self.generate_time_predictions(workflow),
            recommendations=self.generate_recommendations(workflow),
            risk_factors=self.assess_workflow_risks(workflow),
            efficiency=self.calculate_efficiency(workflow)
        )

    def identify_bottlenecks(self, workflow: DecisionWorkflow) -> List[str]:
        """Pending required approvals first, then overdue milestones"""
        bottlenecks = [
            f"Pending approval from {approval.role.value}"
            for approval in workflow.required_approvals
            if approval.required and not approval.completed
        ]
        bottlenecks.extend(
            f"Overdue milestone: {milestone.title}"
            for milestone in workflow.timeline.milestones
            if milestone.status == MilestoneStatus.OVERDUE
        )
        return bottlenecks

    def generate_time_predictions(self, workflow: DecisionWorkflow) -> TimePredictions:
        # TODO: derive from stage estimated durations once completion history is recorded
        return TimePredictions(
            estimated_completion=workflow.created_at + timedelta(days=self.config.prediction_horizon_days),
            confidence=self.config.prediction_confidence,
            factors=list(PREDICTION_FACTORS)
        )

    def generate_recommendations(self, workflow: DecisionWorkflow) -> List[str]:
        recommendations = []

        if workflow.priority >= Priority.HIGH:
            recommendations.append(EXPEDITE_RECOMMENDATION)

        if workflow.context.overall_risk == RiskLevel.HIGH.value:
            recommendations.append(RISK_REVIEW_RECOMMENDATION)

        return recommendations

    def assess_workflow_risks(self, workflow: DecisionWorkflow) -> List[WorkflowRisk]:
        return [
            WorkflowRisk(
                type="timeline",
                level=RiskLevel.MEDIUM,
                description="Potential for timeline extension due to complexity",
                impact=0.3
            ),
            WorkflowRisk(
                type="approval",
                level=RiskLevel.LOW,
                description="Standard approval process",
                impact=0.1
            ),
        ]

    def calculate_efficiency(self, workflow: DecisionWorkflow) -> float:
        return self.config.efficiency_score
