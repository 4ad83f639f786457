"""
Workflow Template Registry

Static per-decision-type blueprints: ordered stages, approval levels and
milestones. Templates are built once when the registry is constructed and
never mutated afterwards.
"""

import copy
from typing import Dict, List, Optional, Union

from .models import (
    DecisionType, StakeholderRole, WorkflowStage, ApprovalLevel,
    MilestoneDefinition, WorkflowTemplate
)


def _build_default_templates() -> Dict[DecisionType, WorkflowTemplate]:
    """Seed templates for the supported decision types"""
    investment = WorkflowTemplate(
        decision_type=DecisionType.INVESTMENT,
        stages=(
            WorkflowStage(
                id="initial_review",
                name="Initial Review",
                description="Preliminary assessment",
                required_actions=["due_diligence", "risk_assessment"],
                estimated_duration="3 days"
            ),
            WorkflowStage(
                id="detailed_analysis",
                name="Detailed Analysis",
                description="Comprehensive evaluation",
                required_actions=["financial_modeling", "market_analysis"],
                estimated_duration="7 days"
            ),
            WorkflowStage(
                id="committee_review",
                name="Investment Committee Review",
                description="Committee evaluation",
                required_actions=["presentation_preparation", "committee_meeting"],
                estimated_duration="5 days"
            ),
        ),
        approval_levels=(
            ApprovalLevel(role=StakeholderRole.PORTFOLIO_MANAGER, required=True),
            ApprovalLevel(role=StakeholderRole.RISK_MANAGER, required=True),
            ApprovalLevel(role=StakeholderRole.INVESTMENT_COMMITTEE, required=True),
            ApprovalLevel(role=StakeholderRole.MANAGING_PARTNER, required=True),
        ),
        milestones=(
            MilestoneDefinition(
                id="due_diligence_complete",
                title="Due Diligence Complete",
                description="Initial due diligence completed",
                offset_days=3
            ),
            MilestoneDefinition(
                id="committee_decision",
                title="Committee Decision",
                description="Investment committee decision",
                offset_days=15
            ),
        )
    )

    strategic = WorkflowTemplate(
        decision_type=DecisionType.STRATEGIC,
        stages=(
            WorkflowStage(
                id="strategic_assessment",
                name="Strategic Assessment",
                description="Strategic impact evaluation",
                required_actions=["market_analysis", "competitive_analysis"],
                estimated_duration="5 days"
            ),
            WorkflowStage(
                id="stakeholder_consultation",
                name="Stakeholder Consultation",
                description="Stakeholder input gathering",
                required_actions=["stakeholder_meetings", "feedback_analysis"],
                estimated_duration="7 days"
            ),
            WorkflowStage(
                id="executive_review",
                name="Executive Review",
                description="Executive team evaluation",
                required_actions=["executive_presentation", "decision_meeting"],
                estimated_duration="3 days"
            ),
        ),
        approval_levels=(
            ApprovalLevel(role=StakeholderRole.OPERATIONS_MANAGER, required=True),
            ApprovalLevel(role=StakeholderRole.MANAGING_PARTNER, required=True),
        ),
        milestones=(
            MilestoneDefinition(
                id="assessment_complete",
                title="Strategic Assessment Complete",
                description="Strategic assessment completed",
                offset_days=5
            ),
            MilestoneDefinition(
                id="executive_decision",
                title="Executive Decision",
                description="Executive team decision",
                offset_days=15
            ),
        )
    )

    return {
        DecisionType.INVESTMENT: investment,
        DecisionType.STRATEGIC: strategic,
    }


class TemplateRegistry:
    """Read-only lookup of workflow templates by decision type"""

    def __init__(self):
        self._templates: Dict[DecisionType, WorkflowTemplate] = _build_default_templates()

    def get_template(self, decision_type: Union[DecisionType, str]) -> Optional[WorkflowTemplate]:
        """Get a private copy of the template for a decision type, None if none is registered"""
        if not isinstance(decision_type, DecisionType):
            try:
                decision_type = DecisionType(decision_type)
            except ValueError:
                return None
        template = self._templates.get(decision_type)
        return copy.deepcopy(template) if template else None

    def get_next_stage(self, template: WorkflowTemplate, stage_id: str) -> Optional[WorkflowStage]:
        """Get the stage following stage_id in template order, None after the last stage"""
        stage_ids = [stage.id for stage in template.stages]
        if stage_id not in stage_ids:
            return None
        index = stage_ids.index(stage_id)
        if index < len(template.stages) - 1:
            return copy.deepcopy(template.stages[index + 1])
        return None

    def supported_types(self) -> List[DecisionType]:
        """List decision types that have a template"""
        return list(self._templates.keys())
