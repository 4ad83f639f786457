"""
Decision Workflow Domain Model

Enums and dataclasses shared by the template registry, the workflow store,
the lifecycle engine and the insight generator.
"""

from datetime import datetime
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Dict, List, Optional, Any, Tuple
from enum import Enum

from .storage import StorageRecord


class DecisionType(Enum):
    """Kinds of business decisions; selects the workflow template"""
    INVESTMENT = "investment"
    DIVESTMENT = "divestment"
    STRATEGIC = "strategic"
    OPERATIONAL = "operational"
    REGULATORY = "regulatory"
    PARTNERSHIP = "partnership"
    RESOURCE_ALLOCATION = "resource_allocation"
    RISK_MANAGEMENT = "risk_management"


@total_ordering
class Priority(Enum):
    """Decision priority, ordered low < medium < high < critical < urgent"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return list(Priority).index(self)

    def __lt__(self, other):
        if isinstance(other, Priority):
            return self.rank < other.rank
        return NotImplemented


class WorkflowStatus(Enum):
    """Status of a decision workflow"""
    DRAFT = "draft"
    UNDER_REVIEW = "under_review"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    ON_HOLD = "on_hold"
    IMPLEMENTED = "implemented"
    CANCELLED = "cancelled"


class StakeholderRole(Enum):
    """Roles that can be notified about or sign off on a decision"""
    MANAGING_PARTNER = "managing_partner"
    INVESTMENT_COMMITTEE = "investment_committee"
    PORTFOLIO_MANAGER = "portfolio_manager"
    RISK_MANAGER = "risk_manager"
    COMPLIANCE_OFFICER = "compliance_officer"
    LEGAL_COUNSEL = "legal_counsel"
    OPERATIONS_MANAGER = "operations_manager"
    ANALYST = "analyst"
    EXTERNAL_ADVISOR = "external_advisor"


class ApprovalDecision(Enum):
    """Outcome of a single approval action"""
    APPROVED = "approved"
    REJECTED = "rejected"


class RiskLevel(Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"
    CRITICAL = "critical"


class EntityType(Enum):
    """Kinds of external business objects a decision can reference"""
    FUND = "fund"
    PORTFOLIO_COMPANY = "portfolio_company"
    COMPANY = "company"
    LP_ORGANIZATION = "lp_organization"
    INVESTMENT = "investment"
    DEAL = "deal"
    DOCUMENT = "document"
    CONTACT = "contact"
    USER = "user"


class InfluenceLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MilestoneStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


@dataclass
class WorkflowStage:
    """One ordered step of a workflow's progression"""
    id: str
    name: str
    description: str
    required_actions: List[str] = field(default_factory=list)
    completed_actions: List[str] = field(default_factory=list)
    estimated_duration: str = ""
    actual_duration: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass
class ApprovalLevel:
    """Sign-off slot for one stakeholder role"""
    role: StakeholderRole
    required: bool = True
    completed: bool = False
    approver: Optional[str] = None
    approved_at: Optional[datetime] = None
    comments: Optional[str] = None


@dataclass(frozen=True)
class MilestoneDefinition:
    """Template milestone; target date is relative to workflow creation"""
    id: str
    title: str
    description: str
    offset_days: int


@dataclass
class Milestone:
    id: str
    title: str
    target_date: datetime
    description: str
    status: MilestoneStatus = MilestoneStatus.PENDING
    completed_date: Optional[datetime] = None


@dataclass
class Escalation:
    id: str
    reason: str
    escalated_to: StakeholderRole
    escalated_at: datetime
    resolved_at: Optional[datetime] = None
    resolution: Optional[str] = None


@dataclass
class Stakeholder:
    id: str
    name: str
    role: StakeholderRole
    department: str
    influence: InfluenceLevel
    notification: bool = True


@dataclass(frozen=True)
class WorkflowTemplate:
    """Immutable per-decision-type blueprint; stages are in execution order"""
    decision_type: DecisionType
    stages: Tuple[WorkflowStage, ...]
    approval_levels: Tuple[ApprovalLevel, ...]
    milestones: Tuple[MilestoneDefinition, ...] = ()


@dataclass
class DecisionContext:
    """
    Decision payload produced by other subsystems.

    Passed through verbatim; the engine only reads
    ``risk_assessment["overall_risk"]``.
    """
    summary: str
    risk_assessment: Dict[str, Any] = field(default_factory=dict)
    financial_impact: Dict[str, Any] = field(default_factory=dict)
    strategic_implications: List[str] = field(default_factory=list)
    supporting_data: List[Dict[str, Any]] = field(default_factory=list)
    related_decisions: List[str] = field(default_factory=list)
    recommendations: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def overall_risk(self) -> Optional[str]:
        value = self.risk_assessment.get('overall_risk')
        return getattr(value, 'value', value)


@dataclass
class WorkflowTimeline:
    created: datetime
    target_decision: datetime
    actual_decision: Optional[datetime] = None
    milestones: List[Milestone] = field(default_factory=list)
    escalations: List[Escalation] = field(default_factory=list)


@dataclass
class DecisionWorkflow(StorageRecord):
    """A business decision moving through its template's stages and approvals"""
    title: str
    decision_type: DecisionType
    priority: Priority
    entity_type: EntityType
    entity_id: str
    required_approvals: List[ApprovalLevel]
    current_stage: WorkflowStage
    context: DecisionContext
    timeline: WorkflowTimeline
    stakeholders: List[Stakeholder] = field(default_factory=list)
    status: WorkflowStatus = WorkflowStatus.DRAFT


@dataclass
class CreateWorkflowParams:
    """Caller-supplied parameters for a new workflow"""
    title: str
    decision_type: DecisionType
    priority: Priority
    entity_type: EntityType
    entity_id: str
    context: DecisionContext
    target_decision: datetime
