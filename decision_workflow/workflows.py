"""
Decision Workflow Engine Module

Template-driven approval workflows for business decisions. A workflow walks
its template's stages strictly in order, then waits for every required
approval role to sign off. A single rejection ends the workflow.
"""

import copy
import logging
import uuid
from datetime import datetime, timezone, timedelta
from typing import Any, Dict, List, Optional, Union

from .audit import AuditTrail, AuditEventType
from .config import DecisionWorkflowConfig, get_config
from .events import WorkflowEvent
from .exceptions import (
    TemplateNotFoundError, WorkflowNotFoundError, ApprovalLevelNotFoundError,
    MilestoneNotFoundError
)
from .insights import WorkflowInsightGenerator, WorkflowInsights
from .logging_config import log_action
from .models import (
    DecisionWorkflow, DecisionType, WorkflowStatus, StakeholderRole,
    ApprovalDecision, ApprovalLevel, WorkflowTimeline,
    Milestone, MilestoneStatus, Escalation, CreateWorkflowParams
)
from .notifications import StakeholderNotifier
from .stakeholders import StakeholderResolver
from .storage import StorageInterface, InMemoryStorage
from .store import WorkflowStore
from .templates import TemplateRegistry


logger = logging.getLogger(__name__)

ENTITY_TYPE = "decision_workflow"

# Stage fields callers may change; the id is fixed by the template
UPDATABLE_STAGE_FIELDS = frozenset({
    'name', 'description', 'required_actions', 'completed_actions',
    'estimated_duration', 'actual_duration', 'started_at', 'completed_at'
})

OPEN_MILESTONE_STATUSES = (MilestoneStatus.PENDING, MilestoneStatus.IN_PROGRESS)


class DecisionWorkflowEngine:
    """Main workflow engine for creating and progressing decision workflows"""

    def __init__(self, storage: Optional[StorageInterface] = None,
                 audit_manager: Optional[AuditTrail] = None,
                 notifier: Optional[StakeholderNotifier] = None,
                 template_registry: Optional[TemplateRegistry] = None,
                 stakeholder_resolver: Optional[StakeholderResolver] = None,
                 config: Optional[DecisionWorkflowConfig] = None):
        self.config = config or get_config()
        storage = storage or InMemoryStorage()
        self.store = WorkflowStore(storage)
        self.audit = audit_manager or AuditTrail(storage)
        self.notifier = notifier or StakeholderNotifier(enabled=self.config.enable_notifications)
        self.templates = template_registry or TemplateRegistry()
        self.stakeholder_resolver = stakeholder_resolver or StakeholderResolver()
        self.insights = WorkflowInsightGenerator(self.store, self.config)

    # Workflow Creation

    def create_workflow(self, params: CreateWorkflowParams) -> DecisionWorkflow:
        """Create a workflow from the template for its decision type"""
        template = self.templates.get_template(params.decision_type)
        if not template:
            raise TemplateNotFoundError(params.decision_type)

        now = datetime.now(timezone.utc)

        workflow = DecisionWorkflow(
            id=self._generate_workflow_id(now),
            created_at=now,
            updated_at=now,
            title=params.title,
            decision_type=template.decision_type,
            priority=params.priority,
            entity_type=params.entity_type,
            entity_id=params.entity_id,
            required_approvals=[
                ApprovalLevel(role=level.role, required=level.required, completed=False)
                for level in template.approval_levels
            ],
            current_stage=template.stages[0],
            context=params.context,
            timeline=WorkflowTimeline(
                created=now,
                target_decision=params.target_decision,
                milestones=[
                    Milestone(
                        id=definition.id,
                        title=definition.title,
                        target_date=now + timedelta(days=definition.offset_days),
                        description=definition.description
                    )
                    for definition in template.milestones
                ]
            ),
            stakeholders=self.stakeholder_resolver.identify_stakeholders(
                template.decision_type, params.priority
            ),
            status=WorkflowStatus.DRAFT
        )

        self.store.add(workflow)

        self._log_audit(
            AuditEventType.WORKFLOW_CREATED,
            workflow.id,
            {
                'title': workflow.title,
                'decision_type': workflow.decision_type,
                'priority': workflow.priority,
                'entity_type': workflow.entity_type,
                'entity_id': workflow.entity_id
            }
        )
        logger.info(f"Created {workflow.decision_type.value} workflow {workflow.id}")

        self.notifier.notify_stakeholders(workflow, WorkflowEvent.CREATED)
        return workflow

    # Queries

    def get_workflow(self, workflow_id: str) -> Optional[DecisionWorkflow]:
        """Get a workflow by ID"""
        return self.store.get(workflow_id)

    def list_workflows(self, status: Optional[WorkflowStatus] = None,
                       decision_type: Optional[DecisionType] = None,
                       entity_id: Optional[str] = None) -> List[DecisionWorkflow]:
        """Get workflows with optional filters, newest first"""
        def matches(workflow: DecisionWorkflow) -> bool:
            if status and workflow.status != status:
                return False
            if decision_type and workflow.decision_type != decision_type:
                return False
            if entity_id and workflow.entity_id != entity_id:
                return False
            return True

        workflows = self.store.scan(matches)
        return sorted(workflows, key=lambda w: w.created_at, reverse=True)

    def get_workflows_for_user(self, user_id: str,
                               role: Union[StakeholderRole, str]) -> List[DecisionWorkflow]:
        """
        Workflows a user should see: those listing the user (by id or role)
        as a stakeholder, plus those still waiting on an approval from the role.
        """
        role_value = getattr(role, 'value', role)

        def visible(workflow: DecisionWorkflow) -> bool:
            if any(s.id == user_id or s.role.value == role_value for s in workflow.stakeholders):
                return True
            return any(a.role.value == role_value and not a.completed
                       for a in workflow.required_approvals)

        return self.store.scan(visible)

    def get_workflow_insights(self, workflow_id: str) -> WorkflowInsights:
        """Derive bottlenecks, predictions and recommendations for a workflow"""
        return self.insights.get_workflow_insights(workflow_id)

    def get_audit_history(self, workflow_id: str) -> list:
        """Get the audit events recorded for a workflow"""
        return self.audit.get_events_for_entity(ENTITY_TYPE, workflow_id)

    # Stage Progression

    def update_workflow_stage(self, workflow_id: str, stage_id: str,
                              updates: Dict[str, Any]) -> DecisionWorkflow:
        """
        Merge updates onto the workflow's current stage.

        Only the current stage can be updated; any other stage_id leaves the
        workflow untouched. Setting ``completed_at`` moves the workflow to the
        next template stage, or to pending_approval the first time the last
        stage completes. A rejected workflow stays rejected.
        """
        workflow = self._require_workflow(workflow_id)

        if workflow.current_stage.id != stage_id:
            logger.debug(f"Ignoring update for stage {stage_id} on workflow {workflow_id}; "
                         f"current stage is {workflow.current_stage.id}")
            return workflow

        unknown = set(updates) - UPDATABLE_STAGE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update stage fields: {', '.join(sorted(unknown))}")

        was_completed = workflow.current_stage.completed_at is not None
        for key, value in updates.items():
            setattr(workflow.current_stage, key, copy.deepcopy(value))

        previous_stage_id = workflow.current_stage.id
        previous_status = workflow.status

        if updates.get('completed_at'):
            template = self.templates.get_template(workflow.decision_type)
            next_stage = self.templates.get_next_stage(template, previous_stage_id)
            if next_stage:
                workflow.current_stage = next_stage
            elif not was_completed and workflow.status != WorkflowStatus.REJECTED:
                workflow.status = WorkflowStatus.PENDING_APPROVAL

        workflow.updated_at = datetime.now(timezone.utc)
        self.store.save(workflow)

        self._log_audit(
            AuditEventType.WORKFLOW_STAGE_UPDATED,
            workflow_id,
            {
                'stage_id': previous_stage_id,
                'updated_fields': sorted(updates),
                'current_stage': workflow.current_stage.id,
                'previous_status': previous_status,
                'status': workflow.status
            }
        )

        self.notifier.notify_stakeholders(workflow, WorkflowEvent.STAGE_UPDATED)
        return workflow

    # Approvals

    def process_approval(self, workflow_id: str, approver_role: Union[StakeholderRole, str],
                         decision: Union[ApprovalDecision, str], comments: Optional[str] = None,
                         approver: Optional[str] = None) -> DecisionWorkflow:
        """
        Record an approval or rejection from one role.

        A rejection ends the workflow immediately. The workflow is approved
        once every required approval level is complete. Approvals are accepted
        whatever the workflow's current status.
        """
        decision = ApprovalDecision(decision)
        workflow = self._require_workflow(workflow_id)

        role_value = getattr(approver_role, 'value', approver_role)
        approval = next((a for a in workflow.required_approvals if a.role.value == role_value), None)
        if not approval:
            raise ApprovalLevelNotFoundError(workflow_id, approver_role)

        now = datetime.now(timezone.utc)
        previous_status = workflow.status

        approval.completed = True
        approval.approver = approver or self.config.default_approver
        approval.approved_at = now
        approval.comments = comments

        if decision == ApprovalDecision.REJECTED:
            workflow.status = WorkflowStatus.REJECTED
        elif workflow.status != WorkflowStatus.REJECTED and self._all_required_approvals_completed(workflow):
            workflow.status = WorkflowStatus.APPROVED

        if (workflow.status != previous_status
                and workflow.status in (WorkflowStatus.APPROVED, WorkflowStatus.REJECTED)
                and workflow.timeline.actual_decision is None):
            workflow.timeline.actual_decision = now

        workflow.updated_at = now
        self.store.save(workflow)

        self._log_audit(
            AuditEventType.WORKFLOW_APPROVAL_RECORDED,
            workflow_id,
            {
                'role': approval.role,
                'decision': decision,
                'comments': comments,
                'previous_status': previous_status,
                'status': workflow.status
            },
            approval.approver
        )
        log_action(
            logger, "info",
            f"Workflow {workflow_id} {decision.value} by {approval.role.value}",
            user_id=approval.approver, action=f"approval_{decision.value}", resource=workflow_id
        )

        event = WorkflowEvent.APPROVED if decision == ApprovalDecision.APPROVED else WorkflowEvent.REJECTED
        self.notifier.notify_stakeholders(workflow, event)
        return workflow

    # Escalations and Milestones

    def escalate_workflow(self, workflow_id: str, reason: str,
                          escalated_to: Union[StakeholderRole, str],
                          escalated_by: Optional[str] = None) -> Escalation:
        """Append an escalation to the workflow timeline"""
        escalated_to = StakeholderRole(escalated_to)
        workflow = self._require_workflow(workflow_id)

        now = datetime.now(timezone.utc)
        escalation = Escalation(
            id=str(uuid.uuid4()),
            reason=reason,
            escalated_to=escalated_to,
            escalated_at=now
        )
        workflow.timeline.escalations.append(escalation)
        workflow.updated_at = now
        self.store.save(workflow)

        self._log_audit(
            AuditEventType.WORKFLOW_ESCALATED,
            workflow_id,
            {'escalation_id': escalation.id, 'reason': reason, 'escalated_to': escalated_to},
            escalated_by
        )
        logger.warning(f"Workflow {workflow_id} escalated to {escalated_to.value}: {reason}")

        self.notifier.notify_stakeholders(workflow, WorkflowEvent.ESCALATED)
        return escalation

    def update_milestone(self, workflow_id: str, milestone_id: str,
                         status: Union[MilestoneStatus, str],
                         completed_date: Optional[datetime] = None) -> Milestone:
        """Set a milestone's status; completing it stamps the completion date"""
        status = MilestoneStatus(status)
        workflow = self._require_workflow(workflow_id)

        milestone = next((m for m in workflow.timeline.milestones if m.id == milestone_id), None)
        if not milestone:
            raise MilestoneNotFoundError(workflow_id, milestone_id)

        now = datetime.now(timezone.utc)
        milestone.status = status
        if status == MilestoneStatus.COMPLETED:
            milestone.completed_date = completed_date or now

        workflow.updated_at = now
        self.store.save(workflow)

        self._log_audit(
            AuditEventType.WORKFLOW_MILESTONE_UPDATED,
            workflow_id,
            {'milestone_id': milestone_id, 'status': status}
        )

        self.notifier.notify_stakeholders(workflow, WorkflowEvent.MILESTONE_UPDATED)
        return milestone

    def check_overdue_milestones(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Mark open milestones past their target date as overdue"""
        now = now or datetime.now(timezone.utc)
        breaches = []

        for workflow in self.store.scan():
            overdue = [
                m for m in workflow.timeline.milestones
                if m.status in OPEN_MILESTONE_STATUSES and m.target_date < now
            ]
            if not overdue:
                continue

            for milestone in overdue:
                milestone.status = MilestoneStatus.OVERDUE
                breaches.append({
                    'workflow_id': workflow.id,
                    'milestone_id': milestone.id,
                    'title': milestone.title,
                    'target_date': milestone.target_date
                })

            workflow.updated_at = datetime.now(timezone.utc)
            self.store.save(workflow)

            self._log_audit(
                AuditEventType.WORKFLOW_MILESTONE_UPDATED,
                workflow.id,
                {'overdue_milestones': [m.id for m in overdue]},
                'system'
            )

        return breaches

    # Private helper methods

    def _require_workflow(self, workflow_id: str) -> DecisionWorkflow:
        workflow = self.store.get(workflow_id)
        if not workflow:
            raise WorkflowNotFoundError(workflow_id)
        return workflow

    def _all_required_approvals_completed(self, workflow: DecisionWorkflow) -> bool:
        return all(a.completed for a in workflow.required_approvals if a.required)

    def _generate_workflow_id(self, now: datetime) -> str:
        return f"workflow_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"

    def _log_audit(self, event_type: AuditEventType, workflow_id: str,
                   metadata: Dict[str, Any], user_id: Optional[str] = None) -> None:
        if self.config.enable_audit_logging:
            self.audit.log_event(event_type, ENTITY_TYPE, workflow_id, metadata, user_id)