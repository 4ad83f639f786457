"""
Workflow Instance Store

Repository of decision workflows on top of a StorageInterface. Workflows are
stored as plain dictionaries, so every read hands back an independent copy.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .models import (
    DecisionWorkflow, DecisionType, Priority, EntityType, WorkflowStatus,
    ApprovalLevel, StakeholderRole, WorkflowStage, DecisionContext,
    WorkflowTimeline, Milestone, MilestoneStatus, Escalation, Stakeholder,
    InfluenceLevel
)
from .storage import StorageInterface, InMemoryStorage, to_jsonable


def _dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def stage_to_dict(stage: WorkflowStage) -> Dict[str, Any]:
    """Convert a stage to dictionary for storage"""
    data = asdict(stage)
    data['started_at'] = _dt(stage.started_at)
    data['completed_at'] = _dt(stage.completed_at)
    return data


def dict_to_stage(data: Dict[str, Any]) -> WorkflowStage:
    """Convert dictionary to stage"""
    data = dict(data)
    data['started_at'] = _parse_dt(data.get('started_at'))
    data['completed_at'] = _parse_dt(data.get('completed_at'))
    return WorkflowStage(**data)


def workflow_to_dict(workflow: DecisionWorkflow) -> Dict[str, Any]:
    """Convert a workflow to a JSON-compatible dictionary"""
    timeline = workflow.timeline
    return {
        'id': workflow.id,
        'created_at': workflow.created_at.isoformat(),
        'updated_at': workflow.updated_at.isoformat(),
        'title': workflow.title,
        'decision_type': workflow.decision_type.value,
        'priority': workflow.priority.value,
        'entity_type': workflow.entity_type.value,
        'entity_id': workflow.entity_id,
        'status': workflow.status.value,
        'required_approvals': [
            {
                'role': approval.role.value,
                'required': approval.required,
                'completed': approval.completed,
                'approver': approval.approver,
                'approved_at': _dt(approval.approved_at),
                'comments': approval.comments
            }
            for approval in workflow.required_approvals
        ],
        'current_stage': stage_to_dict(workflow.current_stage),
        'context': to_jsonable(asdict(workflow.context)),
        'timeline': {
            'created': timeline.created.isoformat(),
            'target_decision': timeline.target_decision.isoformat(),
            'actual_decision': _dt(timeline.actual_decision),
            'milestones': [
                {
                    'id': milestone.id,
                    'title': milestone.title,
                    'target_date': milestone.target_date.isoformat(),
                    'description': milestone.description,
                    'status': milestone.status.value,
                    'completed_date': _dt(milestone.completed_date)
                }
                for milestone in timeline.milestones
            ],
            'escalations': [
                {
                    'id': escalation.id,
                    'reason': escalation.reason,
                    'escalated_to': escalation.escalated_to.value,
                    'escalated_at': escalation.escalated_at.isoformat(),
                    'resolved_at': _dt(escalation.resolved_at),
                    'resolution': escalation.resolution
                }
                for escalation in timeline.escalations
            ]
        },
        'stakeholders': [
            {
                'id': stakeholder.id,
                'name': stakeholder.name,
                'role': stakeholder.role.value,
                'department': stakeholder.department,
                'influence': stakeholder.influence.value,
                'notification': stakeholder.notification
            }
            for stakeholder in workflow.stakeholders
        ]
    }


def dict_to_workflow(data: Dict[str, Any]) -> DecisionWorkflow:
    """Convert a stored dictionary back to a workflow"""
    timeline_data = data['timeline']
    timeline = WorkflowTimeline(
        created=datetime.fromisoformat(timeline_data['created']),
        target_decision=datetime.fromisoformat(timeline_data['target_decision']),
        actual_decision=_parse_dt(timeline_data.get('actual_decision')),
        milestones=[
            Milestone(
                id=m['id'],
                title=m['title'],
                target_date=datetime.fromisoformat(m['target_date']),
                description=m['description'],
                status=MilestoneStatus(m['status']),
                completed_date=_parse_dt(m.get('completed_date'))
            )
            for m in timeline_data.get('milestones', [])
        ],
        escalations=[
            Escalation(
                id=e['id'],
                reason=e['reason'],
                escalated_to=StakeholderRole(e['escalated_to']),
                escalated_at=datetime.fromisoformat(e['escalated_at']),
                resolved_at=_parse_dt(e.get('resolved_at')),
                resolution=e.get('resolution')
            )
            for e in timeline_data.get('escalations', [])
        ]
    )

    return DecisionWorkflow(
        id=data['id'],
        created_at=datetime.fromisoformat(data['created_at']),
        updated_at=datetime.fromisoformat(data['updated_at']),
        title=data['title'],
        decision_type=DecisionType(data['decision_type']),
        priority=Priority(data['priority']),
        entity_type=EntityType(data['entity_type']),
        entity_id=data['entity_id'],
        status=WorkflowStatus(data['status']),
        required_approvals=[
            ApprovalLevel(
                role=StakeholderRole(a['role']),
                required=a['required'],
                completed=a['completed'],
                approver=a.get('approver'),
                approved_at=_parse_dt(a.get('approved_at')),
                comments=a.get('comments')
            )
            for a in data.get('required_approvals', [])
        ],
        current_stage=dict_to_stage(data['current_stage']),
        context=DecisionContext(**data['context']),
        timeline=timeline,
        stakeholders=[
            Stakeholder(
                id=s['id'],
                name=s['name'],
                role=StakeholderRole(s['role']),
                department=s['department'],
                influence=InfluenceLevel(s['influence']),
                notification=s['notification']
            )
            for s in data.get('stakeholders', [])
        ]
    )


class WorkflowStore:
    """Keyed collection of decision workflows; the engine's only mutable state"""

    def __init__(self, storage: Optional[StorageInterface] = None, table: str = "decision_workflows"):
        self.storage = storage or InMemoryStorage()
        self.table = table

    def add(self, workflow: DecisionWorkflow) -> None:
        """Insert a new workflow"""
        if self.storage.exists(self.table, workflow.id):
            raise ValueError(f"Workflow {workflow.id} already exists")
        self.save(workflow)

    def save(self, workflow: DecisionWorkflow) -> None:
        """Persist the current state of a workflow"""
        self.storage.save(self.table, workflow.id, workflow_to_dict(workflow))

    def get(self, workflow_id: str) -> Optional[DecisionWorkflow]:
        """Get a workflow by ID, None if it does not exist"""
        data = self.storage.load(self.table, workflow_id)
        if not data:
            return None
        return dict_to_workflow(data)

    def exists(self, workflow_id: str) -> bool:
        return self.storage.exists(self.table, workflow_id)

    def scan(self, predicate: Optional[Callable[[DecisionWorkflow], bool]] = None) -> List[DecisionWorkflow]:
        """Full scan in insertion order, optionally filtered"""
        workflows = [dict_to_workflow(data) for data in self.storage.load_all(self.table)]
        if predicate is None:
            return workflows
        return [workflow for workflow in workflows if predicate(workflow)]

    def count(self) -> int:
        return self.storage.count(self.table)
