"""
Tests for stakeholder notifications
"""

import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import Mock

from decision_workflow.config import DecisionWorkflowConfig
from decision_workflow.events import EventDispatcher, WorkflowEvent
from decision_workflow.models import (
    CreateWorkflowParams, DecisionContext, DecisionType, Priority, EntityType,
    StakeholderRole, WorkflowStatus
)
from decision_workflow.notifications import StakeholderNotifier
from decision_workflow.storage import InMemoryStorage
from decision_workflow.workflows import DecisionWorkflowEngine


def make_params():
    return CreateWorkflowParams(
        title="Reorganize operations",
        decision_type=DecisionType.STRATEGIC,
        priority=Priority.MEDIUM,
        entity_type=EntityType.FUND,
        entity_id="fund_2",
        context=DecisionContext(summary="Consolidate back office"),
        target_decision=datetime.now(timezone.utc) + timedelta(days=10)
    )


@pytest.fixture
def dispatcher():
    return EventDispatcher()


@pytest.fixture
def engine(dispatcher):
    return DecisionWorkflowEngine(
        InMemoryStorage(),
        notifier=StakeholderNotifier(dispatcher),
        config=DecisionWorkflowConfig()
    )


class TestStakeholderNotifier:
    """Test notification hand-off"""

    def test_notification_payload(self, engine, dispatcher):
        handler = Mock()
        dispatcher.subscribe(WorkflowEvent.STAGE_UPDATED, handler)
        workflow = engine.create_workflow(make_params())

        engine.update_workflow_stage(workflow.id, "strategic_assessment", {"completed_actions": ["market_analysis"]})

        payload = handler.call_args[0][0]
        assert payload.workflow_id == workflow.id
        assert payload.data == {
            "title": "Reorganize operations",
            "decision_type": "strategic",
            "status": "draft",
            "current_stage": "strategic_assessment",
            "recipients": ["1", "2"]
        }

    def test_muted_stakeholders_are_not_recipients(self, engine, dispatcher):
        handler = Mock()
        dispatcher.subscribe_all(handler)
        workflow = engine.create_workflow(make_params())
        workflow.stakeholders[0].notification = False

        assert engine.notifier.notify_stakeholders(workflow, WorkflowEvent.ESCALATED) is True
        assert handler.call_args[0][0].data["recipients"] == ["2"]

    def test_disabled_notifier(self, dispatcher):
        handler = Mock()
        dispatcher.subscribe_all(handler)
        engine = DecisionWorkflowEngine(
            InMemoryStorage(),
            notifier=StakeholderNotifier(dispatcher, enabled=False)
        )

        workflow = engine.create_workflow(make_params())

        assert engine.notifier.notify_stakeholders(workflow, WorkflowEvent.CREATED) is False
        handler.assert_not_called()

    def test_dispatch_failure_returns_false(self, engine):
        workflow = engine.create_workflow(make_params())
        engine.notifier.dispatcher = Mock()
        engine.notifier.dispatcher.publish.side_effect = RuntimeError("queue unavailable")

        assert engine.notifier.notify_stakeholders(workflow, WorkflowEvent.CREATED) is False

    def test_failed_notification_does_not_undo_mutation(self, engine):
        workflow = engine.create_workflow(make_params())
        engine.notifier.dispatcher = Mock()
        engine.notifier.dispatcher.publish.side_effect = RuntimeError("queue unavailable")

        engine.process_approval(workflow.id, StakeholderRole.OPERATIONS_MANAGER, "approved")
        updated = engine.process_approval(workflow.id, StakeholderRole.MANAGING_PARTNER, "approved")

        assert updated.status == WorkflowStatus.APPROVED
        assert engine.get_workflow(workflow.id).status == WorkflowStatus.APPROVED
