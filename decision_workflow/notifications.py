"""
Stakeholder Notification Hook

Logs workflow events and hands them to the event dispatcher. Delivery
(email, chat, ...) belongs to whoever subscribes; failures never reach the
operation that triggered the notification.
"""

import logging
from typing import Optional

from .events import EventDispatcher, WorkflowEvent, WorkflowEventPayload
from .models import DecisionWorkflow


logger = logging.getLogger(__name__)


class StakeholderNotifier:
    """Best-effort stakeholder notifications for workflow events"""

    def __init__(self, dispatcher: Optional[EventDispatcher] = None, enabled: bool = True):
        self.dispatcher = dispatcher or EventDispatcher()
        self.enabled = enabled

    def notify_stakeholders(self, workflow: DecisionWorkflow, event: WorkflowEvent) -> bool:
        """
        Notify a workflow's stakeholders about an event.

        Returns True when the event was handed off, False when notifications
        are disabled or the hand-off failed.
        """
        if not self.enabled:
            return False

        recipients = [s.id for s in workflow.stakeholders if s.notification]
        try:
            logger.info(f"Notifying stakeholders of workflow {workflow.id} - event: {event.value}")
            self.dispatcher.publish(WorkflowEventPayload(
                event_type=event,
                workflow_id=workflow.id,
                data={
                    'title': workflow.title,
                    'decision_type': workflow.decision_type.value,
                    'status': workflow.status.value,
                    'current_stage': workflow.current_stage.id,
                    'recipients': recipients
                }
            ))
        except Exception as e:
            logger.error(f"Failed to notify stakeholders of workflow {workflow.id} ({event.value}): {e}")
            return False

        return True
