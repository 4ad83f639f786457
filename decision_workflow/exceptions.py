"""
Workflow Errors

Caller errors raised by the workflow engine. All derive from ValueError so
callers that already guard with ``except ValueError`` keep working.
"""


class DecisionWorkflowError(ValueError):
    """Base class for decision workflow errors"""
    pass


class TemplateNotFoundError(DecisionWorkflowError):
    """No workflow template registered for a decision type"""

    def __init__(self, decision_type):
        self.decision_type = getattr(decision_type, 'value', decision_type)
        super().__init__(f"No template found for decision type: {self.decision_type}")


class WorkflowNotFoundError(DecisionWorkflowError):
    """Workflow id does not resolve in the store"""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow {workflow_id} not found")


class ApprovalLevelNotFoundError(DecisionWorkflowError):
    """Role has no approval level on the workflow"""

    def __init__(self, workflow_id: str, role):
        self.workflow_id = workflow_id
        self.role = getattr(role, 'value', role)
        super().__init__(f"Approval level {self.role} not found on workflow {workflow_id}")


class MilestoneNotFoundError(DecisionWorkflowError):
    """Milestone id does not exist on the workflow"""

    def __init__(self, workflow_id: str, milestone_id: str):
        self.workflow_id = workflow_id
        self.milestone_id = milestone_id
        super().__init__(f"Milestone {milestone_id} not found on workflow {workflow_id}")
