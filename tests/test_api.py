"""
Integration tests for the Decision Workflow API
Tests end-to-end workflows using FastAPI TestClient
"""

import pytest
from datetime import datetime, timezone, timedelta
from fastapi.testclient import TestClient

from decision_workflow.api import create_app
from decision_workflow.config import DecisionWorkflowConfig
from decision_workflow.storage import InMemoryStorage
from decision_workflow.workflows import DecisionWorkflowEngine


@pytest.fixture
def client():
    """Create a test client backed by a fresh in-memory engine"""
    engine = DecisionWorkflowEngine(InMemoryStorage(), config=DecisionWorkflowConfig())
    return TestClient(create_app(engine))


def workflow_payload(decision_type="investment", priority="high", overall_risk="high"):
    return {
        "title": "Acquire minority stake",
        "decision_type": decision_type,
        "priority": priority,
        "entity_type": "company",
        "entity_id": "company_123",
        "context": {
            "summary": "Minority stake in a SaaS company",
            "risk_assessment": {"overall_risk": overall_risk},
            "financial_impact": {"estimated_value": 500000, "currency": "USD"}
        },
        "target_decision": (datetime.now(timezone.utc) + timedelta(days=14)).isoformat()
    }


@pytest.fixture
def workflow(client):
    r = client.post("/workflows", json=workflow_payload())
    assert r.status_code == 201
    return r.json()


class TestHealthEndpoints:
    """Test basic health endpoint"""

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"


class TestWorkflowEndpoints:
    """Test workflow creation and retrieval"""

    def test_create_workflow(self, workflow):
        assert workflow["status"] == "draft"
        assert workflow["decision_type"] == "investment"
        assert workflow["current_stage"]["id"] == "initial_review"
        assert [a["role"] for a in workflow["required_approvals"]] == [
            "portfolio_manager", "risk_manager", "investment_committee", "managing_partner"
        ]
        assert len(workflow["timeline"]["milestones"]) == 2

    def test_create_without_template(self, client):
        r = client.post("/workflows", json=workflow_payload(decision_type="regulatory"))

        assert r.status_code == 400
        assert "No template found for decision type: regulatory" in r.json()["detail"]

    def test_create_validation_error(self, client):
        payload = workflow_payload()
        del payload["title"]

        r = client.post("/workflows", json=payload)
        assert r.status_code == 422

    def test_get_workflow(self, client, workflow):
        r = client.get(f"/workflows/{workflow['id']}")

        assert r.status_code == 200
        assert r.json()["id"] == workflow["id"]

    def test_get_missing_workflow(self, client):
        r = client.get("/workflows/nonexistent")
        assert r.status_code == 404

    def test_list_workflows(self, client, workflow):
        client.post("/workflows", json=workflow_payload(decision_type="strategic"))

        r = client.get("/workflows", params={"decision_type": "strategic"})
        assert r.status_code == 200
        assert [w["decision_type"] for w in r.json()["workflows"]] == ["strategic"]

        r = client.get("/workflows", params={"status": "draft"})
        assert len(r.json()["workflows"]) == 2


class TestLifecycleEndpoints:
    """Test stage progression and approvals over HTTP"""

    def test_complete_stages_then_approve(self, client, workflow):
        workflow_id = workflow["id"]
        now = datetime.now(timezone.utc).isoformat()

        for stage_id in ["initial_review", "detailed_analysis", "committee_review"]:
            r = client.patch(f"/workflows/{workflow_id}/stages/{stage_id}", json={"completed_at": now})
            assert r.status_code == 200

        assert r.json()["status"] == "pending_approval"

        for role in ["portfolio_manager", "risk_manager", "investment_committee", "managing_partner"]:
            r = client.post(f"/workflows/{workflow_id}/approvals", json={
                "role": role, "decision": "approved", "approver": f"{role}_1"
            })
            assert r.status_code == 200

        body = r.json()
        assert body["status"] == "approved"
        assert body["required_approvals"][0]["approver"] == "portfolio_manager_1"
        assert body["timeline"]["actual_decision"] is not None

    def test_stale_stage_update(self, client, workflow):
        r = client.patch(f"/workflows/{workflow['id']}/stages/committee_review",
                         json={"completed_actions": ["committee_meeting"]})

        assert r.status_code == 200
        assert r.json()["current_stage"]["id"] == "initial_review"
        assert r.json()["current_stage"]["completed_actions"] == []

    def test_stage_update_missing_workflow(self, client):
        r = client.patch("/workflows/missing/stages/initial_review", json={"completed_actions": []})
        assert r.status_code == 404

    def test_rejection(self, client, workflow):
        r = client.post(f"/workflows/{workflow['id']}/approvals", json={
            "role": "risk_manager", "decision": "rejected", "comments": "Valuation too high"
        })

        assert r.status_code == 200
        assert r.json()["status"] == "rejected"

    def test_approval_for_role_without_level(self, client, workflow):
        r = client.post(f"/workflows/{workflow['id']}/approvals", json={
            "role": "legal_counsel", "decision": "approved"
        })

        assert r.status_code == 400
        assert "legal_counsel" in r.json()["detail"]

    def test_invalid_decision(self, client, workflow):
        r = client.post(f"/workflows/{workflow['id']}/approvals", json={
            "role": "risk_manager", "decision": "maybe"
        })
        assert r.status_code == 422


class TestTimelineEndpoints:
    """Test escalations, milestones and insights"""

    def test_escalate(self, client, workflow):
        r = client.post(f"/workflows/{workflow['id']}/escalations", json={
            "reason": "Deadline at risk", "escalated_to": "managing_partner"
        })

        assert r.status_code == 201
        assert r.json()["escalated_to"] == "managing_partner"

        stored = client.get(f"/workflows/{workflow['id']}").json()
        assert stored["timeline"]["escalations"][0]["reason"] == "Deadline at risk"

    def test_update_milestone(self, client, workflow):
        r = client.patch(f"/workflows/{workflow['id']}/milestones/due_diligence_complete",
                         json={"status": "completed"})

        assert r.status_code == 200
        assert r.json()["status"] == "completed"
        assert r.json()["completed_date"] is not None

    def test_update_unknown_milestone(self, client, workflow):
        r = client.patch(f"/workflows/{workflow['id']}/milestones/nope", json={"status": "completed"})
        assert r.status_code == 400

    def test_insights(self, client, workflow):
        r = client.get(f"/workflows/{workflow['id']}/insights")

        assert r.status_code == 200
        body = r.json()
        assert body["bottlenecks"][0] == "Pending approval from portfolio_manager"
        assert body["recommendations"] == [
            "Consider expedited review process",
            "Engage additional risk review"
        ]
        assert body["predictions"]["confidence"] == 0.75
        assert body["risk_factors"][0] == {
            "type": "timeline",
            "level": "medium",
            "description": "Potential for timeline extension due to complexity",
            "impact": 0.3
        }
        assert body["efficiency"] == 0.85

    def test_insights_missing_workflow(self, client):
        r = client.get("/workflows/missing/insights")
        assert r.status_code == 404

    def test_user_workflows(self, client, workflow):
        client.post("/workflows", json=workflow_payload(decision_type="strategic"))

        r = client.get("/users/user_5/workflows", params={"role": "risk_manager"})

        assert r.status_code == 200
        assert [w["id"] for w in r.json()["workflows"]] == [workflow["id"]]
