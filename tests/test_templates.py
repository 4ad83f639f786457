"""
Tests for the template registry and stakeholder resolver
"""

import pytest

from decision_workflow.models import (
    DecisionType, Priority, StakeholderRole, InfluenceLevel
)
from decision_workflow.stakeholders import StakeholderResolver
from decision_workflow.templates import TemplateRegistry


@pytest.fixture
def registry():
    return TemplateRegistry()


class TestTemplateRegistry:
    """Test template lookup and stage ordering"""

    def test_supported_types(self, registry):
        assert set(registry.supported_types()) == {DecisionType.INVESTMENT, DecisionType.STRATEGIC}

    def test_investment_template(self, registry):
        template = registry.get_template(DecisionType.INVESTMENT)

        assert [s.id for s in template.stages] == ["initial_review", "detailed_analysis", "committee_review"]
        assert [s.estimated_duration for s in template.stages] == ["3 days", "7 days", "5 days"]
        assert [a.role for a in template.approval_levels] == [
            StakeholderRole.PORTFOLIO_MANAGER,
            StakeholderRole.RISK_MANAGER,
            StakeholderRole.INVESTMENT_COMMITTEE,
            StakeholderRole.MANAGING_PARTNER,
        ]
        assert all(a.required for a in template.approval_levels)

    def test_strategic_template(self, registry):
        template = registry.get_template("strategic")

        assert [s.id for s in template.stages] == ["strategic_assessment", "stakeholder_consultation", "executive_review"]
        assert [a.role for a in template.approval_levels] == [
            StakeholderRole.OPERATIONS_MANAGER,
            StakeholderRole.MANAGING_PARTNER,
        ]
        assert [(m.id, m.offset_days) for m in template.milestones] == [
            ("assessment_complete", 5),
            ("executive_decision", 15),
        ]

    @pytest.mark.parametrize("decision_type", [
        DecisionType.DIVESTMENT, DecisionType.OPERATIONAL, DecisionType.REGULATORY,
        DecisionType.PARTNERSHIP, DecisionType.RESOURCE_ALLOCATION, DecisionType.RISK_MANAGEMENT,
        "not_a_type",
    ])
    def test_missing_template(self, registry, decision_type):
        assert registry.get_template(decision_type) is None

    def test_stage_ids_unique(self, registry):
        for decision_type in registry.supported_types():
            ids = [s.id for s in registry.get_template(decision_type).stages]
            assert len(ids) == len(set(ids))

    def test_get_next_stage(self, registry):
        template = registry.get_template(DecisionType.INVESTMENT)

        assert registry.get_next_stage(template, "initial_review").id == "detailed_analysis"
        assert registry.get_next_stage(template, "detailed_analysis").id == "committee_review"
        assert registry.get_next_stage(template, "committee_review") is None
        assert registry.get_next_stage(template, "unknown") is None

    def test_templates_are_frozen(self, registry):
        template = registry.get_template(DecisionType.INVESTMENT)

        with pytest.raises(AttributeError):
            template.stages = ()

    def test_returned_templates_are_private_copies(self, registry):
        first = registry.get_template(DecisionType.INVESTMENT)
        first.stages[0].completed_actions.append("leak")
        first.approval_levels[0].completed = True
        registry.get_next_stage(first, "initial_review").required_actions.append("leak")

        second = registry.get_template(DecisionType.INVESTMENT)
        assert second.stages[0].completed_actions == []
        assert second.approval_levels[0].completed is False
        assert registry.get_next_stage(second, "initial_review").required_actions == [
            "financial_modeling", "market_analysis"
        ]

    def test_registries_do_not_share_state(self):
        first = TemplateRegistry().get_template(DecisionType.INVESTMENT)
        first.stages[0].completed_actions.append("leak")

        second = TemplateRegistry().get_template(DecisionType.INVESTMENT)
        assert second.stages[0].completed_actions == []


class TestStakeholderResolver:
    """Test stakeholder rule table"""

    def test_investment_stakeholders(self):
        stakeholders = StakeholderResolver().identify_stakeholders(DecisionType.INVESTMENT, Priority.HIGH)

        assert [(s.id, s.role) for s in stakeholders] == [
            ("1", StakeholderRole.PORTFOLIO_MANAGER),
            ("2", StakeholderRole.RISK_MANAGER),
            ("3", StakeholderRole.INVESTMENT_COMMITTEE),
        ]
        assert stakeholders[2].influence == InfluenceLevel.CRITICAL
        assert all(s.notification for s in stakeholders)

    def test_strategic_stakeholders(self):
        stakeholders = StakeholderResolver().identify_stakeholders("strategic", Priority.LOW)

        assert [s.name for s in stakeholders] == ["Managing Partner", "Operations Manager"]
        assert [s.department for s in stakeholders] == ["Executive", "Operations"]

    def test_priority_does_not_change_result(self):
        resolver = StakeholderResolver()

        results = [resolver.identify_stakeholders(DecisionType.INVESTMENT, p) for p in Priority]

        assert all(r == results[0] for r in results)

    def test_unknown_type_has_no_stakeholders(self):
        resolver = StakeholderResolver()

        assert resolver.identify_stakeholders(DecisionType.REGULATORY, Priority.HIGH) == []
        assert resolver.identify_stakeholders("unknown", Priority.HIGH) == []

    def test_results_are_fresh_objects(self):
        resolver = StakeholderResolver()

        first = resolver.identify_stakeholders(DecisionType.INVESTMENT, Priority.HIGH)
        first[0].notification = False

        second = resolver.identify_stakeholders(DecisionType.INVESTMENT, Priority.HIGH)
        assert second[0].notification is True
