"""
Stakeholder Resolver

Maps a decision type to the stakeholders who are notified about, and can
act on, workflows of that type.
"""

from typing import Dict, List, Tuple, Union

from .models import DecisionType, Priority, Stakeholder, StakeholderRole, InfluenceLevel


# (id, name, role, department, influence) per decision type
_STAKEHOLDER_RULES: Dict[DecisionType, List[Tuple[str, str, StakeholderRole, str, InfluenceLevel]]] = {
    DecisionType.INVESTMENT: [
        ("1", "Portfolio Manager", StakeholderRole.PORTFOLIO_MANAGER, "Investments", InfluenceLevel.HIGH),
        ("2", "Risk Manager", StakeholderRole.RISK_MANAGER, "Risk", InfluenceLevel.HIGH),
        ("3", "Investment Committee", StakeholderRole.INVESTMENT_COMMITTEE, "Executive", InfluenceLevel.CRITICAL),
    ],
    DecisionType.STRATEGIC: [
        ("1", "Managing Partner", StakeholderRole.MANAGING_PARTNER, "Executive", InfluenceLevel.CRITICAL),
        ("2", "Operations Manager", StakeholderRole.OPERATIONS_MANAGER, "Operations", InfluenceLevel.HIGH),
    ],
}


class StakeholderResolver:
    """Static rule table from decision type to stakeholders"""

    def identify_stakeholders(self, decision_type: Union[DecisionType, str],
                              priority: Priority) -> List[Stakeholder]:
        """
        Resolve stakeholders for a decision.

        ``priority`` is part of the contract but does not change the result yet.
        Unknown decision types resolve to an empty list.
        """
        if not isinstance(decision_type, DecisionType):
            try:
                decision_type = DecisionType(decision_type)
            except ValueError:
                return []

        return [
            Stakeholder(
                id=stakeholder_id,
                name=name,
                role=role,
                department=department,
                influence=influence,
                notification=True
            )
            for stakeholder_id, name, role, department, influence
            in _STAKEHOLDER_RULES.get(decision_type, [])
        ]
