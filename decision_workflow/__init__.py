"""
Decision Workflow Engine

Template-driven approval workflows for private-equity business decisions:
stage progression, multi-role approval gating, audit trail and workflow insights.
"""

__version__ = "1.0.0"
