"""
Governance engine - flags, duplicate clusters and audits.
"""

from dkn.engines.governance.governance_service import GovernanceService

__all__ = ["GovernanceService"]
