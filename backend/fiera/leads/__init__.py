"""
Leads Module

Quote requests frozen at submission time, and their follow-up status
"""

from fiera.leads.lifecycle import LeadLifecycle
from fiera.leads.models import (
    CustomerInfo,
    GdprConsent,
    Lead,
    LeadStatus,
    SelectedItemSnapshot,
    build_lead,
    remove_none_deep,
)
from fiera.leads.repository import LeadRepository, get_lead_repo, set_lead_repo

__all__ = [
    "CustomerInfo",
    "GdprConsent",
    "Lead",
    "LeadLifecycle",
    "LeadRepository",
    "LeadStatus",
    "SelectedItemSnapshot",
    "build_lead",
    "get_lead_repo",
    "remove_none_deep",
    "set_lead_repo",
]
