from deed_resolver.portals.base import PortalAdapter, PortalConfig, WorkflowState

__all__ = ["PortalAdapter", "PortalConfig", "WorkflowState"]
