from .graph_repair_service import GraphRepairService
from .subscription_graph_service import SubscriptionGraphService

__all__ = ["GraphRepairService", "SubscriptionGraphService"]
