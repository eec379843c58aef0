from .collector import ReferenceCollector, ReferenceEdge
from .pruner import PruneReport, ReachabilityPruner

__all__ = ["PruneReport", "ReachabilityPruner", "ReferenceCollector", "ReferenceEdge"]
