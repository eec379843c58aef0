"""
Reachability pruner.

Deletes named components that no retained operation can reach. One pass
collects references and then deletes everything outside the closure;
passes repeat until one deletes nothing, since a deletion can orphan
components that only the deleted one referenced.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from ..analyzer.reference_resolver import parse_reference
from ..document.model import COMPONENT_BUCKETS, Document
from ..document.parser import escape_pointer_segment
from .collector import ReferenceCollector, ReferenceEdge


@dataclass
class PruneReport:
    """Outcome of pruning.

    Attributes:
        passes: Number of components deleted by each pass, the last one is 0
        removed: Bucket name -> deleted component names, in deletion order
    """

    passes: list[int] = field(default_factory=list)
    removed: dict[str, list[str]] = field(default_factory=dict)

    @property
    def total_removed(self) -> int:
        return sum(self.passes)

    def to_dict(self) -> dict:
        return {
            "passes": list(self.passes),
            "total_removed": self.total_removed,
            "removed": {bucket: list(names) for bucket, names in self.removed.items()},
        }


class ReachabilityPruner:
    """Removes unreachable components from a document, in place."""

    def __init__(self, document: Document, workers: int = 1):
        """
        Initialize the pruner.

        Args:
            document: Filtered document to prune
            workers: Threads used for per-operation collection (1 = serial)
        """
        self.document = document
        self.workers = max(1, workers)
        self.collector = ReferenceCollector(document)

    def collect(self) -> list[ReferenceEdge]:
        """
        Collect the reference closure of the retained operations.

        Returns:
            Sorted, duplicate-free reference edges

        Raises:
            MalformedReferenceError: if a reference cannot be parsed
        """
        operations = self.document.operations()
        if self.workers > 1 and len(operations) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                per_operation = list(pool.map(self.collector.collect_operation, operations))
        else:
            per_operation = [self.collector.collect_operation(op) for op in operations]

        edges: set[ReferenceEdge] = set()
        for operation_edges in per_operation:
            edges.update(operation_edges)
        edges.update(self.collector.collect_components())

        # Expand reachable schema components transitively
        expanded: set[str] = set()
        pending = sorted({edge.target for edge in edges})
        while pending:
            target = pending.pop()
            if target in expanded:
                continue
            expanded.add(target)
            pointer = parse_reference(target)
            if pointer.bucket != "schemas":
                continue
            for edge in self.collector.collect_schema_component(pointer.component):
                edges.add(edge)
                if edge.target not in expanded:
                    pending.append(edge.target)
        return sorted(edges)

    def prune_pass(self, report: PruneReport) -> int:
        """Run one collection + deletion pass and return how many components were deleted."""
        reachable = {edge.target for edge in self.collect()}
        deleted = 0
        components = self.document.components
        for bucket_name in COMPONENT_BUCKETS:
            bucket = components.bucket(bucket_name)
            for name in bucket:
                if f"#/components/{bucket_name}/{escape_pointer_segment(name)}" in reachable:
                    continue
                bucket.delete(name)
                report.removed.setdefault(bucket_name, []).append(name)
                deleted += 1
        return deleted

    def prune(self) -> PruneReport:
        """
        Prune to a fixed point.

        Returns:
            PruneReport with per-pass deletion counts

        Raises:
            MalformedReferenceError: if a reference cannot be parsed
        """
        report = PruneReport()
        while True:
            deleted = self.prune_pass(report)
            report.passes.append(deleted)
            if deleted == 0:
                return report
