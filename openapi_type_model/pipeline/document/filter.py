"""
Operation filtering by tag, operation id and path prefix.

Runs before pruning. Only operations and path items are removed here;
components left without users are removed later by the pruner.
"""

from __future__ import annotations

from ..config import FilterConfig
from .model import Document, Operation


class DocumentFilter:
    """Removes operations that do not match a FilterConfig."""

    def __init__(self, config: FilterConfig):
        self.config = config

    def keeps(self, operation: Operation) -> bool:
        config = self.config
        tags = set(operation.tags)
        if config.include_tags and not tags.intersection(config.include_tags):
            return False
        if config.exclude_tags and tags.intersection(config.exclude_tags):
            return False
        if config.include_operation_ids and operation.operation_id not in config.include_operation_ids:
            return False
        if operation.operation_id in config.exclude_operation_ids:
            return False
        if config.include_paths and not any(operation.path.startswith(p) for p in config.include_paths):
            return False
        if any(operation.path.startswith(p) for p in config.exclude_paths):
            return False
        return True

    def apply(self, document: Document) -> list[Operation]:
        """
        Remove non-matching operations from the document in place.

        Returns:
            The removed operations, in document order
        """
        removed = []
        for path in list(document.paths):
            path_item = document.paths[path]
            for method in list(path_item.operations):
                operation = path_item.operations[method]
                if not self.keeps(operation):
                    removed.append(operation)
                    del path_item.operations[method]
            if not path_item.operations:
                del document.paths[path]
        return removed
