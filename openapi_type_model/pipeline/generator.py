"""
Pipeline orchestrator.

Runs filter, prune, resolve/name and synthesis on one document and
returns the finished TypeModel. Errors from any phase propagate
unchanged; nothing is returned for a failed run.
"""

from __future__ import annotations

import logging
from typing import Any

from ..validator import ValidationSynthesizer
from .analyzer.analyzer import SchemaAnalyzer
from .analyzer.ir_nodes import TypeModel
from .analyzer.name_resolver import TypeNameRegistry
from .config import GeneratorConfig
from .context import GenerationContext
from .document.filter import DocumentFilter
from .document.model import Document
from .document.parser import DocumentParser
from .pruner.pruner import PruneReport, ReachabilityPruner

logger = logging.getLogger(__name__)


class PipelineGenerator:
    """Builds a type model from an OpenAPI document."""

    def __init__(self, document: Document | dict[str, Any], config: GeneratorConfig | None = None):
        """
        Initialize the generator.

        Args:
            document: Parsed Document, or the decoded JSON/YAML object
            config: Generator configuration
        """
        if not isinstance(document, Document):
            document = DocumentParser().parse(document)
        self.config = config or GeneratorConfig()
        self.context = GenerationContext(document=document, config=self.config)
        self.registry = TypeNameRegistry(self.config.naming)

    @property
    def document(self) -> Document:
        return self.context.document

    def filter(self) -> None:
        if self.config.filter.is_empty():
            return
        removed = DocumentFilter(self.config.filter).apply(self.document)
        logger.debug("filter removed %d operations", len(removed))

    def prune(self) -> PruneReport | None:
        if self.config.skip_prune:
            logger.debug("pruning skipped")
            return None
        report = ReachabilityPruner(self.document, self.config.prune_workers).prune()
        logger.info(
            "pruned %d components in %d passes",
            report.total_removed,
            len(report.passes),
        )
        return report

    def generate(self) -> TypeModel:
        """
        Run the whole pipeline.

        Returns:
            TypeModel with names and validation plans

        Raises:
            TypeModelError: from whichever phase failed
        """
        self.filter()
        report = self.prune()

        logger.debug("resolving and naming %d component schemas", len(self.document.components.schemas))
        model = SchemaAnalyzer(self.context, self.registry).analyze()
        model.prune_report = report

        ValidationSynthesizer(model, self.context.composition).synthesize()
        logger.debug("built %d types", len(model))
        return model
