"""
Generation context threaded through every phase.

There is no module-level state: each phase receives the context of the
run it belongs to, so independent runs can proceed side by side.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .analyzer.composition import CompositionResolver
from .analyzer.reference_resolver import ReferenceResolver
from .config import GeneratorConfig
from .document.model import Document


@dataclass
class GenerationContext:
    """State of one generation run."""

    document: Document
    config: GeneratorConfig = field(default_factory=GeneratorConfig)
    references: ReferenceResolver = field(init=False)
    composition: CompositionResolver = field(init=False)

    def __post_init__(self):
        self.references = ReferenceResolver(self.document, self.config.max_reference_depth)
        self.composition = CompositionResolver(self.references, self.config.strict_property_merge)
