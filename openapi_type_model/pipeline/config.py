"""
Configuration for the type model pipeline.

All options can be loaded from a JSON file (see ``GeneratorConfig.from_dict``)
and overridden from the command line.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class FilterConfig:
    """Operation filtering applied before pruning.

    Attributes:
        include_tags: Keep only operations carrying at least one of these tags
        exclude_tags: Drop operations carrying any of these tags
        include_operation_ids: Keep only these operation ids
        exclude_operation_ids: Drop these operation ids
        include_paths: Keep only paths starting with one of these prefixes
        exclude_paths: Drop paths starting with one of these prefixes
    """

    include_tags: list[str] = field(default_factory=list)
    exclude_tags: list[str] = field(default_factory=list)
    include_operation_ids: list[str] = field(default_factory=list)
    exclude_operation_ids: list[str] = field(default_factory=list)
    include_paths: list[str] = field(default_factory=list)
    exclude_paths: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(
            (
                self.include_tags,
                self.exclude_tags,
                self.include_operation_ids,
                self.exclude_operation_ids,
                self.include_paths,
                self.exclude_paths,
            )
        )

    def to_dict(self) -> dict:
        return {
            "include_tags": list(self.include_tags),
            "exclude_tags": list(self.exclude_tags),
            "include_operation_ids": list(self.include_operation_ids),
            "exclude_operation_ids": list(self.exclude_operation_ids),
            "include_paths": list(self.include_paths),
            "exclude_paths": list(self.exclude_paths),
        }


@dataclass
class NamingConfig:
    """Options for type name normalization."""

    # Prefix used when a name cannot start an identifier (e.g. "400")
    safe_prefix: str = "N"

    # Upper-case well known initialisms (Id -> ID, Url -> URL)
    use_initialisms: bool = False

    # Extra initialisms on top of the built-in list
    additional_initialisms: list[str] = field(default_factory=list)

    # Schema extension overriding the generated name
    type_name_extension: str = "x-type-name"

    def to_dict(self) -> dict:
        return {
            "safe_prefix": self.safe_prefix,
            "use_initialisms": self.use_initialisms,
            "additional_initialisms": list(self.additional_initialisms),
            "type_name_extension": self.type_name_extension,
        }


@dataclass
class GeneratorConfig:
    """Configuration options for building a type model."""

    # Keep unreferenced components
    skip_prune: bool = False

    # Maximum length of an alias chain before giving up
    max_reference_depth: int = 32

    # Number of threads used for per-operation reference collection
    prune_workers: int = 1

    # Report allOf property name collisions instead of letting the last branch win
    strict_property_merge: bool = False

    filter: FilterConfig = field(default_factory=FilterConfig)

    naming: NamingConfig = field(default_factory=NamingConfig)

    @staticmethod
    def from_dict(d: dict) -> GeneratorConfig:
        """Create a config from a dictionary."""
        config = GeneratorConfig()
        for k, v in d.items():
            if k == "filter" and isinstance(v, dict):
                config.filter = FilterConfig(**v)
            elif k == "naming" and isinstance(v, dict):
                config.naming = NamingConfig(**v)
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "skip_prune": self.skip_prune,
            "max_reference_depth": self.max_reference_depth,
            "prune_workers": self.prune_workers,
            "strict_property_merge": self.strict_property_merge,
            "filter": self.filter.to_dict(),
            "naming": self.naming.to_dict(),
        }
