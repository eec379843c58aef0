"""
Type name registry.

Normalizes document names into identifiers and binds one unique name
to each resolved node. Collisions get an incrementing numeric suffix per
base name (``Item``, ``Item0``, ``Item1``...). Assignments are never
retracted or reassigned within a run.
"""

from __future__ import annotations

from ...utils import INITIALISMS, schema_name_to_type_name, to_camel_case
from ..config import NamingConfig
from ..document.nodes import SchemaNode
from ..errors import NamingCollisionUnresolvedError


class TypeNameRegistry:
    """Assigns unique, deterministic names to resolved nodes."""

    def __init__(self, config: NamingConfig | None = None):
        """
        Initialize the registry.

        Args:
            config: Naming options (safe prefix, initialisms)
        """
        self.config = config or NamingConfig()
        self._initialisms = INITIALISMS | {i.upper() for i in self.config.additional_initialisms}
        # name -> node (None while a component name is reserved but not bound yet)
        self._by_name: dict[str, SchemaNode | None] = {}
        # id(node) -> (node, name)
        self._by_node: dict[int, tuple[SchemaNode, str]] = {}
        # canonical reference -> name
        self._by_ref: dict[str, str] = {}
        # base name -> next suffix to try
        self._counters: dict[str, int] = {}

    def normalize(self, text: str) -> str:
        """Turn a document name into a type name; same input, same output."""
        return schema_name_to_type_name(
            text,
            safe_prefix=self.config.safe_prefix,
            use_initialisms=self.config.use_initialisms,
            initialisms=self._initialisms,
        )

    def derive(self, parent: str, suffix: str) -> str:
        """Build a nested name such as ``PetOwner`` from ``Pet`` and ``owner``.

        The parent already carries any safe prefix, so the derived name does too.
        """
        return parent + to_camel_case(suffix)

    def override(self, node: SchemaNode) -> str | None:
        """Name forced by the type name extension, if any, normalized like any other name."""
        value = node.metadata.get(self.config.type_name_extension)
        return self.normalize(value) if isinstance(value, str) and value else None

    def _unique(self, base: str) -> str:
        if base not in self._by_name:
            return base
        counter = self._counters.get(base, 0)
        # at most len(self._by_name) suffixes can be taken
        for _ in range(len(self._by_name) + 1):
            candidate = f"{base}{counter}"
            counter += 1
            if candidate not in self._by_name:
                self._counters[base] = counter
                return candidate
        raise NamingCollisionUnresolvedError(f"no free name for base '{base}'")

    def reserve(self, ref: str, base: str) -> str:
        """
        Reserve a name for a canonical component reference.

        Args:
            ref: Canonical reference of the component
            base: Preferred name

        Returns:
            The name bound to ``ref``; an existing binding is reused
        """
        if ref in self._by_ref:
            return self._by_ref[ref]
        name = self._unique(base)
        self._by_name[name] = None
        self._by_ref[ref] = name
        return name

    def alias(self, ref: str, name: str) -> None:
        """Make another canonical reference denote an already named node."""
        self._by_ref.setdefault(ref, name)

    def bind(self, node: SchemaNode, name: str) -> str:
        """Attach a node to a reserved name. A node keeps its first name."""
        entry = self._by_node.get(id(node))
        if entry is not None:
            return entry[1]
        if self._by_name.get(name) is not None:
            raise NamingCollisionUnresolvedError(f"name '{name}' is already bound to another node", node.source_path)
        self._by_name[name] = node
        self._by_node[id(node)] = (node, name)
        return name

    def assign(self, node: SchemaNode, base: str) -> str:
        """
        Assign a unique name to a node.

        Args:
            node: Resolved node
            base: Preferred name

        Returns:
            The node's name; a node that already has one keeps it
        """
        entry = self._by_node.get(id(node))
        if entry is not None:
            return entry[1]
        name = self._unique(base)
        self._by_name[name] = node
        self._by_node[id(node)] = (node, name)
        return name

    def name_for_node(self, node: SchemaNode) -> str | None:
        entry = self._by_node.get(id(node))
        return entry[1] if entry is not None else None

    def name_for_ref(self, ref: str) -> str | None:
        return self._by_ref.get(ref)

    def node_for_name(self, name: str) -> SchemaNode | None:
        return self._by_name.get(name)

    def names(self) -> list[str]:
        """Assigned names in assignment order."""
        return list(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name
