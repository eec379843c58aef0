"""
Composition resolver.

Phase 2 of the pipeline: flatten and merge ``allOf`` chains and classify
``oneOf``/``anyOf`` groups into union descriptors. The input document is
never modified; every resolved node is a new node. Results are memoized
by the identity of the source node, so cyclic graphs terminate and shared
fragments resolve to one shared node.
"""

from __future__ import annotations

from dataclasses import fields

from ..document.nodes import (
    SCALAR_TYPES,
    Constraints,
    Discriminator,
    SchemaNode,
    ShapeKind,
    UnionDescriptor,
    UnionMode,
    UnionStrategy,
)
from ..errors import (
    ConflictingAdditionalPropertiesError,
    ConflictingDefaultsError,
    ConflictingDiscriminatorError,
    ConflictingFlagError,
    ConflictingPropertyError,
    DiscriminatorMappingError,
    IncompatibleTypesError,
    UnresolvableReferenceError,
)
from .reference_resolver import ReferenceResolver, canonical_reference, parse_reference

# Flags that must agree bit-for-bit across allOf branches
_NODE_FLAGS = ("nullable", "read_only", "write_only")
_CONSTRAINT_FLAGS = ("unique_items", "exclusive_minimum", "exclusive_maximum")

# Constraint fields merged by keeping the tightest bound
_LOWER_BOUNDS = ("min_length", "minimum", "min_items", "min_properties")
_UPPER_BOUNDS = ("max_length", "maximum", "max_items", "max_properties")


def _flag_label(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(word.capitalize() for word in rest)


def _shape_type(node: SchemaNode) -> str | None:
    """Declared type, else the type implied by properties or items."""
    if node.type_name:
        return node.type_name
    if node.properties:
        return "object"
    if node.items is not None:
        return "array"
    return None


class CompositionResolver:
    """Resolves allOf/oneOf/anyOf into plain nodes and union descriptors."""

    def __init__(self, references: ReferenceResolver, strict_property_merge: bool = False):
        """
        Initialize the resolver.

        Args:
            references: Resolver used to follow $ref
            strict_property_merge: Raise on allOf property name collisions
        """
        self.references = references
        self.strict_property_merge = strict_property_merge
        # id(source) -> (source, resolved); the source is kept alive so ids stay unique
        self._memo: dict[int, tuple[SchemaNode, SchemaNode]] = {}
        self._merging: set[int] = set()

    def resolved(self, node: SchemaNode) -> SchemaNode | None:
        """Return the already resolved counterpart of a source node, if any."""
        entry = self._memo.get(id(node))
        return entry[1] if entry is not None else None

    def resolve(self, node: SchemaNode) -> SchemaNode:
        """
        Resolve a schema node.

        Args:
            node: Source node from the document

        Returns:
            New node without allOf, with oneOf/anyOf turned into a UnionDescriptor

        Raises:
            StructuralConflictError: if an allOf merge or a union is inconsistent
            UnresolvableReferenceError: if a reference target is missing
        """
        entry = self._memo.get(id(node))
        if entry is not None:
            return entry[1]

        if node.is_reference:
            self.references.resolve_schema(node.ref, node.source_path)
            result = node.clone(ref=canonical_reference(node.ref, node.source_path))
            self._memo[id(node)] = (node, result)
            return result

        result = node.clone()
        self._memo[id(node)] = (node, result)

        if node.all_of:
            merged = self._merge_composed(node)
            if merged.is_reference:
                self._assign(result, merged)
                return result
            self._resolve_into(merged, result)
        else:
            self._resolve_into(node, result)
        return result

    def resolve_target(self, ref: str, source_path: str = "") -> SchemaNode:
        """Resolve the schema at the end of an alias chain."""
        target, _ = self.references.resolve_schema(ref, source_path)
        return self.resolve(target)

    def _resolve_into(self, source: SchemaNode, result: SchemaNode) -> None:
        """Fill ``result`` with the resolved children of an allOf-free source node."""
        self._assign(result, source.clone())
        result.all_of = []
        result.properties = {name: self.resolve(prop) for name, prop in source.properties.items()}
        result.items = self.resolve(source.items) if source.items is not None else None
        if isinstance(source.additional_properties, SchemaNode):
            result.additional_properties = self.resolve(source.additional_properties)
        result.not_ = self.resolve(source.not_) if source.not_ is not None else None

        branches, mode = (source.one_of, UnionMode.ONE_OF) if source.one_of else (source.any_of, UnionMode.ANY_OF)
        result.one_of = []
        result.any_of = []
        result.union = None
        # A scalar type next to a union wins over the union
        if branches and source.type_name not in SCALAR_TYPES:
            result.union = self.classify_union(branches, mode, source.discriminator, source.source_path)

    def _assign(self, target: SchemaNode, source: SchemaNode) -> None:
        for f in fields(SchemaNode):
            setattr(target, f.name, getattr(source, f.name))

    # allOf

    def _merge_composed(self, node: SchemaNode) -> SchemaNode:
        """Merge the allOf of ``node`` with its sibling keywords as a trailing branch."""
        branches = list(node.all_of)
        # nullable next to allOf marks the composed node, it is not a branch constraint
        siblings = node.clone(all_of=[], nullable=False)
        if not siblings.is_metadata_only():
            branches.append(siblings)
        merged = self.merge_all_of(branches, node.source_path, owner=node)
        if node.nullable:
            merged.nullable = True
        if not merged.is_reference:
            merged.metadata = {**merged.metadata, **node.metadata}
            merged.title = node.title or merged.title
            merged.description = node.description or merged.description
        merged.source_path = node.source_path
        return merged

    def merge_all_of(self, branches: list[SchemaNode], source_path: str = "", owner: SchemaNode | None = None) -> SchemaNode:
        """
        Merge allOf branches into one unresolved node.

        Nested allOf branches and referenced components are flattened first,
        so nested composition is transparent. Metadata-only branches are
        ignored. A single referenced branch with only metadata around it
        stays a reference.

        Args:
            branches: The allOf branches
            source_path: Location of the allOf, for error messages
            owner: Node that carries the allOf, guarded against re-entry

        Returns:
            Merged node with no allOf (children are not resolved yet)

        Raises:
            StructuralConflictError: on incompatible branches
        """
        significant = [b for b in branches if not b.is_metadata_only()]
        if len(significant) == 1 and significant[0].is_reference:
            ref = significant[0]
            self.references.resolve_schema(ref.ref, ref.source_path)
            return ref.clone(ref=canonical_reference(ref.ref, ref.source_path))

        if owner is not None:
            self._merging.add(id(owner))
        try:
            flattened: list[SchemaNode] = []
            for branch in significant:
                self._flatten(branch, flattened)
        finally:
            if owner is not None:
                self._merging.discard(id(owner))

        flattened = [b for b in flattened if not b.is_metadata_only()]
        if not flattened:
            return SchemaNode(source_path=source_path)
        merged = flattened[0].clone()
        for branch in flattened[1:]:
            merged = self._merge_pair(merged, branch, source_path)
        return merged

    def _flatten(self, branch: SchemaNode, out: list[SchemaNode]) -> None:
        if branch.is_reference:
            target, _ = self.references.resolve_schema(branch.ref, branch.source_path)
            self._flatten(target, out)
            return
        if id(branch) in self._merging:
            raise UnresolvableReferenceError("circular allOf composition", branch.source_path)
        self._merging.add(id(branch))
        try:
            if branch.all_of:
                pieces: list[SchemaNode] = []
                for nested in branch.all_of:
                    self._flatten(nested, pieces)
                # nullable next to allOf marks the composed node, as in _merge_composed
                siblings = branch.clone(all_of=[], nullable=False)
                if not siblings.is_metadata_only():
                    self._flatten(siblings, pieces)
                if branch.nullable:
                    if len({piece.nullable for piece in pieces}) > 1:
                        raise ConflictingFlagError("nullable", branch.source_path)
                    pieces = [piece if piece.nullable else piece.clone(nullable=True) for piece in pieces]
                out.extend(pieces)
                return
            single = branch.one_of if len(branch.one_of) == 1 else branch.any_of if len(branch.any_of) == 1 else []
            if single and branch.clone(one_of=[], any_of=[]).is_metadata_only():
                self._flatten(single[0], out)
                return
            out.append(branch)
        finally:
            self._merging.discard(id(branch))

    def _merge_pair(self, a: SchemaNode, b: SchemaNode, source_path: str) -> SchemaNode:
        a_type, b_type = _shape_type(a), _shape_type(b)
        if a_type and b_type and a_type != b_type:
            raise IncompatibleTypesError(f"cannot merge type '{a_type}' with '{b_type}'", source_path)
        if a.format and b.format and a.format != b.format:
            raise IncompatibleTypesError(f"cannot merge format '{a.format}' with '{b.format}'", source_path)
        for flag in _NODE_FLAGS:
            if getattr(a, flag) != getattr(b, flag):
                raise ConflictingFlagError(_flag_label(flag), source_path)
        for flag in _CONSTRAINT_FLAGS:
            if getattr(a.constraints, flag) != getattr(b.constraints, flag):
                raise ConflictingFlagError(_flag_label(flag), source_path)
        if a.has_default and b.has_default and a.default != b.default:
            raise ConflictingDefaultsError(f"defaults {a.default!r} and {b.default!r} differ", source_path)

        merged = a.clone()
        merged.type_name = a.type_name or b.type_name
        merged.format = a.format or b.format
        if b.has_default:
            merged.default = b.default
            merged.has_default = True

        if b.enum is not None:
            values = list(a.enum or [])
            merged.enum = values + [v for v in b.enum if v not in values]

        merged.required = a.required + [name for name in b.required if name not in a.required]
        for name, prop in b.properties.items():
            if name in merged.properties and self.strict_property_merge and merged.properties[name] is not prop:
                raise ConflictingPropertyError(f"property '{name}' is defined by more than one allOf branch", source_path)
            merged.properties[name] = prop

        if a.items is not None and b.items is not None and a.items is not b.items:
            merged.items = SchemaNode(source_path=a.items.source_path, all_of=[a.items, b.items])
        else:
            merged.items = a.items or b.items

        merged.additional_properties = self._merge_additional(a.additional_properties, b.additional_properties, source_path)
        merged.discriminator = self._merge_discriminator(a.discriminator, b.discriminator, source_path)
        merged.one_of = a.one_of + b.one_of
        merged.any_of = a.any_of + b.any_of
        merged.not_ = b.not_ or a.not_
        merged.constraints = self._merge_constraints(a.constraints, b.constraints)
        merged.metadata = {**a.metadata, **b.metadata}
        merged.title = a.title or b.title
        merged.description = a.description or b.description
        merged.examples = a.examples + b.examples
        return merged

    def _merge_additional(self, a, b, source_path: str):
        if a is False or b is False:
            return False
        if isinstance(a, SchemaNode) and isinstance(b, SchemaNode):
            if a is b or a.to_dict() == b.to_dict():
                return a
            raise ConflictingAdditionalPropertiesError("allOf branches declare different additionalProperties schemas", source_path)
        if isinstance(a, SchemaNode):
            return a
        if isinstance(b, SchemaNode):
            return b
        if a is True or b is True:
            return True
        return None

    def _merge_discriminator(self, a: Discriminator | None, b: Discriminator | None, source_path: str) -> Discriminator | None:
        if a is None or b is None:
            return a or b
        if a.property_name != b.property_name:
            raise ConflictingDiscriminatorError(
                f"discriminators '{a.property_name}' and '{b.property_name}' differ",
                source_path,
            )
        return Discriminator(property_name=a.property_name, mapping={**a.mapping, **b.mapping})

    def _merge_constraints(self, a: Constraints, b: Constraints) -> Constraints:
        merged = Constraints(
            pattern=a.pattern or b.pattern,
            multiple_of=a.multiple_of if a.multiple_of is not None else b.multiple_of,
            unique_items=a.unique_items,
            exclusive_minimum=a.exclusive_minimum,
            exclusive_maximum=a.exclusive_maximum,
        )
        for name in _LOWER_BOUNDS:
            values = [v for v in (getattr(a, name), getattr(b, name)) if v is not None]
            setattr(merged, name, max(values) if values else None)
        for name in _UPPER_BOUNDS:
            values = [v for v in (getattr(a, name), getattr(b, name)) if v is not None]
            setattr(merged, name, min(values) if values else None)
        return merged

    # oneOf / anyOf

    def classify_union(
        self,
        branches: list[SchemaNode],
        mode: UnionMode = UnionMode.ONE_OF,
        discriminator: Discriminator | None = None,
        source_path: str = "",
    ) -> UnionDescriptor:
        """
        Classify a oneOf/anyOf group.

        Args:
            branches: Source branches in declaration order
            mode: oneOf or anyOf
            discriminator: Discriminator declared next to the group, if any
            source_path: Location of the group, for error messages

        Returns:
            UnionDescriptor with resolved branches

        Raises:
            ConflictingDiscriminatorError: if an inline branch carries a discriminator
            DiscriminatorMappingError: if a discriminated branch has no value
        """
        nullable = False
        kept: list[SchemaNode] = []
        seen_refs: set[str] = set()
        for branch in branches:
            if not branch.is_reference and branch.discriminator is not None:
                raise ConflictingDiscriminatorError("discriminator is only allowed on allOf or next to oneOf/anyOf", branch.source_path)
            if branch.type_name == "null":
                nullable = True
                continue
            if branch.is_reference:
                canonical = canonical_reference(branch.ref, branch.source_path)
                if canonical in seen_refs:
                    continue
                seen_refs.add(canonical)
            kept.append(branch)

        resolved = [self.resolve(branch) for branch in kept]
        descriptor = UnionDescriptor(mode=mode, strategy=UnionStrategy.TAGGED, branches=resolved, nullable=nullable)
        if len(resolved) <= 1:
            descriptor.strategy = UnionStrategy.WRAPPER
        elif discriminator is not None and discriminator.property_name:
            descriptor.strategy = UnionStrategy.DISCRIMINATED
            descriptor.discriminator = discriminator.property_name
            descriptor.mapping = self._discriminator_mapping(resolved, discriminator, source_path)
        elif len(resolved) == 2 and self._distinguishable(resolved[0], resolved[1]):
            descriptor.strategy = UnionStrategy.EITHER
        return descriptor

    def _shape(self, node: SchemaNode) -> tuple[ShapeKind, str | None]:
        if node.is_reference:
            node = self.resolve_target(node.ref, node.source_path)
        kind = node.kind
        if kind == ShapeKind.MAP:
            kind = ShapeKind.OBJECT
        return kind, node.type_name if kind == ShapeKind.SCALAR else None

    def _distinguishable(self, a: SchemaNode, b: SchemaNode) -> bool:
        shape_a, shape_b = self._shape(a), self._shape(b)
        if ShapeKind.ANY in (shape_a[0], shape_b[0]) or ShapeKind.UNION in (shape_a[0], shape_b[0]):
            return False
        return shape_a != shape_b

    def _discriminator_mapping(self, branches: list[SchemaNode], discriminator: Discriminator, source_path: str) -> dict[str, int]:
        by_ref = {branch.ref: i for i, branch in enumerate(branches) if branch.is_reference}
        explicit: dict[int, list[str]] = {}
        for value, target in discriminator.mapping.items():
            if not target.startswith("#"):
                target = f"#/components/schemas/{target}"
            canonical = canonical_reference(target, source_path)
            if canonical not in by_ref:
                raise DiscriminatorMappingError(f"mapping '{value}' points to '{target}', which is not a branch", source_path)
            explicit.setdefault(by_ref[canonical], []).append(str(value))

        mapping: dict[str, int] = {}
        for index, branch in enumerate(branches):
            values = explicit.get(index) or [self._implicit_value(branch, discriminator.property_name, source_path)]
            for value in values:
                if value in mapping:
                    raise DiscriminatorMappingError(f"discriminator value '{value}' selects more than one branch", source_path)
                mapping[value] = index
        return mapping

    def _implicit_value(self, branch: SchemaNode, property_name: str, source_path: str) -> str:
        target = self.resolve_target(branch.ref, branch.source_path) if branch.is_reference else branch
        prop = target.properties.get(property_name)
        if prop is not None and prop.is_reference:
            prop = self.resolve_target(prop.ref, prop.source_path)
        if prop is not None and prop.enum is not None and len(prop.enum) == 1:
            return str(prop.enum[0])
        if branch.is_reference:
            return parse_reference(branch.ref, branch.source_path).segments[-1]
        raise DiscriminatorMappingError(f"inline branch has no value for discriminator '{property_name}'", branch.source_path or source_path)
