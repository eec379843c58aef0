"""
Validation plan synthesizer.

Derives one ValidationPlan per named type from its resolved shape and
constraints. Plans are chosen by precedence: delegate for pure aliases,
one whole-structure check for simple records, array and map plans, and
per-field checks for everything else. Synthesis never fails; a type
without constraints gets a trivial plan.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .pipeline.analyzer.ir_nodes import TypeDef, TypeModel
from .pipeline.document.nodes import SchemaNode, ShapeKind, UnionDescriptor
from .validation_plan import NilPolicy, PlanStrategy, ValidationPlan
from .validation_rules import (
    DelegateRule,
    EntriesRule,
    EnumRule,
    ItemsRule,
    MaximumRule,
    MaxItemsRule,
    MaxLengthRule,
    MaxPropertiesRule,
    MinimumRule,
    MinItemsRule,
    MinLengthRule,
    MinPropertiesRule,
    MultipleOfRule,
    NestedPlanRule,
    NestedRule,
    PatternRule,
    RequiredRule,
    StructureRule,
    TagCheckRule,
    UniqueItemsRule,
    ValidationRule,
    VariantRule,
    order_tags,
)

if TYPE_CHECKING:
    from .pipeline.analyzer.composition import CompositionResolver


class ValidationSynthesizer:
    """Generate validation plans for every type of a TypeModel"""

    def __init__(self, model: TypeModel, composition: CompositionResolver | None = None):
        """
        Initialize the synthesizer.

        Args:
            model: Named type model
            composition: Resolver used to look through references that name no type
        """
        self.model = model
        self.composition = composition

    def synthesize(self) -> TypeModel:
        """Compute capability flags, then attach a plan to every type."""
        self.compute_capabilities()
        for type_def in self.model.types:
            type_def.validation = self.synthesize_type(type_def)
        return self.model

    # Capabilities

    def compute_capabilities(self) -> None:
        """Set ``needs_validation`` on every type by iterating to a fixed point.

        Flags start False and only ever flip to True, so recursive types
        settle after at most one round per type.
        """
        for type_def in self.model.types:
            type_def.needs_validation = False
        changed = True
        while changed:
            changed = False
            for type_def in self.model.types:
                if not type_def.needs_validation and self._type_needs_validation(type_def):
                    type_def.needs_validation = True
                    changed = True

    def _type_needs_validation(self, type_def: TypeDef) -> bool:
        node = type_def.node
        if node.is_reference:
            return self._ref_needs(node.ref)
        return self._shape_needs(node)

    def _ref_needs(self, ref: str) -> bool:
        target = self.model.type_for_ref(ref)
        if target is not None:
            return target.needs_validation
        node = self._target(SchemaNode(ref=ref))
        return not node.is_reference and self._needs(node)

    def _needs(self, node: SchemaNode) -> bool:
        """Whether a value of this node needs any check."""
        if node.is_reference:
            return self._ref_needs(node.ref)
        named = self.model.type_for_node(node)
        if named is not None:
            return named.needs_validation
        return self._shape_needs(node)

    def _shape_needs(self, node: SchemaNode) -> bool:
        kind = node.kind
        c = node.constraints
        if kind == ShapeKind.SCALAR:
            return bool(self._constraint_rules(node, ""))
        if kind == ShapeKind.ARRAY:
            return c.min_items is not None or c.max_items is not None or c.unique_items or self._elements_need(node.items)
        if kind == ShapeKind.MAP:
            return c.min_properties is not None or c.max_properties is not None or self._elements_need(node.map_values)
        if kind in (ShapeKind.OBJECT, ShapeKind.UNION):
            for name, prop in node.properties.items():
                if self._needs_custom_check(prop):
                    return True
                if any(t != "omitempty" for t in self._field_tags(prop, name in node.required)):
                    return True
        if kind == ShapeKind.UNION and node.union is not None:
            return node.union.discriminator is not None or any(self._needs(branch) for branch in node.union.branches)
        return False

    def _elements_need(self, node: SchemaNode | None) -> bool:
        return node is not None and self._needs(node)

    def _needs_custom_check(self, prop: SchemaNode) -> bool:
        """A property needs its own check when its type validates itself.

        That is a reference or named type that needs validation, or an
        inline array or map whose elements need validation.
        """
        if prop.is_reference:
            return self._ref_needs(prop.ref)
        named = self.model.type_for_node(prop)
        if named is not None:
            return named.needs_validation
        if prop.kind == ShapeKind.ARRAY:
            return self._elements_need(prop.items)
        if prop.kind == ShapeKind.MAP:
            return self._elements_need(prop.map_values)
        return False

    def contains_unions(self, node: SchemaNode) -> bool:
        """Whether an inline descendant is a union; references are not followed."""
        stack = [node]
        visited: set[int] = set()
        while stack:
            current = stack.pop()
            if id(current) in visited or current.is_reference:
                continue
            visited.add(id(current))
            if current is not node and current.union is not None:
                return True
            stack.extend(current.properties.values())
            if current.items is not None:
                stack.append(current.items)
            if current.map_values is not None:
                stack.append(current.map_values)
        return False

    # Rules

    def _target(self, node: SchemaNode) -> SchemaNode:
        """The node a reference ends at, or the node itself."""
        if not node.is_reference:
            return node
        target = self.model.type_for_ref(node.ref)
        seen: set[str] = set()
        while target is not None and target.node.is_reference and target.name not in seen:
            seen.add(target.name)
            target = self.model.type_for_ref(target.node.ref)
        if target is not None:
            return target.node
        if self.composition is not None:
            return self.composition.resolve_target(node.ref, node.source_path)
        return node

    def _constraint_rules(self, node: SchemaNode, field_name: str, fail_fast: bool = False) -> list[ValidationRule]:
        """Tag-expressible checks from a node's own constraints."""
        c = node.constraints
        rules: list[ValidationRule] = []
        kind = node.kind
        if kind == ShapeKind.SCALAR:
            if node.type_name == "string":
                if c.min_length is not None:
                    rules.append(MinLengthRule(field_name, c.min_length, fail_fast))
                if c.max_length is not None:
                    rules.append(MaxLengthRule(field_name, c.max_length, fail_fast))
                if c.pattern is not None:
                    rules.append(PatternRule(field_name, c.pattern, fail_fast))
            if node.type_name in ("integer", "number"):
                if c.minimum is not None:
                    rules.append(MinimumRule(field_name, c.minimum, c.exclusive_minimum, fail_fast))
                if c.maximum is not None:
                    rules.append(MaximumRule(field_name, c.maximum, c.exclusive_maximum, fail_fast))
                if c.multiple_of is not None:
                    rules.append(MultipleOfRule(field_name, c.multiple_of, fail_fast))
            if node.enum:
                rules.append(EnumRule(field_name, node.enum, fail_fast))
        elif kind == ShapeKind.ARRAY:
            if c.min_items is not None:
                rules.append(MinItemsRule(field_name, c.min_items, fail_fast))
            if c.max_items is not None:
                rules.append(MaxItemsRule(field_name, c.max_items, fail_fast))
            if c.unique_items:
                rules.append(UniqueItemsRule(field_name, fail_fast))
        elif kind == ShapeKind.MAP:
            if c.min_properties is not None:
                rules.append(MinPropertiesRule(field_name, c.min_properties, fail_fast))
            if c.max_properties is not None:
                rules.append(MaxPropertiesRule(field_name, c.max_properties, fail_fast))
        return rules

    def _field_tags(self, prop: SchemaNode, required: bool) -> list[str]:
        """Struct tags of a record field.

        ``required`` is only emitted for non-boolean scalars that are not
        read-only or write-only; arrays and maps use their nil policy instead.
        """
        tags = []
        target = self._target(prop)
        if not required or prop.nullable:
            tags.append("omitempty")
        elif (
            target.kind == ShapeKind.SCALAR
            and target.type_name != "boolean"
            and not (prop.read_only or prop.write_only or target.read_only or target.write_only)
        ):
            tags.append("required")
        if not prop.is_reference:
            tags.extend(rule.tag() for rule in self._constraint_rules(prop, "") if rule.tag())
        return order_tags(tags)

    def _nil_policy(self, node: SchemaNode, required: bool) -> NilPolicy:
        if node.nullable or not required:
            return NilPolicy.ACCEPT
        return NilPolicy.UNGUARDED

    def _element(self, node: SchemaNode, name: str) -> tuple[str | None, ValidationPlan | None]:
        """Type name or inline plan used to validate an element."""
        if node.is_reference:
            target_name = self.model.name_for_ref(node.ref)
            if target_name is not None:
                return target_name, None
            node = self._target(node)
        named = self.model.type_for_node(node)
        if named is not None:
            return named.name, None
        return None, self.inline_plan(node, name, required=True)

    # Plans

    def synthesize_type(self, type_def: TypeDef) -> ValidationPlan:
        """
        Build the plan of one type.

        Args:
            type_def: Type with capability flags already computed

        Returns:
            ValidationPlan; TRIVIAL when nothing needs checking
        """
        node = type_def.node
        if node.is_reference:
            return self._delegate_plan(type_def)
        if node.kind == ShapeKind.OBJECT and self._is_optimizable_record(node):
            return self._structure_plan(type_def.name, node, type_def.required)
        if node.kind in (ShapeKind.ARRAY, ShapeKind.MAP):
            return self.inline_plan(node, type_def.name, type_def.required)
        return self._field_checks_plan(type_def.name, node, type_def.required)

    def _delegate_plan(self, type_def: TypeDef) -> ValidationPlan:
        node = type_def.node
        target_name = type_def.alias_of or self.model.name_for_ref(node.ref)
        target = self.model.lookup(target_name) if target_name is not None else None
        if target is None or not target.needs_validation:
            return ValidationPlan(type_def.name, PlanStrategy.TRIVIAL, nil_policy=self._nil_policy(node, type_def.required))
        dispatch_on = self.underlying_type(target.name)
        return ValidationPlan(
            type_def.name,
            PlanStrategy.DELEGATE,
            [DelegateRule(target.name, dispatch_on)],
            nil_policy=self._nil_policy(node, type_def.required),
            accumulate=False,
            dispatch_on=dispatch_on,
        )

    def underlying_type(self, name: str) -> str:
        """Follow an alias chain to the type that holds the representation."""
        current = self.model.lookup(name)
        seen: set[str] = set()
        while current is not None and current.alias_of is not None and current.name not in seen:
            seen.add(current.name)
            nxt = self.model.lookup(current.alias_of)
            if nxt is None:
                break
            current = nxt
        return current.name if current is not None else name

    def _is_optimizable_record(self, node: SchemaNode) -> bool:
        if not node.properties or self.contains_unions(node):
            return False
        return not any(self._needs_custom_check(prop) for prop in node.properties.values())

    def _structure_plan(self, name: str, node: SchemaNode, required: bool) -> ValidationPlan:
        fields = {}
        for prop_name, prop in node.properties.items():
            tags = self._field_tags(prop, prop_name in node.required)
            if any(t != "omitempty" for t in tags):
                fields[prop_name] = tags
        nil_policy = self._nil_policy(node, required)
        if not fields:
            return ValidationPlan(name, PlanStrategy.TRIVIAL, nil_policy=nil_policy)
        return ValidationPlan(name, PlanStrategy.WHOLE_STRUCTURE, [StructureRule(name, fields)], nil_policy=nil_policy)

    def inline_plan(self, node: SchemaNode, name: str, required: bool) -> ValidationPlan:
        """Plan for an array or map value, named or not.

        Nil is accepted when the value is nullable or optional. A required
        value with a positive minimum count rejects nil with a zero-count
        failure. Failures accumulate when both bounds are set or elements
        need validation; otherwise the first failure ends the procedure.
        """
        c = node.constraints
        is_array = node.kind == ShapeKind.ARRAY
        if not is_array and node.kind != ShapeKind.MAP:
            return self._field_checks_plan(name, node, required)

        minimum, maximum = (c.min_items, c.max_items) if is_array else (c.min_properties, c.max_properties)
        elements = node.items if is_array else node.map_values
        elements_need = self._elements_need(elements)
        accumulate = (minimum is not None and maximum is not None) or elements_need
        fail_fast = not accumulate

        rules = self._constraint_rules(node, "", fail_fast)
        plan = ValidationPlan(name, PlanStrategy.ARRAY if is_array else PlanStrategy.MAP, accumulate=accumulate)

        if node.nullable or not required:
            plan.nil_policy = NilPolicy.ACCEPT
        elif minimum is not None and minimum > 0:
            plan.nil_policy = NilPolicy.REJECT
            lower = rules[0]
            plan.nil_message = lower.check(0)
        else:
            plan.nil_policy = NilPolicy.ACCEPT

        if elements_need:
            element, element_plan = self._element(elements, name + ("Item" if is_array else "Value"))
            rule_class = ItemsRule if is_array else EntriesRule
            rules.append(rule_class("", element=element, element_plan=element_plan))

        plan.rules = rules
        if not rules and plan.nil_policy != NilPolicy.REJECT:
            plan.strategy = PlanStrategy.TRIVIAL
        return plan

    def _field_checks_plan(self, name: str, node: SchemaNode, required: bool) -> ValidationPlan:
        rules: list[ValidationRule] = []
        for prop_name, prop in node.properties.items():
            rules.extend(self._property_rules(name, prop_name, prop, prop_name in node.required))
        if node.kind == ShapeKind.SCALAR:
            checks = self._constraint_rules(node, "")
            if checks:
                rules.append(TagCheckRule("", [rule.tag() for rule in checks], checks))
        if node.union is not None:
            variant = self._variant_rule(name, node.union)
            if variant is not None:
                rules.append(variant)
        nil_policy = self._nil_policy(node, required)
        if not rules:
            return ValidationPlan(name, PlanStrategy.TRIVIAL, nil_policy=nil_policy)
        return ValidationPlan(name, PlanStrategy.FIELD_CHECKS, rules, nil_policy=nil_policy, accumulate=True)

    def _property_rules(self, parent: str, prop_name: str, prop: SchemaNode, required: bool) -> list[ValidationRule]:
        nil_guarded = not required or prop.nullable
        if self._needs_custom_check(prop):
            if prop.is_reference or self.model.type_for_node(prop) is not None:
                target = self.model.name_for_ref(prop.ref) if prop.is_reference else self.model.type_for_node(prop).name
                if target is not None:
                    return [NestedRule(prop_name, target, nil_guarded)]
            else:
                plan = self.inline_plan(prop, parent + "." + prop_name, required and not prop.nullable)
                return [NestedPlanRule(prop_name, plan, nil_guarded)]

        tags = self._field_tags(prop, required)
        if not any(t != "omitempty" for t in tags):
            return []
        checks: list[ValidationRule] = []
        if "required" in tags:
            checks.append(RequiredRule(prop_name))
        if not prop.is_reference:
            checks.extend(self._constraint_rules(prop, prop_name))
        return [TagCheckRule(prop_name, tags, checks)]

    def _variant_rule(self, name: str, union: UnionDescriptor) -> VariantRule | None:
        if not any(self._needs(branch) for branch in union.branches) and union.discriminator is None:
            return None
        branches = []
        for branch in union.branches:
            if branch.is_reference:
                branches.append(self.model.name_for_ref(branch.ref))
            else:
                named = self.model.type_for_node(branch)
                branches.append(named.name if named is not None else None)
        return VariantRule(name, union.strategy.value, branches, union.discriminator)
