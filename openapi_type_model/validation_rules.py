"""
Validation rule objects that describe constraint checks.

Each rule represents one check derived from a schema's bounds or shape.
Rules do not run anything: they describe the check (its error kind, its
message, its struct tag and whether a failure stops the procedure) for
an emission layer to turn into code.
"""

import json
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Tags that always come first, in this order
_LEADING_TAGS = ("required", "omitempty")


class ErrorKind(str, Enum):
    """Category of a validation failure."""

    REQUIRED = "required"
    LENGTH = "length"
    PATTERN = "pattern"
    RANGE = "range"
    MULTIPLE_OF = "multiple_of"
    ENUM = "enum"
    UNIQUE = "unique"
    COUNT = "count"
    NESTED = "nested"
    VARIANT = "variant"
    STRUCTURE = "structure"


def order_tags(tags: List[str]) -> List[str]:
    """Sort struct tags: required, then omitempty, then alphabetically."""
    unique = list(dict.fromkeys(tags))
    leading = [t for t in _LEADING_TAGS if t in unique]
    rest = sorted(t for t in unique if t not in _LEADING_TAGS)
    return leading + rest


class ValidationRule(ABC):
    """Base class for all validation rules"""

    kind: ErrorKind = ErrorKind.NESTED

    # Class-level cache for loaded string templates
    _string_templates: Dict[str, Any] = {}

    def __init__(self, field_name: str = "", fail_fast: bool = False):
        """
        Initialize a validation rule.

        Args:
            field_name: Name of the field being validated ("" for the value itself)
            fail_fast: Whether a failure ends the procedure instead of being collected
        """
        self.field_name = field_name
        self.fail_fast = fail_fast

    @classmethod
    def _load_string_templates(cls) -> Dict[str, Any]:
        """
        Load message templates from the JSON file next to this module.
        Results are cached to avoid repeated file I/O.

        Returns:
            Dictionary of string templates for all validation rules
        """
        if not ValidationRule._string_templates:
            template_file = Path(__file__).parent / "validation_messages.json"
            with open(template_file, "r", encoding="utf-8") as f:
                ValidationRule._string_templates = json.load(f)
        return ValidationRule._string_templates

    def has_string(self, key: str) -> bool:
        templates = self._load_string_templates()
        return key in templates.get(self.__class__.__name__, {})

    def get_string(self, key: str, **format_params) -> Union[str, List, Dict]:
        """
        Get a string template for this validation rule and format it.

        Args:
            key: The string key to retrieve (e.g., 'message', 'tag')
            **format_params: Parameters to format into the string template

        Returns:
            Formatted string, list, or dict depending on the template structure
        """
        templates = self._load_string_templates()
        class_name = self.__class__.__name__

        if class_name not in templates:
            raise KeyError(f"No string templates found for {class_name}")

        rule_templates = templates[class_name]

        if key not in rule_templates:
            raise KeyError(f"Key '{key}' not found in templates for {class_name}")

        return self._format_template(rule_templates[key], format_params)

    def _format_template(self, template, format_params: dict):
        """Recursively format a template that can be a string, list, or dict."""
        if isinstance(template, str):
            return template.format(**format_params)
        elif isinstance(template, list):
            return [self._format_template(item, format_params) for item in template]
        elif isinstance(template, dict):
            return {k: self._format_template(v, format_params) for k, v in template.items()}
        else:
            return template

    @abstractmethod
    def get_template_params(self) -> Dict[str, Any]:
        """Get parameters for formatting the rule's templates."""
        pass

    def message_key(self) -> str:
        return "message"

    def tag_key(self) -> str:
        return "tag"

    def message(self) -> str:
        return self.get_string(self.message_key(), **self.get_template_params())

    def tag(self) -> Optional[str]:
        """Struct tag for this check, if it can be expressed as one."""
        if not self.has_string(self.tag_key()):
            return None
        return self.get_string(self.tag_key(), **self.get_template_params())

    def describe_extra(self) -> Dict[str, Any]:
        return {}

    def describe(self) -> Dict[str, Any]:
        """Serializable description of the check."""
        result: Dict[str, Any] = {
            "rule": self.__class__.__name__,
            "kind": self.kind.value,
            "field": self.field_name,
            "fail_fast": self.fail_fast,
            "message": self.message(),
        }
        tag = self.tag()
        if tag is not None:
            result["tag"] = tag
        result.update(self.describe_extra())
        return result


# Scalar rules


class RequiredRule(ValidationRule):
    kind = ErrorKind.REQUIRED

    def get_template_params(self) -> Dict[str, Any]:
        return {}


class MinLengthRule(ValidationRule):
    kind = ErrorKind.LENGTH

    def __init__(self, field_name: str, min_length: int, fail_fast: bool = False):
        super().__init__(field_name, fail_fast)
        self.min_length = min_length

    def get_template_params(self) -> Dict[str, Any]:
        return {"min_length": self.min_length}


class MaxLengthRule(ValidationRule):
    kind = ErrorKind.LENGTH

    def __init__(self, field_name: str, max_length: int, fail_fast: bool = False):
        super().__init__(field_name, fail_fast)
        self.max_length = max_length

    def get_template_params(self) -> Dict[str, Any]:
        return {"max_length": self.max_length}


class PatternRule(ValidationRule):
    kind = ErrorKind.PATTERN

    def __init__(self, field_name: str, pattern: str, fail_fast: bool = False):
        super().__init__(field_name, fail_fast)
        self.pattern = pattern

    def get_template_params(self) -> Dict[str, Any]:
        return {"pattern": self.pattern}


class MinimumRule(ValidationRule):
    kind = ErrorKind.RANGE

    def __init__(self, field_name: str, minimum: float, exclusive: bool = False, fail_fast: bool = False):
        super().__init__(field_name, fail_fast)
        self.minimum = minimum
        self.exclusive = exclusive

    def message_key(self) -> str:
        return "message_exclusive" if self.exclusive else "message"

    def tag_key(self) -> str:
        return "tag_exclusive" if self.exclusive else "tag"

    def get_template_params(self) -> Dict[str, Any]:
        return {"minimum": self.minimum}


class MaximumRule(ValidationRule):
    kind = ErrorKind.RANGE

    def __init__(self, field_name: str, maximum: float, exclusive: bool = False, fail_fast: bool = False):
        super().__init__(field_name, fail_fast)
        self.maximum = maximum
        self.exclusive = exclusive

    def message_key(self) -> str:
        return "message_exclusive" if self.exclusive else "message"

    def tag_key(self) -> str:
        return "tag_exclusive" if self.exclusive else "tag"

    def get_template_params(self) -> Dict[str, Any]:
        return {"maximum": self.maximum}


class MultipleOfRule(ValidationRule):
    kind = ErrorKind.MULTIPLE_OF

    def __init__(self, field_name: str, multiple_of: float, fail_fast: bool = False):
        super().__init__(field_name, fail_fast)
        self.multiple_of = multiple_of

    def get_template_params(self) -> Dict[str, Any]:
        return {"multiple_of": self.multiple_of}


class EnumRule(ValidationRule):
    kind = ErrorKind.ENUM

    def __init__(self, field_name: str, values: List[Any], fail_fast: bool = False):
        super().__init__(field_name, fail_fast)
        self.values = list(values)

    def get_template_params(self) -> Dict[str, Any]:
        return {
            "values": json.dumps(self.values),
            "choices": " ".join(str(v) for v in self.values),
        }


class UniqueItemsRule(ValidationRule):
    kind = ErrorKind.UNIQUE

    def get_template_params(self) -> Dict[str, Any]:
        return {}


# Count rules, tagged with the observed count


class CountRule(ValidationRule):
    """Bound on the number of items or properties.

    The message keeps a ``{count}`` placeholder that is filled with the
    observed count when the check fails.
    """

    kind = ErrorKind.COUNT
    bound_name = ""
    is_lower_bound = True

    def __init__(self, field_name: str, bound: int, fail_fast: bool = False):
        super().__init__(field_name, fail_fast)
        self.bound = bound

    def get_template_params(self) -> Dict[str, Any]:
        return {self.bound_name: self.bound}

    def check(self, count: int) -> Optional[str]:
        """Message for an observed count, or None if the count is within bounds."""
        violated = count < self.bound if self.is_lower_bound else count > self.bound
        if not violated:
            return None
        return self.message().format(count=count)

    def describe_extra(self) -> Dict[str, Any]:
        return {"bound": self.bound, "observed": "count"}


class MinItemsRule(CountRule):
    bound_name = "min_items"


class MaxItemsRule(CountRule):
    bound_name = "max_items"
    is_lower_bound = False


class MinPropertiesRule(CountRule):
    bound_name = "min_properties"


class MaxPropertiesRule(CountRule):
    bound_name = "max_properties"
    is_lower_bound = False


# Structural rules


class TagCheckRule(ValidationRule):
    """Tag-based check of one field (or of the value itself)."""

    kind = ErrorKind.STRUCTURE

    def __init__(self, field_name: str, tags: List[str], rules: List[ValidationRule]):
        super().__init__(field_name)
        self.tags = order_tags(tags)
        self.rules = list(rules)

    def get_template_params(self) -> Dict[str, Any]:
        return {"tags": ",".join(self.tags)}

    def describe_extra(self) -> Dict[str, Any]:
        return {"tags": list(self.tags), "checks": [rule.describe() for rule in self.rules]}


class StructureRule(ValidationRule):
    """One generic whole-structure check driven by the field tag table."""

    kind = ErrorKind.STRUCTURE

    def __init__(self, type_name: str, fields: Dict[str, List[str]]):
        super().__init__("")
        self.type_name = type_name
        self.fields = {name: order_tags(tags) for name, tags in fields.items()}

    def get_template_params(self) -> Dict[str, Any]:
        return {"type_name": self.type_name}

    def describe_extra(self) -> Dict[str, Any]:
        return {"fields": {name: list(tags) for name, tags in self.fields.items()}}


class NestedRule(ValidationRule):
    """Call into the procedure of another named type."""

    kind = ErrorKind.NESTED

    def __init__(self, field_name: str, target: str, nil_guarded: bool = True):
        super().__init__(field_name)
        self.target = target
        self.nil_guarded = nil_guarded

    def get_template_params(self) -> Dict[str, Any]:
        return {"target": self.target}

    def describe_extra(self) -> Dict[str, Any]:
        return {"target": self.target, "nil_guarded": self.nil_guarded}


class NestedPlanRule(ValidationRule):
    """Run an inline plan (an unnamed array or map) on a field."""

    kind = ErrorKind.NESTED

    def __init__(self, field_name: str, plan, nil_guarded: bool = True):
        super().__init__(field_name)
        self.plan = plan
        self.nil_guarded = nil_guarded

    def get_template_params(self) -> Dict[str, Any]:
        return {}

    def describe_extra(self) -> Dict[str, Any]:
        return {"nil_guarded": self.nil_guarded, "plan": self.plan.to_dict()}


class DelegateRule(ValidationRule):
    """Hand the value over to the aliased type's procedure."""

    kind = ErrorKind.NESTED

    def __init__(self, target: str, dispatch_on: str):
        super().__init__("", fail_fast=True)
        self.target = target
        self.dispatch_on = dispatch_on

    def get_template_params(self) -> Dict[str, Any]:
        return {"target": self.target}

    def describe_extra(self) -> Dict[str, Any]:
        return {"target": self.target, "dispatch_on": self.dispatch_on}


class ItemsRule(ValidationRule):
    """Validate every element, failures are reported as ``[index]``."""

    kind = ErrorKind.NESTED

    def __init__(self, field_name: str = "", element: Optional[str] = None, element_plan=None):
        super().__init__(field_name)
        self.element = element
        self.element_plan = element_plan

    def get_template_params(self) -> Dict[str, Any]:
        return {}

    def path(self, index: int) -> str:
        return self.field_name + self.get_string("path").format(index=index)

    def describe_extra(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"path": self.get_string("path")}
        if self.element is not None:
            result["element"] = self.element
        if self.element_plan is not None:
            result["element_plan"] = self.element_plan.to_dict()
        return result


class EntriesRule(ItemsRule):
    """Validate every map value, failures are reported as ``[key]``."""

    def path(self, key: str) -> str:
        return self.field_name + self.get_string("path").format(key=key)


class VariantRule(ValidationRule):
    """Validate whichever union branch the value holds."""

    kind = ErrorKind.VARIANT

    def __init__(
        self,
        type_name: str,
        strategy: str,
        branches: List[Optional[str]],
        discriminator: Optional[str] = None,
    ):
        super().__init__("")
        self.type_name = type_name
        self.strategy = strategy
        self.branches = list(branches)
        self.discriminator = discriminator

    def message_key(self) -> str:
        return "message_discriminated" if self.discriminator else "message"

    def get_template_params(self) -> Dict[str, Any]:
        return {"type_name": self.type_name, "discriminator": self.discriminator}

    def describe_extra(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"strategy": self.strategy, "branches": list(self.branches)}
        if self.discriminator:
            result["discriminator"] = self.discriminator
        return result
