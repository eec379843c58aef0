"""
Validation plans and their results.

A plan is the ordered list of checks synthesized for one type. Results
are either the SUCCESS sentinel or a ValidationFailure carrying ordered
(field path, message) pairs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .validation_rules import ValidationRule


class PlanStrategy(str, Enum):
    """Which precedence branch produced a plan."""

    DELEGATE = "delegate"
    WHOLE_STRUCTURE = "whole_structure"
    ARRAY = "array"
    MAP = "map"
    FIELD_CHECKS = "field_checks"
    TRIVIAL = "trivial"


class NilPolicy(str, Enum):
    """Outcome of validating a nil (absent) value."""

    ACCEPT = "accept"
    REJECT = "reject"
    UNGUARDED = "unguarded"  # the value cannot be nil


class Success:
    """Sentinel for a validation with no failures."""

    ok = True

    def __repr__(self) -> str:
        return "SUCCESS"

    def __bool__(self) -> bool:
        return True


SUCCESS = Success()


@dataclass
class ValidationFailure:
    """Aggregated failures, in the order they were found."""

    errors: list[tuple[str, str]] = field(default_factory=list)

    ok = False

    def __bool__(self) -> bool:
        return False

    def add(self, path: str, message: str) -> None:
        self.errors.append((path, message))

    def extend(self, prefix: str, other: ValidationFailure) -> None:
        """Merge failures of a nested value under ``prefix``."""
        for path, message in other.errors:
            if prefix and path and not path.startswith("["):
                self.errors.append((f"{prefix}.{path}", message))
            else:
                self.errors.append((prefix + path, message))

    def messages(self) -> list[str]:
        return [message for _, message in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {"errors": [{"path": path, "message": message} for path, message in self.errors]}


@dataclass
class ValidationPlan:
    """Ordered checks for one type.

    Attributes:
        type_name: Type the plan validates
        strategy: Precedence branch that produced the plan
        rules: Checks, in evaluation order
        nil_policy: What a nil value yields
        nil_message: Failure message when nil is rejected
        accumulate: Collect every failure (True) or stop at the first one
        dispatch_on: Underlying type a delegating plan dispatches on
    """

    type_name: str
    strategy: PlanStrategy = PlanStrategy.TRIVIAL
    rules: list[ValidationRule] = field(default_factory=list)
    nil_policy: NilPolicy = NilPolicy.UNGUARDED
    nil_message: str | None = None
    accumulate: bool = True
    dispatch_on: str | None = None

    @property
    def is_trivial(self) -> bool:
        return self.strategy == PlanStrategy.TRIVIAL

    def nil_outcome(self) -> Success | ValidationFailure:
        """Result of running the plan on a nil value."""
        if self.nil_policy == NilPolicy.REJECT:
            return ValidationFailure(errors=[("", self.nil_message or "is required")])
        return SUCCESS

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": self.type_name,
            "strategy": self.strategy.value,
            "nil_policy": self.nil_policy.value,
            "accumulate": self.accumulate,
        }
        if self.nil_message is not None:
            result["nil_message"] = self.nil_message
        if self.dispatch_on is not None:
            result["dispatch_on"] = self.dispatch_on
        result["rules"] = [rule.describe() for rule in self.rules]
        return result
