"""
Report rendering for a finished type model.

JSON output is the model's dictionary form; text output is rendered
from a jinja2 template.
"""

from __future__ import annotations

import json
from pathlib import Path

import jinja2

from ..analyzer.ir_nodes import TypeModel

CURRENT_DIR = Path(__file__).parent.resolve().absolute()


def _tags(rule: dict) -> str:
    return ",".join(rule.get("tags", []))


class ReportRenderer:
    """Renders a TypeModel as JSON or text."""

    FORMATS = ("json", "text")

    def __init__(self):
        self.jinja_env = jinja2.Environment(lstrip_blocks=True, trim_blocks=True, keep_trailing_newline=True)
        self.jinja_env.filters["tags"] = _tags
        with open(CURRENT_DIR / "templates/type_model.txt.jinja2", encoding="utf-8") as f:
            self.text_template = self.jinja_env.from_string(f.read())

    def render(self, model: TypeModel, fmt: str = "json") -> str:
        """
        Render a type model.

        Args:
            model: The model to render
            fmt: "json" or "text"

        Returns:
            The rendered report
        """
        if fmt == "json":
            return json.dumps(model.to_dict(), indent=2) + "\n"
        if fmt == "text":
            data = model.to_dict()
            return self.text_template.render(types=data["types"], prune=data.get("prune"))
        raise ValueError(f"unknown report format '{fmt}', expected one of {', '.join(self.FORMATS)}")
