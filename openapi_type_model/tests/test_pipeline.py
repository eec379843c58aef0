#!/usr/bin/env python3

import json
import logging
from pathlib import Path

import pytest

from openapi_type_model import FilterConfig, GeneratorConfig, PipelineGenerator, TypeModelError
from openapi_type_model.pipeline.document import DocumentParser
from openapi_type_model.pipeline.report import ReportRenderer

TEST_DATA = Path(__file__).parent / "test_data"


def load_petstore():
    with open(TEST_DATA / "petstore.json") as f:
        return json.load(f)


class TestGeneratorConfig:
    """Config loading and serialization"""

    def test_defaults(self):
        config = GeneratorConfig()
        assert config.skip_prune is False
        assert config.max_reference_depth == 32
        assert config.filter.is_empty()
        assert config.naming.safe_prefix == "N"

    def test_from_dict(self):
        config = GeneratorConfig.from_dict(
            {
                "skip_prune": True,
                "prune_workers": 4,
                "filter": {"include_tags": ["cat"]},
                "naming": {"safe_prefix": "Status", "use_initialisms": True},
                "unknown_option": 1,
            }
        )
        assert config.skip_prune is True
        assert config.prune_workers == 4
        assert config.filter.include_tags == ["cat"]
        assert not config.filter.is_empty()
        assert config.naming.safe_prefix == "Status"
        assert config.naming.use_initialisms is True
        assert not hasattr(config, "unknown_option")

    def test_round_trip(self):
        config = GeneratorConfig(strict_property_merge=True, filter=FilterConfig(exclude_paths=["/internal"]))
        assert GeneratorConfig.from_dict(config.to_dict()) == config


class TestPipelineGenerator:
    """End to end runs"""

    def test_accepts_parsed_document(self):
        document = DocumentParser().parse(load_petstore())
        model = PipelineGenerator(document).generate()
        assert len(model) == 6
        assert model.prune_report.total_removed == 2

    def test_skip_prune_keeps_everything(self):
        model = PipelineGenerator(load_petstore(), GeneratorConfig(skip_prune=True)).generate()
        assert model.prune_report is None
        assert model.lookup("Orphan").kind == "scalar"
        assert model.name_for_ref("#/components/schemas/Orphan") == "Orphan"

    def test_every_type_has_a_plan(self):
        model = PipelineGenerator(load_petstore()).generate()
        assert set(model.plans()) == {t.name for t in model.types}

    def test_output_is_deterministic(self):
        first = PipelineGenerator(load_petstore()).generate().to_dict()
        second = PipelineGenerator(load_petstore(), GeneratorConfig(prune_workers=3)).generate().to_dict()
        assert json.dumps(first) == json.dumps(second)

    def test_errors_carry_the_schema_location(self):
        raw = {
            "openapi": "3.0.3",
            "paths": {
                "/a": {
                    "get": {
                        "responses": {
                            "200": {
                                "description": "ok",
                                "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Missing"}}},
                            }
                        }
                    }
                }
            },
        }
        with pytest.raises(TypeModelError) as exc_info:
            PipelineGenerator(raw).generate()
        assert exc_info.value.source_path == "#/paths/~1a/get/responses/200/content/application~1json/schema"

    def test_logs_prune_summary(self, caplog):
        with caplog.at_level(logging.INFO, logger="openapi_type_model"):
            PipelineGenerator(load_petstore()).generate()
        assert "pruned 2 components in 2 passes" in caplog.text


class TestReportRenderer:
    """JSON and text reports"""

    def setup_method(self):
        self.model = PipelineGenerator(load_petstore()).generate()
        self.renderer = ReportRenderer()

    def test_json_report(self):
        report = json.loads(self.renderer.render(self.model, "json"))
        assert [t["name"] for t in report["types"]] == [t.name for t in self.model.types]
        assert report["prune"]["removed"] == {"schemas": ["Orphan"], "examples": ["CatExample"]}
        animal = report["types"][0]
        assert animal["validation"]["strategy"] == "whole_structure"
        assert animal["validation"]["rules"][0]["fields"]["name"] == ["required", "min=1"]

    def test_text_report(self):
        text = self.renderer.render(self.model, "text")
        assert text.startswith("Pruning: removed 2 components in 2 passes\n")
        assert "Types (6):" in text
        assert "Animal [object, component]" in text
        assert "  validation: whole_structure, nil unguarded" in text
        assert "DogListResponse [array, response]" in text
        assert "    - ItemsRule: invalid item" in text

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            self.renderer.render(self.model, "yaml")


if __name__ == "__main__":
    pytest.main([__file__])
