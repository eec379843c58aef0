#!/usr/bin/env python3

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from openapi_type_model.openapi_type_model import openapi_type_model

TEST_DATA = Path(__file__).parent / "test_data"
PETSTORE = str(TEST_DATA / "petstore.json")


class TestCli:
    """Test cases for the command line entry point"""

    def test_json_to_stdout(self):
        result = CliRunner().invoke(openapi_type_model, [PETSTORE])
        assert result.exit_code == 0, result.output
        report = json.loads(result.output)
        assert [t["name"] for t in report["types"]][:2] == ["Animal", "Cat"]

    def test_text_to_file(self, tmp_path):
        output = tmp_path / "model.txt"
        result = CliRunner().invoke(openapi_type_model, ["-f", "text", PETSTORE, str(output)])
        assert result.exit_code == 0, result.output
        assert "Types (6):" in output.read_text()

    def test_include_tag(self):
        result = CliRunner().invoke(openapi_type_model, ["--include-tag", "cat", PETSTORE])
        assert result.exit_code == 0, result.output
        names = [t["name"] for t in json.loads(result.output)["types"]]
        assert names == ["Animal", "Cat", "ListCats200Response"]

    def test_exclude_tag_and_skip_prune(self):
        result = CliRunner().invoke(openapi_type_model, ["--exclude-tag", "dog", "--skip-prune", PETSTORE])
        assert result.exit_code == 0, result.output
        report = json.loads(result.output)
        assert "prune" not in report
        assert "Dog" in [t["name"] for t in report["types"]]

    def test_config_file(self, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"filter": {"include_tags": ["dog"]}}))
        result = CliRunner().invoke(openapi_type_model, ["-c", str(config), PETSTORE])
        assert result.exit_code == 0, result.output
        names = [t["name"] for t in json.loads(result.output)["types"]]
        assert "Cat" not in names
        assert "DogListResponse" in names

    def test_structural_conflict_is_reported(self, tmp_path):
        schema = tmp_path / "bad.json"
        schema.write_text(
            json.dumps(
                {
                    "openapi": "3.0.3",
                    "paths": {
                        "/a": {
                            "get": {
                                "responses": {
                                    "200": {
                                        "description": "ok",
                                        "content": {
                                            "application/json": {
                                                "schema": {"allOf": [{"type": "string"}, {"type": "integer"}]}
                                            }
                                        },
                                    }
                                }
                            }
                        }
                    },
                }
            )
        )
        result = CliRunner().invoke(openapi_type_model, [str(schema)])
        assert result.exit_code == 1
        assert "cannot merge type 'string' with 'integer'" in result.output

    def test_missing_input(self):
        result = CliRunner().invoke(openapi_type_model, ["does-not-exist.json"])
        assert result.exit_code != 0


if __name__ == "__main__":
    pytest.main([__file__])
