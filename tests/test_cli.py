"""Tests for the meshviz command-line interface."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

from click.testing import CliRunner

from odg_meshviz.cli import cli

REGISTRY_YAML = """\
- apiVersion: v1.0.0
  kind: DataProduct
  id: p1
  name: Orders
  domain: Sales
  status: active
- apiVersion: v1.0.0
  kind: DataProduct
  id: p2
  name: Fleet
  domain: Ops
  status: active
- apiVersion: v1.0.0
  kind: DataContract
  id: c1
  version: 1.0.0
  status: active
  schema:
    - name: Orders
      properties:
        - name: customerId
          relationships:
            - to: Customers.id
        - name: regionId
          relationships:
            - to: Regions.id
    - name: Customers
      properties:
        - name: id
- dataUsageAgreementSpecification: 0.0.1
  id: d1
  provider:
    dataProductId: p1
  consumer:
    dataProductId: p2
"""


def _write(tmp: str, name: str, text: str) -> Path:
    path = Path(tmp) / name
    path.write_text(text)
    return path


class TestCompileCommand:
    def test_writes_json(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as tmp:
            registry = _write(tmp, "registry.yaml", REGISTRY_YAML)
            output = Path(tmp) / "graph.json"

            result = runner.invoke(cli, ["compile", str(registry), "-o", str(output)])

            assert result.exit_code == 0, result.output
            payload = json.loads(output.read_text())
        assert payload["view"] == "mesh"
        assert [n["id"] for n in payload["nodes"]] == ["p1", "p2"]
        assert [e["id"] for e in payload["edges"]] == ["d1"]
        assert payload["domains"] == ["Ops", "Sales"]

    def test_contract_view(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as tmp:
            registry = _write(tmp, "registry.yaml", REGISTRY_YAML)
            output = Path(tmp) / "graph.json"

            result = runner.invoke(cli, ["compile", str(registry), "--contract", "c1", "-o", str(output)])

            assert result.exit_code == 0, result.output
            payload = json.loads(output.read_text())
        assert payload["view"] == "contract"
        assert [n["data"]["label"] for n in payload["nodes"]] == ["Customers", "Orders"]

    def test_with_config(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as tmp:
            registry = _write(tmp, "registry.yaml", REGISTRY_YAML)
            config = _write(tmp, "config.yaml", "defaultDataMeshRegistryUrl: /registry.yaml\n")
            output = Path(tmp) / "graph.json"

            result = runner.invoke(
                cli, ["--config", str(config), "compile", str(registry), "--domain", "Ops", "-o", str(output)]
            )

            assert result.exit_code == 0, result.output
            payload = json.loads(output.read_text())
        assert {n["id"] for n in payload["nodes"]} == {"p1", "p2"}

    def test_bad_config(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as tmp:
            registry = _write(tmp, "registry.yaml", REGISTRY_YAML)
            config = _write(tmp, "config.yaml", "tiers: {}\n")
            result = runner.invoke(cli, ["--config", str(config), "compile", str(registry)])
        assert result.exit_code != 0
        assert "defaultDataMeshRegistryUrl" in result.output

    def test_product_and_contract_exclusive(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as tmp:
            registry = _write(tmp, "registry.yaml", REGISTRY_YAML)
            result = runner.invoke(cli, ["compile", str(registry), "--product", "p1", "--contract", "c1"])
        assert result.exit_code == 2


class TestValidateCommand:
    def test_valid_registry(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as tmp:
            registry = _write(tmp, "registry.yaml", REGISTRY_YAML)
            result = runner.invoke(cli, ["validate", str(registry)])
        assert result.exit_code == 0
        assert "All 4 records are valid" in result.output

    def test_invalid_registry_exits_1(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as tmp:
            registry = _write(tmp, "registry.yaml", "- kind: DataProduct\n  id: p1\n")
            result = runner.invoke(cli, ["validate", str(registry)])
        assert result.exit_code == 1
        assert "Found 2 issues" in result.output


class TestOrderCommand:
    def test_prints_order_and_unresolved(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as tmp:
            registry = _write(tmp, "registry.yaml", REGISTRY_YAML)
            result = runner.invoke(cli, ["order", str(registry), "c1"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[:2] == ["1. Customers", "2. Orders"]
        assert "Regions.id" in result.output

    def test_unknown_contract(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as tmp:
            registry = _write(tmp, "registry.yaml", REGISTRY_YAML)
            result = runner.invoke(cli, ["order", str(registry), "nope"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestDomainsCommand:
    def test_lists_domains(self) -> None:
        runner = CliRunner()
        with tempfile.TemporaryDirectory() as tmp:
            registry = _write(tmp, "registry.yaml", REGISTRY_YAML)
            result = runner.invoke(cli, ["domains", str(registry)])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["Ops", "Sales"]
