"""Tests for the patch-graph CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from patch_graph import Instrument, Patch, Sequence, compile_instrument, parse_graph
from patch_graph.cli import main


@pytest.fixture
def instrument_json(tmp_path: Path, filtered_instrument: Instrument) -> Path:
    """Write a valid instrument graph JSON and return its path."""
    filtered_instrument.name = "pad"
    p = tmp_path / "pad.json"
    p.write_text(filtered_instrument.model_dump_json())
    return p


@pytest.fixture
def sequence_json(tmp_path: Path, pulse_sequence: Sequence) -> Path:
    p = tmp_path / "seq.json"
    p.write_text(pulse_sequence.model_dump_json())
    return p


@pytest.fixture
def invalid_graph_json(tmp_path: Path, sine_instrument: Instrument) -> Path:
    """Write an instrument graph whose patch points at a missing module."""
    sine_instrument.patches.append(
        Patch(from_module=2, to_module=8, from_socket="OUT", to_socket="IN", type="audio")
    )
    p = tmp_path / "bad.json"
    p.write_text(sine_instrument.model_dump_json())
    return p


@pytest.fixture
def definition_json(tmp_path: Path) -> Path:
    p = tmp_path / "definition.json"
    p.write_text(json.dumps({"filter": {"lpf": {"cutoff": 1200}, "square": {}}, "name": "buzz"}))
    return p


class TestCompile:
    def test_compile_to_stdout(
        self, instrument_json: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        rc = main(["compile", str(instrument_json)])
        assert rc == 0
        doc = json.loads(capsys.readouterr().out)
        assert doc["filter"]["lpf"] == {"cutoff": 2000.0}
        assert doc["name"] == "pad"

    def test_compile_sequence(
        self, sequence_json: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        rc = main(["compile", str(sequence_json)])
        assert rc == 0
        docs = json.loads(capsys.readouterr().out)
        assert docs[0]["repeat"]["every"] == 2.0

    def test_compile_to_dir(self, instrument_json: Path, tmp_path: Path) -> None:
        out_dir = tmp_path / "build"
        rc = main(["compile", str(instrument_json), "-o", str(out_dir)])
        assert rc == 0
        written = out_dir / "pad.json"
        assert written.exists()
        assert json.loads(written.read_text())["name"] == "pad"

    def test_compact_output(
        self,
        instrument_json: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv("PATCH_GRAPH_JSON_INDENT", "0")
        rc = main(["compile", str(instrument_json)])
        assert rc == 0
        assert capsys.readouterr().out.count("\n") == 1


class TestValidate:
    def test_validate_valid(self, instrument_json: Path, capsys: pytest.CaptureFixture[str]) -> None:
        rc = main(["validate", str(instrument_json)])
        assert rc == 0
        assert capsys.readouterr().out.strip() == "valid"

    def test_validate_invalid_exits_1(
        self, invalid_graph_json: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        rc = main(["validate", str(invalid_graph_json)])
        assert rc == 1
        err = capsys.readouterr().err
        assert "error:" in err
        assert "unknown module 8" in err

    def test_validate_warnings(
        self, tmp_path: Path, sine_instrument: Instrument, capsys: pytest.CaptureFixture[str]
    ) -> None:
        sine_instrument.remove_module(1)
        p = tmp_path / "nosink.json"
        p.write_text(sine_instrument.model_dump_json())
        rc = main(["validate", str(p)])
        assert rc == 0
        captured = capsys.readouterr()
        assert "warning:" in captured.err
        assert "valid (with warnings)" in captured.out


class TestDot:
    def test_dot_to_stdout(self, instrument_json: Path, capsys: pytest.CaptureFixture[str]) -> None:
        rc = main(["dot", str(instrument_json)])
        assert rc == 0
        assert 'digraph "pad"' in capsys.readouterr().out

    def test_dot_to_dir(self, sequence_json: Path, tmp_path: Path) -> None:
        out_dir = tmp_path / "dot_out"
        rc = main(["dot", str(sequence_json), "-o", str(out_dir)])
        assert rc == 0
        dot_file = out_dir / "sequence_2.dot"
        assert dot_file.exists()
        assert "digraph" in dot_file.read_text()


class TestLoad:
    def test_load_to_stdout(
        self, definition_json: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        rc = main(["load", str(definition_json)])
        assert rc == 0
        graph = parse_graph(json.loads(capsys.readouterr().out))
        assert isinstance(graph, Instrument)
        assert graph.name == "buzz"
        assert [m.kind for m in graph.modules] == ["input", "output", "low pass filter", "square"]

    def test_load_to_file_then_compile(
        self, definition_json: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        graph_path = tmp_path / "graphs" / "buzz.json"
        assert main(["load", str(definition_json), "-o", str(graph_path)]) == 0
        graph = parse_graph(json.loads(graph_path.read_text()))
        assert main(["compile", str(graph_path)]) == 0
        assert json.loads(capsys.readouterr().out) == compile_instrument(graph)  # type: ignore[arg-type]

    def test_unknown_definition_exits_1(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        p = tmp_path / "weird.json"
        p.write_text(json.dumps({"theremin": {}}))
        rc = main(["load", str(p)])
        assert rc == 1
        assert "theremin" in capsys.readouterr().err


class TestErrorHandling:
    def test_no_command_exits_1(self, capsys: pytest.CaptureFixture[str]) -> None:
        rc = main([])
        assert rc == 1

    def test_missing_file_exits_1(self, capsys: pytest.CaptureFixture[str]) -> None:
        rc = main(["compile", "/nonexistent/graph.json"])
        assert rc == 1
        assert "error:" in capsys.readouterr().err

    def test_malformed_json_exits_1(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{not valid json")
        rc = main(["compile", str(bad)])
        assert rc == 1
        assert "invalid JSON" in capsys.readouterr().err

    def test_invalid_schema_exits_1(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        bad = tmp_path / "bad_schema.json"
        bad.write_text(json.dumps({"kind": "orchestra"}))
        rc = main(["compile", str(bad)])
        assert rc == 1
        assert "invalid graph" in capsys.readouterr().err

    def test_cycle_exits_1(
        self, tmp_path: Path, filtered_instrument: Instrument, capsys: pytest.CaptureFixture[str]
    ) -> None:
        filtered_instrument.connect(3, 3, "OUT", "IN")
        p = tmp_path / "loop.json"
        p.write_text(filtered_instrument.model_dump_json())
        rc = main(["compile", str(p)])
        assert rc == 1
        assert "cycle" in capsys.readouterr().err

    def test_debug_flag(self, instrument_json: Path) -> None:
        assert main(["--debug", "validate", str(instrument_json)]) == 0
