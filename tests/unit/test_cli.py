"""Tests for the reflector command-line entry point."""

from __future__ import annotations

import pytest

from reflector.cli import build_parser, main

SOURCE = "const double = reflect((n: number) => n + n);\n"


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "handler.ts"
    path.write_text(SOURCE, encoding="utf-8")
    return path


class TestArguments:
    def test_defaults(self):
        args = build_parser().parse_args(["a.ts"])
        assert args.module == "functionless"
        assert args.exclude == []
        assert not args.ir_only

    def test_repeatable_exclude(self):
        args = build_parser().parse_args(["a.ts", "--exclude", "x/*", "--exclude", "y/*"])
        assert args.exclude == ["x/*", "y/*"]


class TestMain:
    def test_prints_transformed_source(self, source_file, capsys):
        assert main([str(source_file)]) == 0
        out = capsys.readouterr().out
        assert out.startswith('import * as functionless from "functionless";\n')
        assert "new functionless.FunctionDecl(" in out

    def test_ir_only(self, source_file, capsys):
        main([str(source_file), "--ir-only"])
        out = capsys.readouterr().out
        assert "FunctionDecl([ParameterDecl('n')]" in out
        assert "import" not in out

    def test_json(self, source_file, capsys):
        main([str(source_file), "--json"])
        assert '"kind": "FunctionDecl"' in capsys.readouterr().out

    def test_excluded_file_printed_verbatim(self, source_file, capsys):
        main([str(source_file), "--exclude", str(source_file)])
        assert capsys.readouterr().out == SOURCE

    def test_module_option(self, source_file, capsys):
        main([str(source_file), "--module", "rt"])
        assert capsys.readouterr().out.startswith('import * as functionless from "rt";\n')
