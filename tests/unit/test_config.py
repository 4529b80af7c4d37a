"""Tests for TransformConfig and grammar selection."""

from __future__ import annotations

import os

import pytest

from reflector.config import TransformConfig
from reflector.parser import Parser, ParserFactory, language_for_path


class TestFromMapping:
    def test_defaults(self):
        config = TransformConfig.from_mapping({})
        assert config == TransformConfig()
        assert config.module == "functionless"
        assert config.prelude is True

    def test_single_exclude_string(self):
        config = TransformConfig.from_mapping({"exclude": "gen/*.ts"})
        assert config.exclude == ("gen/*.ts",)

    def test_exclude_list(self):
        config = TransformConfig.from_mapping({"exclude": ["a/*", "b/*"], "module": "rt"})
        assert config.exclude == ("a/*", "b/*")
        assert config.module == "rt"

    def test_unknown_option_rejected(self):
        with pytest.raises(ValueError, match="Unknown transform options"):
            TransformConfig.from_mapping({"exlude": []})


class TestExclusion:
    def test_relative_pattern_matches_relative_path(self):
        config = TransformConfig(exclude=("src/generated/*",))
        assert config.is_excluded("src/generated/api.ts")
        assert not config.is_excluded("src/handlers/api.ts")

    def test_absolute_path(self):
        config = TransformConfig(exclude=("lib/*.ts",))
        assert config.is_excluded(os.path.join(os.getcwd(), "lib", "x.ts"))

    def test_no_path_is_never_excluded(self):
        assert not TransformConfig(exclude=("*",)).is_excluded("")


class TestLanguageSelection:
    def test_tsx_by_extension(self):
        assert language_for_path("view.tsx") == "tsx"
        assert language_for_path("handler.ts") == "typescript"
        assert language_for_path("") == "typescript"

    def test_unsupported_language_rejected(self):
        class _NeverCalled(ParserFactory):
            def get_parser(self, language):
                raise AssertionError("factory must not be consulted")

        with pytest.raises(ValueError, match="Unsupported language"):
            Parser(_NeverCalled()).parse("x;", "python")
