"""
Configuration Tests
===================

Tests for address parsing and GeneratorConfig.
"""

from pathlib import Path

import pytest

from c64prg.config import (
    DEFAULT_MESSAGE,
    GeneratorConfig,
    ProgramShape,
    parse_address,
)
from c64prg.errors import ConfigurationError


ENV_VARS = [
    "C64PRG_MACHINE",
    "C64PRG_LOAD_ADDRESS",
    "C64PRG_LINE_NUMBER",
    "C64PRG_MESSAGE",
    "C64PRG_OUTPUT",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every C64PRG_* variable for the duration of a test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestParseAddress:
    """Tests for parse_address()."""

    @pytest.mark.parametrize("text,expected", [
        ("$0801", 0x0801),
        ("0x1001", 0x1001),
        ("0X1001", 0x1001),
        ("2049", 2049),
        (" $C000 ", 0xC000),
    ])
    def test_valid(self, text, expected):
        assert parse_address(text) == expected

    @pytest.mark.parametrize("text", ["", "$", "banana", "$10000", "-1"])
    def test_invalid(self, text):
        with pytest.raises(ConfigurationError):
            parse_address(text)


class TestGeneratorConfig:
    """Tests for GeneratorConfig."""

    def test_defaults(self, clean_env):
        config = GeneratorConfig.from_env()
        assert config.machine == "c64"
        assert config.load_address is None
        assert config.effective_load_address == 0x0801
        assert config.line_number == 10
        assert config.message == DEFAULT_MESSAGE
        assert config.shape is ProgramShape.MESSAGE
        assert config.output == Path("hello.prg")

    def test_from_env(self, clean_env):
        clean_env.setenv("C64PRG_MACHINE", "vic20")
        clean_env.setenv("C64PRG_LOAD_ADDRESS", "$1201")
        clean_env.setenv("C64PRG_LINE_NUMBER", "100")
        clean_env.setenv("C64PRG_MESSAGE", "HI")
        clean_env.setenv("C64PRG_OUTPUT", "out.prg")

        config = GeneratorConfig.from_env()
        assert config.profile.name == "vic20"
        assert config.effective_load_address == 0x1201
        assert config.line_number == 100
        assert config.message == "HI"
        assert config.output == Path("out.prg")

    def test_empty_message_from_env(self, clean_env):
        """An empty message variable is a valid (empty) message."""
        clean_env.setenv("C64PRG_MESSAGE", "")
        assert GeneratorConfig.from_env().message == ""

    def test_invalid_line_number_env(self, clean_env):
        clean_env.setenv("C64PRG_LINE_NUMBER", "ten")
        with pytest.raises(ConfigurationError, match="C64PRG_LINE_NUMBER"):
            GeneratorConfig.from_env()

    def test_invalid_address_env(self, clean_env):
        clean_env.setenv("C64PRG_LOAD_ADDRESS", "nowhere")
        with pytest.raises(ConfigurationError):
            GeneratorConfig.from_env()

    def test_validate(self):
        GeneratorConfig(machine="VIC20-8K", load_address=0, line_number=63999).validate()

    @pytest.mark.parametrize("kwargs", [
        {"machine": "pet"},
        {"load_address": 0x10000},
        {"line_number": 64000},
    ])
    def test_validate_rejects(self, kwargs):
        with pytest.raises(ConfigurationError):
            GeneratorConfig(**kwargs).validate()
