"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- JSON / plain rendering of format_response, print_table, print_source
- Pipeline diagnostics routed through the global instance
"""

from __future__ import annotations

import json

import pytest

from specdash.importer import SpecImporter
from specdash.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    debug,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("specdash.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("specdash.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_flag_forces_plain_on_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO, no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_data("hello world")
        captured = capfd.readouterr()
        assert captured.out == "hello world\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error", "suggest"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method: str):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("message text")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "message text" in captured.err

    def test_error_prefix(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).error("broken $ref")
        assert capfd.readouterr().err == "Error: broken $ref\n"


class TestQuietAndVerbose:
    @pytest.mark.parametrize("method", ["info", "success", "suggest"])
    def test_quiet_suppresses(self, capfd, non_tty, method: str):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, method)("should not appear")
        assert capfd.readouterr().err == ""

    @pytest.mark.parametrize("method", ["warning", "error"])
    def test_quiet_keeps(self, capfd, non_tty, method: str):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, method)("important")
        assert "important" in capfd.readouterr().err

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("hidden")
        assert capfd.readouterr().err == ""

    def test_debug_prefix_when_verbose(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("GET x")
        assert capfd.readouterr().err == "[debug] GET x\n"


# ------------------------------------------------------------------ #
# Data rendering
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_json_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response({"title": "Café"})
        out = capfd.readouterr().out
        assert json.loads(out) == {"title": "Café"}
        assert "Café" in out

    def test_json_string_that_is_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response('{"a":1}')
        assert json.loads(capfd.readouterr().out) == {"a": 1}

    def test_plain_dict_as_key_value(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.format_response({"name": "pets", "tags": ["a", "b"]})
        assert capfd.readouterr().out.splitlines() == ["name\tpets", 'tags\t["a", "b"]']

    def test_plain_list_of_primitives(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.format_response(["Category", "Owner"])
        assert capfd.readouterr().out.splitlines() == ["Category", "Owner"]

    def test_rich_dict_produces_output(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH).format_response({"k": "v"})
        assert "k" in capfd.readouterr().out


class TestPrintTable:
    def test_plain_is_tsv(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_table(["Schema", "Type"], [["Pet", "object"], ["Tag", "string"]])
        assert capfd.readouterr().out == "Schema\tType\nPet\tobject\nTag\tstring\n"

    def test_json_is_list_of_objects(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON)
        mgr.print_table(["Schema", "Type"], [["Pet", "object"]])
        assert json.loads(capfd.readouterr().out) == [{"Schema": "Pet", "Type": "object"}]

    def test_rich_has_title(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.RICH)
        mgr.print_table(["Schema"], [["Pet"]], title="Schemas (1)")
        out = capfd.readouterr().out
        assert "Schemas (1)" in out
        assert "Pet" in out


class TestPrintSource:
    def test_plain_is_verbatim(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_source("openapi: 3.0.0\ninfo: {}\n", "yaml")
        assert capfd.readouterr().out == "openapi: 3.0.0\ninfo: {}\n"

    def test_json_mode_is_verbatim(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_source("a: 1\n", "yaml")
        assert capfd.readouterr().out == "a: 1\n"


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_lazy_default(self):
        reset_output()
        assert get_output() is get_output()

    def test_set_output(self):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr

    def test_module_debug_uses_global(self, capfd, verbose_output):
        debug("resolving #/components/schemas/Pet")
        assert "[debug] resolving #/components/schemas/Pet" in capfd.readouterr().err


class TestPipelineDiagnostics:
    def test_import_traces_stages_when_verbose(
        self, capfd, verbose_output, mock_fetcher, store, fixtures_dir
    ):
        importer = SpecImporter(fetcher=mock_fetcher({}), store=store)
        importer.import_file(fixtures_dir / "external" / "api.yaml", save=True)
        err = capfd.readouterr().err
        assert "[debug] Parsing api.yaml (yaml first)" in err
        assert "[debug] Inlining " in err
        assert "[debug] Validated OpenAPI 3.0.3 document" in err
        assert "[debug] Stored spec " in err

    def test_quiet_import_is_silent(self, capfd, quiet_output, mock_fetcher, store, fixtures_dir):
        importer = SpecImporter(fetcher=mock_fetcher({}), store=store)
        importer.import_file(fixtures_dir / "petstore_3.0.yaml")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == ""
