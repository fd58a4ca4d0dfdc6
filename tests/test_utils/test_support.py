"""Tests for logging, template and prompt helpers."""

import io
import logging
from datetime import datetime

import pytest
from jinja2 import UndefinedError
from unittest.mock import patch
from rich.console import Console

from frigate_lxc.utils.logging import log_file_path, setup_logging
from frigate_lxc.utils.prompts import Prompter
from frigate_lxc.utils.templates import render_template


class TestLogging:
    """Test logging setup."""

    def test_log_file_name(self):
        path = log_file_path("/tmp", "install", now=datetime(2026, 10, 17, 9, 30, 5))

        assert str(path) == "/tmp/frigate-lxc-install-20261017-093005.log"

    def test_writes_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"

        root = logging.getLogger()
        try:
            setup_logging("DEBUG", log_file)
            logging.getLogger("frigate_lxc.test").debug("Stage: created")
            for handler in root.handlers:
                handler.flush()

            assert "Stage: created" in log_file.read_text()
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()


class TestTemplates:
    """Test template rendering."""

    def test_render(self):
        assert render_template("image: {{ image }}\n", image="frigate:stable") == "image: frigate:stable\n"

    def test_block_tags_keep_indentation(self):
        template = "devices:\n{% for d in devices %}\n  - {{ d }}\n{% endfor %}\n"

        assert render_template(template, devices=["/dev/a", "/dev/b"]) == "devices:\n  - /dev/a\n  - /dev/b\n"

    def test_undefined_variable_raises(self):
        with pytest.raises(UndefinedError):
            render_template("{{ missing }}")


class TestPrompter:
    """Test the Rich-backed prompter."""

    @pytest.fixture
    def prompter(self):
        return Prompter(Console(file=io.StringIO()))

    def test_ask_strips_and_defaults(self, prompter):
        with patch("frigate_lxc.utils.prompts.Prompt.ask", return_value="  frigate  "):
            assert prompter.ask("Hostname", default="frigate") == "frigate"

    def test_choose_default_on_empty(self, prompter):
        with patch("frigate_lxc.utils.prompts.Prompt.ask", return_value=""):
            assert prompter.choose("Select", ["a", "b"], default=0) == 0

    def test_choose_reasks_on_invalid(self, prompter):
        with patch("frigate_lxc.utils.prompts.Prompt.ask", side_effect=["9", "x", "2"]):
            assert prompter.choose("Select", ["a", "b"]) == 1

        assert "Invalid selection" in prompter.console.file.getvalue()
