"""Tests for the CLI helpers."""

import pytest

from slack_executor.commands.registry import CommandRegistry
from slack_executor.config import Settings
from slack_executor.main import cmd_run, print_executor_status


class TestCmdRun:
    """Tests for running a command message locally."""

    @pytest.mark.asyncio
    async def test_runs_and_prints_output(self, registry, capsys):
        code = await cmd_run(Settings(), registry, "```\n# executor: echo\nhi\n```")

        assert code == 0
        assert capsys.readouterr().out.endswith("hi\n")

    @pytest.mark.asyncio
    async def test_failed_command_returns_exit_status(self, registry, capsys):
        code = await cmd_run(Settings(), registry, "```\n# executor: fail\nx\n```")

        assert code == 3
        assert "status 3" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_parse_error(self, registry, capsys):
        code = await cmd_run(Settings(), registry, "no block here")

        assert code == 2
        assert "No fenced code block" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_unknown_executor(self, registry, capsys):
        code = await cmd_run(Settings(), registry, "```\n# executor: psql\nselect 1;\n```")

        assert code == 2
        assert "`psql` not found" in capsys.readouterr().err


class TestExecutorStatus:
    def test_lists_executors(self, registry, capsys):
        print_executor_status(registry)

        out = capsys.readouterr().out
        assert "echo: echo {{payload}}" in out
        assert "fail:" in out

    def test_warns_when_empty(self, capsys):
        print_executor_status(CommandRegistry())

        assert "None configured" in capsys.readouterr().out
