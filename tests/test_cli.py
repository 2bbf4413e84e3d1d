"""Tests for the command line interface."""

import json

import pytest

from timesheet_engine.cli import TimesheetCli, load_admin
from timesheet_engine.errors import NotFoundError
from timesheet_engine.services.authorization import Role


class TestResolveWeek:
    def test_prints_window(self, capsys):
        assert TimesheetCli().run(["resolve-week", "--week", "2025-W36"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["week"] == "2025-W36"
        assert data["week_start"] == "2025-09-01"
        assert data["week_end"] == "2025-09-07"
        assert data["start"] == "2025-09-01T00:00:00+00:00"
        assert data["end"] == "2025-09-08T00:00:00+00:00"
        assert data["label"] == "Sep 01 - Sep 07, 2025"

    def test_explicit_start(self, capsys):
        TimesheetCli().run(["resolve-week", "--week-start", "2025-09-03"])
        assert json.loads(capsys.readouterr().out)["week_start"] == "2025-09-03"

    def test_invalid_week_reports_error(self, capsys):
        assert TimesheetCli().run(["resolve-week", "--week", "2025-36"]) == 1
        assert "Invalid week format" in capsys.readouterr().err


class TestDispatch:
    def test_no_command(self, capsys):
        assert TimesheetCli().run([]) == 1

    def test_export_invoices_requires_week(self, capsys):
        assert TimesheetCli().run(["export-invoices"]) == 1
        assert "--week is required" in capsys.readouterr().err

    def test_unknown_command_exits(self):
        with pytest.raises(SystemExit):
            TimesheetCli().run(["frobnicate"])


class TestLoadAdmin:
    async def test_first_admin(self, session, seed):
        principal = await load_admin(session, None)
        assert principal.role is Role.ADMIN
        assert principal.user_id == seed.admin.user_id

    async def test_non_admin_id_rejected(self, session, seed):
        with pytest.raises(NotFoundError):
            await load_admin(session, seed.worker.user_id)
