"""Tests for CLI commands."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from ideascout.__main__ import cmd_report


@pytest.mark.asyncio
@patch("ideascout.pipeline.run_daily_report", new_callable=AsyncMock)
async def test_report_rejects_malformed_date(mock_run, sample_config, capsys):
    with pytest.raises(SystemExit) as exc_info:
        await cmd_report(sample_config, ["foo"])

    assert exc_info.value.code == 2
    assert "YYYY-MM-DD" in capsys.readouterr().out
    mock_run.assert_not_awaited()


@pytest.mark.asyncio
async def test_report_for_given_date(sample_config, capsys):
    await cmd_report(sample_config, ["2024-05-01"])

    out = capsys.readouterr().out
    assert "2024-05-01" in out
