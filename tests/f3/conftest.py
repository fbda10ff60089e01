"""Fixtures for F3 tests - CLI."""

import pytest
from typer.testing import CliRunner

from tracker.cli.commands import app


@pytest.fixture
def cli(tmp_path):
    """Invoke the CLI against an isolated data directory."""
    runner = CliRunner()
    env = {"TRACKER_DATA_DIR": str(tmp_path)}

    def _invoke(*args: str, input: str | None = None):
        return runner.invoke(app, list(args), env=env, input=input)

    return _invoke
