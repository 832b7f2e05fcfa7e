from typer.testing import CliRunner

import okinascan
from okinascan.ui.cli import app


def test_get_version_matches_public_api() -> None:
    assert okinascan.get_version() == okinascan.__version__
    assert isinstance(okinascan.__version__, str)


def test_cli_version_flag() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0, result.stdout
    assert result.stdout.strip() == okinascan.get_version()
