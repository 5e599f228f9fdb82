"""Tests for the lightning-address command."""

import pytest
from typer.testing import CliRunner

from lightning_address.cli import cli
from lightning_address.crypto import get_public_key

NWC_URL = (
    f"nostr+walletconnect://{get_public_key('02' * 32)}"
    f"?relay=wss%3A%2F%2Frelay.example.com&secret={'01' * 32}"
)

CONFIG = """
[server]
domain = "example.com"
listen_addr = "127.0.0.1:8123"
log_dir = "{log_dir}"

[[users]]
name = "alice"
nwcs = {nwcs}
"""

runner = CliRunner()


def write_config(tmp_path, nwcs):
    path = tmp_path / "config.toml"
    path.write_text(
        CONFIG.format(log_dir=(tmp_path / "logs").as_posix(), nwcs=nwcs),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def served(monkeypatch):
    calls = []
    monkeypatch.setattr(
        "lightning_address.cli.uvicorn.run",
        lambda app, **kwargs: calls.append((app, kwargs)),
    )
    return calls


class TestServe:
    def test_missing_config_file(self, tmp_path, served):
        result = runner.invoke(cli, [str(tmp_path / "missing.toml")])

        assert result.exit_code == 1
        assert "error: cannot read" in result.output
        assert served == []

    def test_user_without_wallets(self, tmp_path, served):
        result = runner.invoke(cli, [str(write_config(tmp_path, "[]"))])

        assert result.exit_code == 1
        assert "user alice has no NWC configured" in result.output
        assert served == []

    def test_unknown_descriptor_scheme(self, tmp_path, served, restore_logging):
        result = runner.invoke(cli, [str(write_config(tmp_path, '["nwc://example"]'))])

        assert result.exit_code == 1
        assert served == []
        log_text = (tmp_path / "logs" / "lightning-address.log").read_text(encoding="utf-8")
        assert "invalid wallet configuration" in log_text
        assert "unsupported wallet descriptor scheme" in log_text

    def test_serves_on_listen_addr(self, tmp_path, served, restore_logging):
        result = runner.invoke(cli, [str(write_config(tmp_path, f'["{NWC_URL}"]'))])

        assert result.exit_code == 0, result.output
        assert len(served) == 1
        app, kwargs = served[0]
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 8123
        assert app.state.service.domain == "example.com"
        assert list(app.state.service.users) == ["alice"]
