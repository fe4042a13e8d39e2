"""
Tests for the command-line interface
"""
import pytest
from rich.console import Console
from typer.testing import CliRunner

from shellpair.adapters.cli import common, runtime
from shellpair.adapters.cli.app import app
from shellpair.core.exceptions import ProfileError
from shellpair.infrastructure.secrets.memory_store import MemorySecretStore
from shellpair.infrastructure.state.profile_store import FileProfileStore


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    monkeypatch.setattr(runtime, "KeyringSecretStore", lambda service: MemorySecretStore())
    monkeypatch.setattr(common.prompts, "console", Console(width=200))
    return {
        "HOME": str(tmp_path),
        "SHELLPAIR_PROFILES_DIR": str(tmp_path / "profiles"),
    }


class TestParseTarget:
    @pytest.mark.parametrize("text, expected", [
        ("box", (None, "box", None)),
        ("bob@box", ("bob", "box", None)),
        ("bob@10.0.0.5:2222", ("bob", "10.0.0.5", 2222)),
        ("  box:22 ", (None, "box", 22)),
    ])
    def test_valid(self, text, expected):
        assert runtime.parse_target(text) == expected

    @pytest.mark.parametrize("text", ["", "bob@", "box:port", "a@b@c"])
    def test_invalid(self, text):
        with pytest.raises(ProfileError):
            runtime.parse_target(text)


class TestProfileCommands:
    def test_add_list_remove(self, cli_env, tmp_path):
        runner = CliRunner()

        result = runner.invoke(
            app,
            ["profile", "add", "bob@10.0.0.5", "--name", "build box", "--group", "east", "--tag", "ci"],
            env=cli_env,
        )
        assert result.exit_code == 0, result.output

        profiles = FileProfileStore(tmp_path / "profiles").list()
        assert [p.title for p in profiles] == ["build box"]
        assert profiles[0].tags == frozenset({"ci"})

        result = runner.invoke(app, ["profile", "list"], env=cli_env)
        assert result.exit_code == 0, result.output
        assert "build box" in result.output
        assert "bob@10.0.0.5:22" in result.output

        result = runner.invoke(app, ["profile", "remove", "build box", "--yes"], env=cli_env)
        assert result.exit_code == 0, result.output
        assert FileProfileStore(tmp_path / "profiles").list() == []

    def test_add_requires_user(self, cli_env):
        result = CliRunner().invoke(app, ["profile", "add", "10.0.0.5"], env=cli_env)

        assert result.exit_code != 0

    def test_remove_unknown(self, cli_env):
        result = CliRunner().invoke(app, ["profile", "remove", "ghost", "--yes"], env=cli_env)

        assert result.exit_code == 1

    def test_invalid_settle_delay(self, cli_env):
        result = CliRunner().invoke(app, ["--settle-delay", "-1", "profile", "list"], env=cli_env)

        assert result.exit_code == 1
