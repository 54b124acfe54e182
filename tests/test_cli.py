import pytest
from click.testing import CliRunner

from cli import cli
from config.models import NaryaConfig, Repo
from core.herald import Herald
from core.nimbus import helpers
from core.products import LintProduct


@pytest.fixture
def runner():
    return CliRunner()


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "narya, version 0.1.0" in result.output


def test_about(runner):
    result = runner.invoke(cli, ["--debug", "about"])
    assert result.exit_code == 0
    assert "narya (version 0.1.0)" in result.output


def test_help_lists_commands(runner):
    result = runner.invoke(cli, ["-h"])
    assert result.exit_code == 0
    for command in ("about", "setup", "lint", "nimbus"):
        assert command in result.output


def test_setup_passes_options(runner, mocker):
    clone = mocker.patch("cli.clone_repository")

    result = runner.invoke(cli, ["setup", "--ssh", "--location", "fx"])

    assert result.exit_code == 0
    herald = clone.call_args.args[0]
    assert isinstance(herald, Herald)
    assert herald.policy.session_marker == "💍"
    assert clone.call_args.kwargs == {"ssh": True, "location": "fx"}


def test_unexpected_error_exits_with_one(runner, mocker):
    mocker.patch("cli.clone_repository", side_effect=RuntimeError("boom"))

    result = runner.invoke(cli, ["setup"])

    assert result.exit_code == 1
    assert "Unexpected error" in result.output


def test_lint_outside_repository(runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(cli, ["lint"])

    assert result.exit_code == 1
    assert "💍 💥 Not a narya-compatible repository.\n" in result.output
    assert "▒ ▒ Expected .narya.yaml in project root.\n" in result.output


def test_lint_options(runner, mocker, tmp_path):
    repo = Repo(root=tmp_path, config=NaryaConfig(project="firefox-ios"))
    mocker.patch("cli.require_valid_repo", return_value=repo)
    linter_cls = mocker.patch("cli.Linter")

    result = runner.invoke(cli, ["lint", "-p", "focus", "-a", "-s"])

    assert result.exit_code == 0
    _, kwargs = linter_cls.call_args
    assert kwargs == {"product": LintProduct.FOCUS, "strict": True, "quiet": False}
    linter_cls.return_value.run.assert_called_once_with(lint_all=True, fix=False)


def test_lint_fix_defaults_to_all_files(runner, mocker, tmp_path):
    mocker.patch("cli.require_valid_repo", return_value=Repo(root=tmp_path, config=NaryaConfig(project="firefox-ios")))
    linter_cls = mocker.patch("cli.Linter")

    runner.invoke(cli, ["lint", "--fix"])
    linter_cls.return_value.run.assert_called_with(lint_all=True, fix=True)

    runner.invoke(cli, ["lint", "--fix", "--changed"])
    linter_cls.return_value.run.assert_called_with(lint_all=False, fix=True)


def test_lint_rejects_unknown_product(runner):
    result = runner.invoke(cli, ["lint", "-p", "klar"])
    assert result.exit_code == 2


def test_lint_info(runner, mocker):
    show_info = mocker.patch("cli.show_info")

    result = runner.invoke(cli, ["lint", "info"])

    assert result.exit_code == 0
    show_info.assert_called_once()


def test_nimbus_add_rejects_short_name(runner):
    result = runner.invoke(cli, ["nimbus", "add", "ab"])
    assert result.exit_code == 2
    assert "Feature name must be at least 3 characters long." in result.output


def test_nimbus_add_rejects_long_description(runner):
    result = runner.invoke(cli, ["nimbus", "add", "newTab", "-d", "x" * 101])
    assert result.exit_code == 2
    assert "Description must be 100 characters or less (currently 101 characters)." in result.output


def test_nimbus_add_and_remove(runner, firefox_repo, monkeypatch):
    monkeypatch.chdir(firefox_repo.root)
    yaml_path = firefox_repo.root / helpers.NIMBUS_FEATURES_PATH / "newTabFeature.yaml"

    result = runner.invoke(cli, ["nimbus", "add", "newTab", "--qa", "-d", "A brand new tab page"])
    assert result.exit_code == 0
    assert "🦊 Adding feature 'newTab'...\n" in result.output
    assert "🦊 Successfully added feature 'newTab'\n" in result.output
    assert yaml_path.exists()

    result = runner.invoke(cli, ["nimbus", "remove", "newTab"])
    assert result.exit_code == 0
    assert "💍 Successfully removed feature 'newTab'\n" in result.output
    assert not yaml_path.exists()


def test_nimbus_remove_unknown_feature(runner, firefox_repo, monkeypatch):
    monkeypatch.chdir(firefox_repo.root)

    result = runner.invoke(cli, ["nimbus", "remove", "ghost"])

    assert result.exit_code == 1
    assert "💍 💥 Feature YAML file not found" in result.output


def test_nimbus_refresh(runner, firefox_repo, monkeypatch):
    monkeypatch.chdir(firefox_repo.root)

    result = runner.invoke(cli, ["nimbus", "refresh"])

    assert result.exit_code == 0
    assert "💍 Successfully updated nimbus.fml.yaml\n" in result.output
