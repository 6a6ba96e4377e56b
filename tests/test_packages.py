import logging

import pytest

import fedora_fresh_install as ffi
from fedora_fresh_install import SetupError, parse_packages, validate_packages_file


def write_packages(tmp_path, text):
    path = tmp_path / "packages.txt"
    path.write_text(text, encoding="utf-8")
    return path


def test_parse_skips_comments_and_blank_lines(tmp_path):
    path = write_packages(tmp_path, "curl\n# comment\n\nneovim")
    assert parse_packages(path) == ["curl", "neovim"]


def test_parse_tolerates_indented_comments_and_multiple_names_per_line(tmp_path):
    path = write_packages(tmp_path, "   # indented comment\n\t\ngit vim\n  tmux  \n")
    assert parse_packages(path) == ["git", "vim", "tmux"]


def test_parse_empty_after_stripping(tmp_path):
    path = write_packages(tmp_path, "# nothing here\n\n   \n")
    assert parse_packages(path) == []


@pytest.mark.parametrize("char", list(";&|<>(){}"))
def test_parse_rejects_shell_metacharacters(tmp_path, char):
    path = write_packages(tmp_path, f"curl\ngit{char}x\n")
    with pytest.raises(SetupError, match="security risk"):
        parse_packages(path)


def test_parse_rejects_command_injection(tmp_path):
    path = write_packages(tmp_path, "git; rm -rf /\n")
    with pytest.raises(SetupError):
        parse_packages(path)


def test_metacharacters_in_comments_are_ignored(tmp_path):
    path = write_packages(tmp_path, "# tools (cli) & more\ncurl\n")
    assert parse_packages(path) == ["curl"]


def test_validate_missing_file(tmp_path):
    with pytest.raises(SetupError, match="not found"):
        validate_packages_file(tmp_path / "missing.txt")


def test_validate_directory_is_not_a_package_file(tmp_path):
    with pytest.raises(SetupError):
        validate_packages_file(tmp_path)


def test_install_runs_single_dnf_batch(tmp_path, commands, make_config):
    write_packages(tmp_path, "curl\n# comment\n\nneovim\n")
    setup = ffi.FedoraFreshInstall(make_config())

    assert setup.install_packages() == ["curl", "neovim"]
    assert commands.calls == [["sudo", "dnf", "install", "-y", "curl", "neovim"]]
    assert setup.installed_packages == ["curl", "neovim"]


def test_install_aborts_before_package_manager_on_injection(tmp_path, commands, make_config):
    write_packages(tmp_path, "git; rm -rf /\n")
    setup = ffi.FedoraFreshInstall(make_config())

    with pytest.raises(SetupError):
        setup.install_packages()
    assert not commands.ran("dnf")


def test_install_empty_list_is_a_warning(tmp_path, commands, make_config, caplog):
    caplog.set_level(logging.DEBUG)
    write_packages(tmp_path, "# only comments\n")
    setup = ffi.FedoraFreshInstall(make_config())

    assert setup.install_packages() == []
    assert commands.calls == []
    assert "No packages found" in caplog.text


def test_install_missing_file_is_fatal_even_in_dry_run(commands, make_config):
    setup = ffi.FedoraFreshInstall(make_config(DRY_RUN=True))
    with pytest.raises(SetupError, match="not found"):
        setup.install_packages()


def test_install_dnf_failure_is_fatal(tmp_path, commands, make_config):
    write_packages(tmp_path, "curl\n")
    commands.fail_on.append(("sudo", "dnf", "install"))
    setup = ffi.FedoraFreshInstall(make_config())

    with pytest.raises(SetupError, match="Failed to install packages"):
        setup.install_packages()


def test_install_dry_run_reports_command(tmp_path, commands, make_config, caplog):
    caplog.set_level(logging.DEBUG)
    write_packages(tmp_path, "curl\nneovim\n")
    setup = ffi.FedoraFreshInstall(make_config(DRY_RUN=True))

    setup.install_packages()
    assert commands.calls == []
    assert "[DRY-RUN] Would execute: sudo dnf install -y curl neovim" in caplog.text


def test_packages_file_option_accepts_absolute_path(tmp_path, commands, make_config):
    other = tmp_path / "lists" / "desktop.txt"
    other.parent.mkdir()
    other.write_text("gimp\n", encoding="utf-8")
    setup = ffi.FedoraFreshInstall(make_config(PACKAGES_FILE=str(other)))

    assert setup.install_packages() == ["gimp"]


def test_missing_dnf_is_fatal_with_hint(tmp_path, commands, make_config, monkeypatch):
    write_packages(tmp_path, "curl\n")
    monkeypatch.setattr(ffi, "command_exists", lambda cmd: cmd != "dnf")
    setup = ffi.FedoraFreshInstall(make_config())

    with pytest.raises(SetupError, match="dnf command not found") as excinfo:
        setup.install_packages()
    assert "install the dnf package" in excinfo.value.hint
    with pytest.raises(SetupError, match="dnf command not found"):
        setup.update_system()
    assert commands.calls == []
