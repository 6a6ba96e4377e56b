#!/usr/bin/env python3
"""
Fedora Fresh Install
--------------------------------------------------

Sets up a freshly installed Fedora workstation for a single user:

  • Updates system packages and installs the packages listed in packages.txt
  • Clones the fedora-scripts repository into ~/.bashrc.d
  • Downloads and installs the Meslo Nerd Font
  • Installs Oh My Posh and writes the fastfetch and Oh My Posh configs

Every mutating step honours --dry-run: the planned action is reported and
nothing on disk or on the network is touched.

Note: This script must be run as a regular user with passwordless sudo,
NOT as root.
"""

# ----------------------------------------------------------------
# Imports & Initialization
# ----------------------------------------------------------------
import logging
import os
import re
import shutil
import signal
import subprocess
import sys
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Union

import click
import pyfiglet
from rich import box
from rich.console import Console, Group
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm
from rich.style import Style
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

APP_NAME = "Fedora Fresh Install"
VERSION = "1.0.0"
LOGGER_NAME = "fedora_fresh_install"

# Characters that must never reach the dnf command line.
INVALID_PACKAGE_CHARS = re.compile(r"[;&|<>(){}]")
FONT_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+\.(ttf|otf)$")
FONT_EXTENSIONS = (".ttf", ".otf")


# ----------------------------------------------------------------
# Nord Color Theme & Console Setup
# ----------------------------------------------------------------
class NordColors:
    """Nord color palette for consistent styling."""

    POLAR_NIGHT_1: str = "#2E3440"
    POLAR_NIGHT_4: str = "#4C566A"
    SNOW_STORM_1: str = "#D8DEE9"
    SNOW_STORM_2: str = "#E5E9F0"
    FROST_1: str = "#8FBCBB"
    FROST_2: str = "#88C0D0"
    FROST_3: str = "#81A1C1"
    FROST_4: str = "#5E81AC"
    RED: str = "#BF616A"
    YELLOW: str = "#EBCB8B"
    GREEN: str = "#A3BE8C"
    PURPLE: str = "#B48EAD"


nord_theme = Theme(
    {
        "info": f"{NordColors.FROST_2}",
        "warning": f"{NordColors.YELLOW}",
        "error": f"{NordColors.RED}",
        "success": f"{NordColors.GREEN}",
        "debug": f"{NordColors.POLAR_NIGHT_4}",
        "header": f"bold {NordColors.FROST_1}",
        "title": f"bold {NordColors.FROST_3}",
    }
)

console = Console(theme=nord_theme, highlight=False)


# ----------------------------------------------------------------
# Configuration Dataclass
# ----------------------------------------------------------------
@dataclass(frozen=True)
class Config:
    """Settings for one run. Relative paths resolve against WORK_DIR."""

    DRY_RUN: bool = False
    WORK_DIR: Path = field(default_factory=Path.cwd)

    # Inputs
    PACKAGES_FILE: str = "packages.txt"
    REPO_URL: str = "https://github.com/mmalaban/fedora-scripts.git"
    FONT_URL: str = (
        "https://github.com/ryanoasis/nerd-fonts/releases/download/v3.4.0/Meslo.zip"
    )
    OH_MY_POSH_INSTALL_URL: str = "https://ohmyposh.dev/install.sh"

    # Outputs
    TMP_DIR: str = "tmp"
    BASHRC_DIR: str = ".bashrc.d"
    FASTFETCH_CONFIG_DIR: str = ".config/fastfetch"
    FASTFETCH_CONFIG_FILE: str = "12.jsonc"
    OH_MY_POSH_CONFIG_DIR: str = ".config/oh-my-posh"
    OH_MY_POSH_CONFIG_FILE: str = "catppuccin_macchiato.omp.json"
    FONT_DIR: Path = field(
        default_factory=lambda: Path.home() / ".local" / "share" / "fonts"
    )
    LOG_FILE: Path = field(
        default_factory=lambda: Path.home()
        / ".local"
        / "state"
        / "fedora_fresh_install.log"
    )

    # Download limits
    DOWNLOAD_TIMEOUT: int = 300
    MAX_REDIRECTS: int = 5

    def resolve(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        return path if path.is_absolute() else Path(self.WORK_DIR) / path

    @property
    def packages_path(self) -> Path:
        return self.resolve(self.PACKAGES_FILE)

    @property
    def tmp_path(self) -> Path:
        return self.resolve(self.TMP_DIR)

    @property
    def bashrc_path(self) -> Path:
        return self.resolve(self.BASHRC_DIR)

    @property
    def font_path(self) -> Path:
        return self.resolve(self.FONT_DIR)

    @property
    def repo_clone_path(self) -> Path:
        return self.tmp_path / "fedora-scripts"

    @property
    def font_zip_path(self) -> Path:
        return self.tmp_path / "Meslo.zip"

    @property
    def font_extract_path(self) -> Path:
        return self.tmp_path / "meslo_fonts"

    @property
    def fastfetch_config_path(self) -> Path:
        return self.resolve(self.FASTFETCH_CONFIG_DIR) / self.FASTFETCH_CONFIG_FILE

    @property
    def oh_my_posh_config_path(self) -> Path:
        return self.resolve(self.OH_MY_POSH_CONFIG_DIR) / self.OH_MY_POSH_CONFIG_FILE

    @property
    def directories(self) -> List[Path]:
        return [
            self.tmp_path,
            self.bashrc_path,
            self.resolve(self.FASTFETCH_CONFIG_DIR),
            self.resolve(self.OH_MY_POSH_CONFIG_DIR),
            self.font_path,
        ]


# ----------------------------------------------------------------
# Configuration File Contents
# ----------------------------------------------------------------
FASTFETCH_CONFIG = r"""{
    "$schema": "https://github.com/fastfetch-cli/fastfetch/raw/dev/doc/json_schema.json",
    "logo": {
        "type": "none"
    },
    "display": {
        "separator": "->   ",
        "color": {
            "separator": "1"
        }
    },
    "modules": [
        {
            "type": "title",
            "format": "                                {6}{7}{8}"
        },
        "break",
        {
            "type": "custom",
            "format": "┌───────────────────────────── {#1}System Information{#} ─────────────────────────────┐"
        },
        "break",
        {
            "key": "     OS           ",
            "keyColor": "red",
            "type": "os"
        },
        {
            "key": "    󰌢 Machine      ",
            "keyColor": "green",
            "type": "host"
        },
        {
            "key": "     Kernel       ",
            "keyColor": "magenta",
            "type": "kernel"
        },
        {
            "key": "    󰅐 Uptime       ",
            "keyColor": "red",
            "type": "uptime"
        },
        {
            "key": "     Packages     ",
            "keyColor": "cyan",
            "type": "packages"
        },
        {
            "key": "    󰍹 Resolution   ",
            "keyColor": "yellow",
            "type": "display",
            "compactType": "original-with-refresh-rate"
        },
        {
            "key": "     WM           ",
            "keyColor": "blue",
            "type": "wm"
        },
        {
            "key": "     DE           ",
            "keyColor": "green",
            "type": "de"
        },
        {
            "key": "     Shell        ",
            "keyColor": "cyan",
            "type": "shell"
        },
        {
            "key": "     Terminal     ",
            "keyColor": "red",
            "type": "terminal"
        },
        {
            "key": "    󰻠 CPU          ",
            "keyColor": "yellow",
            "type": "cpu"
        },
        {
            "key": "    󰍛 GPU          ",
            "keyColor": "blue",
            "type": "gpu"
        },
        {
            "key": "     Disk         ",
            "keyColor": "green",
            "type": "disk"
        },
        {
            "key": "    󰑭 Memory       ",
            "keyColor": "magenta",
            "type": "memory"
        },
        "break",
        {
            "type": "custom",
            "format": "└──────────────────────────────────────────────────────────────────────────────┘"
        },
        "break",
        {
            "type": "colors",
            "paddingLeft": 34,
            "symbol": "circle"
        }
    ]
}
"""

OH_MY_POSH_CONFIG = r"""{
  "$schema": "https://raw.githubusercontent.com/JanDeDobbeleer/oh-my-posh/main/themes/schema.json",
  "palette": {
        "os": "#ACB0BE",
        "closer": "p:os",
        "pink": "#F5BDE6",
        "lavender": "#B7BDF8",
        "blue":  "#8AADF4"
  },
  "blocks": [
    {
      "type": "prompt",
      "alignment": "left",
      "segments": [
        {
          "foreground": "p:os",
          "style": "plain",
          "template": "{{.Icon}} ",
          "type": "os"
        },
        {
          "foreground": "p:blue",
          "style": "plain",
          "template": "{{ .UserName }}@{{ .HostName }} ",
          "type": "session"
        },
        {
          "foreground": "p:pink",
          "properties": {
            "folder_icon": "..\ue5fe..",
            "home_icon": "~",
            "style": "agnoster_short"
          },
          "style": "plain",
          "template": "{{ .Path }} ",
          "type": "path"
        },
        {
          "foreground": "p:lavender",
          "properties": {
            "branch_icon": "\ue725 ",
            "cherry_pick_icon": "\ue29b ",
            "commit_icon": "\uf417 ",
            "fetch_status": false,
            "fetch_upstream_icon": false,
            "merge_icon": "\ue727 ",
            "no_commits_icon": "\uf0c3 ",
            "rebase_icon": "\ue728 ",
            "revert_icon": "\uf0e2 ",
            "tag_icon": "\uf412 "
          },
          "template": "{{ .HEAD }} ",
          "style": "plain",
          "type": "git"
        },
        {
          "style": "plain",
          "foreground": "p:closer",
          "template": ":",
          "type": "text"
        }
      ]      
    },
    {
      "alignment": "left",
      "newline": true,
      "segments": [
        {
          "background": "p:error-background",
          "foreground": "p:backgrond-color",
          "style": "diamond",
          "leading_diamond": "\ue0c7",
          "trailing_diamond": "\ue0c6",
          "template": " \uf0e7 ",
          "type": "root"
        },
        {
          "background": "p:background-color",
          "foreground": "p:git-text",
          "style": "plain",
          "template": "{{ if .Root }}{{ else }}<p:symbol-color> $ </>{{ end }}",
          "type": "text"
        }
      ],
      "type": "prompt"
    }
  ],
  "final_space": true,
  "version": 3
}
"""


# ----------------------------------------------------------------
# Errors
# ----------------------------------------------------------------
class SetupError(Exception):
    """A fatal failure. The run stops and exits non-zero."""

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


# ----------------------------------------------------------------
# UI Helper Functions
# ----------------------------------------------------------------
def create_header(title: str) -> Panel:
    """
    Generate an ASCII art header with gradient styling using Pyfiglet.

    Args:
        title: The title text to display in the ASCII art

    Returns:
        A Rich Panel containing the styled header
    """
    term_width = shutil.get_terminal_size().columns
    adjusted_width = min(term_width - 4, 80)

    fonts = ["slant", "big", "standard", "small"]
    ascii_art = ""
    for font in fonts:
        try:
            fig = pyfiglet.Figlet(font=font, width=adjusted_width)
            ascii_art = fig.renderText(title)
            if ascii_art.strip():
                break
        except pyfiglet.FigletError:
            continue

    colors = [
        NordColors.FROST_1,
        NordColors.FROST_2,
        NordColors.FROST_3,
        NordColors.FROST_4,
    ]
    styled_text = Text()
    ascii_lines = [line for line in ascii_art.splitlines() if line.strip()]
    for i, line in enumerate(ascii_lines):
        styled_text.append(line, style=Style(color=colors[i % len(colors)], bold=True))
        styled_text.append("\n")

    return Panel(
        styled_text,
        border_style=Style(color=NordColors.FROST_1),
        padding=(1, 2),
        title=f"v{VERSION}",
        title_align="right",
    )


def print_section(title: str) -> None:
    console.print()
    console.print(f"[bold {NordColors.FROST_3}]{title}[/]")
    console.print(f"[{NordColors.FROST_3}]{'─' * len(title)}[/]")


def confirm_overwrite(question: str) -> bool:
    """Ask the user on the terminal. Anything but yes declines."""
    return Confirm.ask(question, default=False, console=console)


# ----------------------------------------------------------------
# Logger Setup
# ----------------------------------------------------------------
def setup_logger(
    log_file: Optional[Union[str, Path]] = None, verbose: bool = False
) -> logging.Logger:
    """
    Configure console logging through Rich and, when log_file is given,
    persistent file logging.

    Dry runs pass log_file=None so that nothing is written to disk.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    rich_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.addHandler(rich_handler)

    if log_file is not None:
        log_file = Path(log_file)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                logging.Formatter(
                    "[%(asctime)s] [%(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S"
                )
            )
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not set up file logging to {log_file}: {e}")

    return logger


# ----------------------------------------------------------------
# Helper Functions
# ----------------------------------------------------------------
def run_command(
    cmd: List[str],
    capture_output: bool = False,
    check: bool = True,
    timeout: Optional[int] = None,
    input_text: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """Run a command, logging it first. Errors propagate to the caller."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.debug(f"Running command: {' '.join(cmd)}")
    result = subprocess.run(
        cmd,
        capture_output=capture_output,
        text=True,
        check=check,
        timeout=timeout,
        input=input_text,
    )
    if capture_output and result.stderr and result.stderr.strip():
        logger.debug(f"Cmd stderr: {result.stderr.strip()}")
    return result


def command_exists(cmd: str) -> bool:
    return shutil.which(cmd) is not None


def validate_packages_file(path: Path) -> None:
    if not path.is_file():
        raise SetupError(
            f"Package file '{path}' not found",
            hint="Create it with one package name per line, or pass --packages-file",
        )
    if not os.access(path, os.R_OK):
        raise SetupError(f"Package file '{path}' is not readable")


def parse_packages(path: Union[str, Path]) -> List[str]:
    """
    Parse a package list file.

    Blank lines and lines starting with '#' (after optional whitespace) are
    ignored. The remaining text is rejected outright if it contains shell
    metacharacters, otherwise it is split on whitespace.

    Args:
        path: Path to the package list

    Returns:
        Package names in file order (possibly empty)

    Raises:
        SetupError: if the file cannot be read or contains unsafe characters
    """
    try:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise SetupError(f"Package file '{path}' is not readable: {e}") from e

    survivors = [
        line for line in lines if line.strip() and not line.lstrip().startswith("#")
    ]
    candidate = " ".join(survivors)
    if INVALID_PACKAGE_CHARS.search(candidate):
        raise SetupError(
            "Invalid characters detected in package list - potential security risk",
            hint=f"Remove any of ; & | < > ( ) {{ }} from {path}",
        )
    return candidate.split()


def is_valid_font_name(filename: str) -> bool:
    return FONT_NAME_PATTERN.fullmatch(filename) is not None


def is_within_directory(path: Union[str, Path], root: Union[str, Path]) -> bool:
    """True if path, with symlinks and '..' resolved, lies under root."""
    try:
        Path(path).resolve().relative_to(Path(root).resolve())
    except ValueError:
        return False
    return True


def find_font_candidates(source_dir: Union[str, Path]) -> List[Path]:
    candidates: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(source_dir):
        dirnames.sort()
        for name in sorted(filenames):
            if name.endswith(FONT_EXTENSIONS):
                candidates.append(Path(dirpath) / name)
    return candidates


def write_config(path: Path, content: str) -> None:
    """Write content to path via a temp file and rename, never leaving a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        # mkstemp creates 0600; give the config the usual umask-derived mode.
        umask = os.umask(0)
        os.umask(umask)
        os.chmod(tmp_name, 0o666 & ~umask)
        os.replace(tmp_name, path)
    except OSError:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


# ----------------------------------------------------------------
# Signal Handling
# ----------------------------------------------------------------
def signal_handler(signum, frame) -> None:
    """Turn termination signals into SystemExit so cleanup handlers unwind."""
    sig_name = signal.Signals(signum).name
    logging.getLogger(LOGGER_NAME).error(
        f"Script interrupted by {sig_name}. Cleaning up..."
    )
    sys.exit(128 + signum)


def install_signal_handlers() -> None:
    for sig in (signal.SIGINT, signal.SIGTERM, signal.SIGHUP):
        signal.signal(sig, signal_handler)


# ----------------------------------------------------------------
# Main Setup Class
# ----------------------------------------------------------------
class FedoraFreshInstall:
    """Runs every setup step in order, honouring the dry-run flag."""

    def __init__(
        self,
        config: Optional[Config] = None,
        confirm: Optional[Callable[[str], bool]] = None,
    ) -> None:
        self.config = config or Config()
        self.confirm = confirm or confirm_overwrite
        self.logger = logging.getLogger(LOGGER_NAME)
        self.start_time = time.monotonic()
        self.installed_packages: List[str] = []
        self.font_count = 0
        self.skipped_configs: List[str] = []
        self.failed_configs: List[str] = []

    # --- Step executor ---
    def dry_run(self, message: str) -> None:
        self.logger.info(f"[DRY-RUN] {message}")

    def perform(
        self,
        planned: str,
        action: Callable[[], Any],
        success: str,
        failure: str,
        hint: Optional[str] = None,
        fatal: bool = True,
    ) -> Any:
        """
        Report or execute one mutating action.

        In dry-run mode only the planned message is logged and action is never
        called. Otherwise action runs; command and OS failures become a
        SetupError, or just a warning when fatal is False.
        """
        if self.config.DRY_RUN:
            self.dry_run(planned)
            return None

        try:
            result = action()
        except subprocess.CalledProcessError as e:
            reason = f"exit code {e.returncode}"
        except subprocess.TimeoutExpired as e:
            reason = f"timed out after {e.timeout}s"
        except OSError as e:
            reason = str(e)
        else:
            self.logger.info(f"✓ {success}")
            return result

        if not fatal:
            self.logger.warning(f"{failure} ({reason})")
            return None
        raise SetupError(f"{failure} ({reason})", hint)

    def require_command(self, cmd: str, package: Optional[str] = None) -> None:
        if not command_exists(cmd):
            raise SetupError(
                f"{cmd} command not found",
                hint=f"Please install the {package or cmd} package first.",
            )

    def validate_directory(self, directory: Path, description: str) -> None:
        if not directory.is_dir():
            raise SetupError(f"{description} directory does not exist: {directory}")

    # --- Privilege check ---
    def check_privileges(self) -> None:
        self.logger.info("Checking for sudo privileges...")
        if os.geteuid() == 0:
            raise SetupError(
                "This script should NOT be run as root",
                hint="Please run as a regular user with sudo access",
            )
        try:
            result = run_command(["sudo", "-n", "true"], capture_output=True, check=False)
        except OSError as e:
            raise SetupError(
                f"Unable to run sudo: {e}", hint="Please install sudo first."
            ) from e
        if result.returncode != 0:
            raise SetupError(
                "This script requires sudo privileges",
                hint="Please ensure you have passwordless sudo access (sudo -n true)",
            )
        self.logger.info("✓ User has passwordless sudo access")

    # --- Packages ---
    def update_system(self) -> None:
        self.logger.info("Updating system packages...")
        cmd = ["sudo", "dnf", "update", "-y"]

        def update() -> None:
            self.require_command("dnf")
            run_command(cmd)

        self.perform(
            f"Would execute: {' '.join(cmd)}",
            update,
            "System updated successfully",
            "Failed to update system",
        )

    def install_packages(self) -> List[str]:
        path = self.config.packages_path
        self.logger.info(f"Installing packages from {path}...")
        validate_packages_file(path)

        packages = parse_packages(path)
        if not packages:
            self.logger.warning(f"No packages found in {path}")
            return []

        self.logger.info(f"Installing packages: {' '.join(packages)}")
        cmd = ["sudo", "dnf", "install", "-y", *packages]

        def install() -> None:
            self.require_command("dnf")
            run_command(cmd)

        self.perform(
            f"Would execute: {' '.join(cmd)}",
            install,
            "Packages installed successfully",
            "Failed to install packages",
        )
        self.installed_packages = packages
        return packages

    # --- Directories & repository ---
    def create_directory(self, directory: Path) -> None:
        planned = (
            f"Directory already exists: {directory}"
            if directory.is_dir()
            else f"Would create directory: {directory}"
        )
        self.perform(
            planned,
            lambda: directory.mkdir(parents=True, exist_ok=True),
            f"Created directory: {directory}",
            f"Failed to create directory: {directory}",
        )

    def create_directories(self) -> None:
        self.logger.info("Creating required directories...")
        for directory in self.config.directories:
            self.create_directory(directory)

    def clone_repository(self, repo_url: str, dest_dir: Path) -> None:
        self.logger.info(f"Cloning repository: {repo_url}")
        if self.config.DRY_RUN and dest_dir.is_dir():
            self.dry_run(f"Would remove existing repository clone: {dest_dir}")

        def clone() -> None:
            self.require_command("git")
            if dest_dir.is_dir():
                self.logger.warning("Removing existing repository clone")
                shutil.rmtree(dest_dir)
            run_command(["git", "clone", repo_url, str(dest_dir)])

        self.perform(
            f"Would execute: git clone {repo_url} {dest_dir}",
            clone,
            "Repository cloned successfully",
            "Failed to clone repository",
            hint="Check your network connection and that git can reach the host",
        )

    def copy_files(self, source_dir: Path, dest_dir: Path, description: str) -> None:
        self.logger.info(f"Copying {description} from {source_dir} to {dest_dir}...")

        # Top-level regular files only; subdirectories are not part of .bashrc.d.
        def copy() -> None:
            for item in sorted(source_dir.iterdir()):
                if item.is_file() and not item.is_symlink():
                    shutil.copy(item, dest_dir / item.name)

        self.perform(
            f"Would copy files from {source_dir} to {dest_dir}",
            copy,
            "Files copied successfully",
            "Failed to copy files",
        )

    def clone_fedora_scripts(self) -> None:
        self.clone_repository(self.config.REPO_URL, self.config.repo_clone_path)

    def copy_repo_files(self) -> None:
        self.copy_files(
            self.config.repo_clone_path, self.config.bashrc_path, "repository files"
        )

    # --- Font pipeline ---
    def download_file(self, url: str, dest_file: Path) -> None:
        self.logger.info(f"Downloading from: {url}")
        cmd = [
            "curl",
            "-fL",
            "--max-time",
            str(self.config.DOWNLOAD_TIMEOUT),
            "--max-redirs",
            str(self.config.MAX_REDIRECTS),
            "-o",
            str(dest_file),
            url,
        ]

        def download() -> None:
            self.require_command("curl")
            run_command(cmd)

        self.perform(
            f"Would download: {url} to {dest_file}",
            download,
            "File downloaded successfully",
            "Failed to download file",
            hint="Check your network connection",
        )

    def validate_download(self, path: Path) -> None:
        if self.config.DRY_RUN:
            return
        if not path.is_file() or path.stat().st_size == 0:
            raise SetupError(f"Downloaded file is missing or empty: {path}")

    def extract_zip(self, zip_file: Path, extract_dir: Path) -> None:
        self.logger.info("Extracting font files...")

        def extract() -> None:
            extract_dir.mkdir(parents=True, exist_ok=True)
            try:
                run_command(["unzip", "-q", "-o", str(zip_file), "-d", str(extract_dir)])
            except subprocess.CalledProcessError as e:
                raise SetupError(
                    f"Failed to extract files - file may be corrupted "
                    f"(unzip exit code {e.returncode})",
                    hint=f"Delete {zip_file} and run the script again",
                ) from e

        self.perform(
            f"Would extract {zip_file} to {extract_dir}",
            extract,
            "Files extracted successfully",
            "Failed to extract files",
        )

    def install_font_files(self, source_dir: Path, dest_dir: Path) -> int:
        """
        Copy font files from an extracted archive into the font directory.

        A candidate is copied only if it resolves to a path inside source_dir
        and its name passes FONT_NAME_PATTERN. Rejected or uncopyable files are
        skipped with a warning.

        Returns:
            The number of font files installed

        Raises:
            SetupError: if no font file could be installed
        """
        self.logger.info(f"Installing fonts to {dest_dir}...")
        if self.config.DRY_RUN:
            self.dry_run(f"Would install font files from {source_dir} to {dest_dir}")
            return 0

        font_count = 0
        for font_file in find_font_candidates(source_dir):
            filename = font_file.name
            if not is_within_directory(font_file, source_dir) or not font_file.is_file():
                self.logger.warning(f"Skipping file outside extraction directory: {font_file}")
                continue
            if not is_valid_font_name(filename):
                self.logger.warning(f"Skipping file with invalid name: {filename}")
                continue
            try:
                shutil.copyfile(font_file, dest_dir / filename)
            except OSError as e:
                self.logger.warning(f"Failed to copy font {filename}: {e}")
                continue
            font_count += 1

        if font_count == 0:
            raise SetupError(
                "No font files were installed",
                hint="The downloaded archive did not contain any usable .ttf/.otf files",
            )
        self.logger.info(f"✓ Installed {font_count} font files")
        self.font_count = font_count
        return font_count

    def update_font_cache(self, font_dir: Path) -> None:
        self.logger.info("Updating font cache...")
        self.perform(
            f"Would execute: fc-cache -fv {font_dir}",
            lambda: run_command(["fc-cache", "-fv", str(font_dir)], capture_output=True),
            "Font cache updated",
            "Failed to update font cache, fonts may not be immediately available",
            fatal=False,
        )

    def download_and_install_font(self) -> None:
        self.logger.info("Downloading Meslo Nerd Font...")
        cfg = self.config

        if cfg.DRY_RUN:
            self.dry_run("Would check if unzip command is available")
        else:
            self.require_command("unzip")
            self.validate_directory(cfg.tmp_path, "tmp")

        self.download_file(cfg.FONT_URL, cfg.font_zip_path)
        self.validate_download(cfg.font_zip_path)
        self.extract_zip(cfg.font_zip_path, cfg.font_extract_path)
        if not cfg.DRY_RUN:
            self.validate_directory(cfg.font_path, "Font")
        self.install_font_files(cfg.font_extract_path, cfg.font_path)
        self.update_font_cache(cfg.font_path)

    # --- Configuration files ---
    def check_overwrite(self, config_path: Path, config_name: str) -> bool:
        """Return True if config_path may be written. Never prompts in dry-run."""
        if self.config.DRY_RUN:
            if config_path.is_file():
                self.dry_run(f"Config file already exists: {config_path}")
                self.dry_run("Would prompt to overwrite existing file")
            else:
                self.dry_run(f"Would create {config_name} config: {config_path}")
            return True

        if config_path.is_file():
            self.logger.warning(f"{config_name} config file already exists: {config_path}")
            if not self.confirm("Do you want to overwrite it?"):
                self.logger.info(f"Skipping {config_name} configuration creation")
                return False
        return True

    def create_config(self, config_path: Path, content: str, config_name: str) -> bool:
        """
        Write one configuration file.

        A write failure is logged and recorded in failed_configs instead of
        raised, so the other configuration is still attempted.
        """
        self.logger.info(f"Creating {config_name} configuration...")
        if not self.check_overwrite(config_path, config_name):
            self.skipped_configs.append(config_name)
            return False

        try:
            self.perform(
                f"{config_name} configuration would be created: {config_path}",
                lambda: write_config(config_path, content),
                f"{config_name} configuration created: {config_path}",
                f"Failed to create {config_name} configuration",
            )
        except SetupError as e:
            self.logger.error(str(e))
            self.failed_configs.append(config_name)
            return False
        return True

    def create_fastfetch_config(self) -> bool:
        return self.create_config(
            self.config.fastfetch_config_path, FASTFETCH_CONFIG, "fastfetch"
        )

    def create_oh_my_posh_config(self) -> bool:
        return self.create_config(
            self.config.oh_my_posh_config_path, OH_MY_POSH_CONFIG, "Oh My Posh"
        )

    def install_oh_my_posh(self) -> None:
        self.logger.info("Installing Oh My Posh...")
        url = self.config.OH_MY_POSH_INSTALL_URL

        def install() -> None:
            self.require_command("curl")
            script = run_command(["curl", "-fsSL", url], capture_output=True).stdout
            run_command(["bash", "-s"], input_text=script)

        self.perform(
            f"Would execute: curl -s {url} | bash -s",
            install,
            "Oh My Posh installed successfully",
            "Failed to install Oh My Posh",
            hint="Check your network connection",
        )

    # --- Cleanup ---
    def cleanup(self) -> None:
        self.logger.info("Cleaning up temporary files...")
        tmp_dir = self.config.tmp_path

        if self.config.DRY_RUN:
            if tmp_dir.is_dir():
                self.dry_run(f"Would remove temporary directory: {tmp_dir}")
            self.logger.info("✓ Cleanup would be completed")
            return

        if not tmp_dir.is_dir():
            return
        try:
            shutil.rmtree(tmp_dir)
        except OSError as e:
            # Raising here would mask the error that ended the run.
            self.logger.error(f"Failed to remove temporary directory {tmp_dir}: {e}")
            return
        self.logger.info("✓ Cleanup completed")

    @contextmanager
    def scratch_directory(self) -> Iterator[Path]:
        """Scope for the scratch directory; it is removed on every exit path."""
        try:
            yield self.config.tmp_path
        finally:
            self.cleanup()

    # --- Summary ---
    def print_summary(self) -> None:
        cfg = self.config
        dry = cfg.DRY_RUN
        elapsed = time.monotonic() - self.start_time
        minutes, seconds = divmod(elapsed, 60)

        directories = ", ".join(str(d) for d in cfg.directories)
        if dry:
            rows = [
                "System would be updated",
                f"Packages would be installed from {cfg.packages_path}",
                f"Directories would be created: {directories}",
                f"Repository would be cloned and files copied to {cfg.bashrc_path}",
                "Meslo Nerd Font would be downloaded and installed",
                "Fastfetch configuration would be created",
                "Oh My Posh would be installed and configured",
                "Temporary files would be cleaned up",
            ]
        else:
            rows = [
                "System updated",
                f"{len(self.installed_packages)} packages installed from {cfg.packages_path}",
                f"Directories created: {directories}",
                f"Repository cloned and files copied to {cfg.bashrc_path}",
                f"Meslo Nerd Font downloaded and installed ({self.font_count} files)",
                "Oh My Posh installed",
            ]
            for name in ("fastfetch", "Oh My Posh"):
                if name in self.skipped_configs:
                    rows.append(f"Existing {name} configuration kept")
                else:
                    rows.append(f"{name} configuration created")
            rows.append("Temporary files cleaned up")

        table = Table(
            title="Summary of actions that WOULD be performed"
            if dry
            else "Summary of actions performed",
            title_style=f"bold {NordColors.FROST_1}",
            border_style=f"{NordColors.FROST_3}",
            box=box.ROUNDED,
            show_header=False,
        )
        table.add_column("Status", style=f"bold {NordColors.GREEN}", width=3)
        table.add_column("Action")
        for row in rows:
            table.add_row("✓", row)

        footer = (
            "To actually execute these changes, run the script without --dry-run"
            if dry
            else "Please restart your terminal or source your shell configuration to apply changes."
        )
        console.print()
        console.print(
            Panel(
                Group(
                    table,
                    Text(
                        f"Total elapsed time: {int(minutes)}m {int(seconds)}s",
                        style=f"{NordColors.FROST_2}",
                    ),
                    Text(footer, style=f"bold {NordColors.YELLOW}"),
                ),
                title="Dry-run completed successfully!" if dry else "Setup completed successfully!",
                title_align="center",
                border_style=f"bold {NordColors.FROST_1}",
                padding=(1, 2),
            )
        )

    # --- Orchestration ---
    def run(self) -> int:
        """Run all steps in order. Returns the process exit code."""
        steps = [
            ("Privilege Check", self.check_privileges),
            ("System Update", self.update_system),
            ("Package Installation", self.install_packages),
            ("Directory Creation", self.create_directories),
            ("Repository Clone", self.clone_fedora_scripts),
            ("Repository Files", self.copy_repo_files),
            ("Meslo Nerd Font", self.download_and_install_font),
            ("Fastfetch Configuration", self.create_fastfetch_config),
            ("Oh My Posh Installation", self.install_oh_my_posh),
            ("Oh My Posh Configuration", self.create_oh_my_posh_config),
        ]

        if self.config.DRY_RUN:
            self.logger.info("Starting Fedora setup script in DRY-RUN mode...")
            self.logger.info("No actual changes will be made to your system")
        else:
            self.logger.info("Starting Fedora setup script...")

        try:
            with self.scratch_directory():
                for title, step in steps:
                    print_section(title)
                    step()
                if self.failed_configs:
                    raise SetupError(
                        f"Failed to write configuration: {', '.join(self.failed_configs)}"
                    )
        except SetupError as e:
            self.logger.error(str(e))
            if e.hint:
                self.logger.error(e.hint)
            return 1

        self.print_summary()
        return 0


def run_setup(
    config: Optional[Config] = None, confirm: Optional[Callable[[str], bool]] = None
) -> int:
    return FedoraFreshInstall(config, confirm=confirm).run()


# ----------------------------------------------------------------
# Main Entry Point
# ----------------------------------------------------------------
class SetupCommand(click.Command):
    """Command whose usage errors exit 1 like every other fatal condition."""

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


@click.command(
    cls=SetupCommand, context_settings={"help_option_names": ["-h", "--help"]}
)
@click.option("--dry-run", is_flag=True, help="Show what would be done without executing")
@click.option(
    "--packages-file",
    default="packages.txt",
    show_default=True,
    help="Package list, one package per line; '#' starts a comment line",
)
@click.option("--verbose", is_flag=True, help="Also show every command that is run")
def main(dry_run: bool, packages_file: str, verbose: bool) -> None:
    """
    Set up a Fedora system with custom configurations.

    Installs packages, downloads fonts, and configures fastfetch and Oh My Posh.
    """
    config = Config(DRY_RUN=dry_run, PACKAGES_FILE=packages_file)
    setup_logger(None if dry_run else config.LOG_FILE, verbose=verbose)
    install_signal_handlers()

    console.print(create_header(APP_NAME))
    sys.exit(run_setup(config))


if __name__ == "__main__":
    main()
