"""Step identifiers and the built-in actions upkeep knows how to run."""

from __future__ import annotations

from enum import Enum

from upkeep.errors import ConfigError


class Step(str, Enum):
    """Category an action belongs to, used for ``--only``/``--disable`` filtering."""

    ASDF = "asdf"
    ATOM = "atom"
    BIN = "bin"
    BREW_CASK = "brew_cask"
    BREW_FORMULA = "brew_formula"
    CARGO = "cargo"
    CHEZMOI = "chezmoi"
    CHOCOLATEY = "chocolatey"
    CHOOSENIM = "choosenim"
    COMPOSER = "composer"
    CONDA = "conda"
    CONFIG_UPDATE = "config_update"
    CONTAINERS = "containers"
    CUSTOM_COMMANDS = "custom_commands"
    DENO = "deno"
    DOTNET = "dotnet"
    EMACS = "emacs"
    FIRMWARE = "firmware"
    FLATPAK = "flatpak"
    FLUTTER = "flutter"
    FOSSIL = "fossil"
    GCLOUD = "gcloud"
    GEM = "gem"
    GITHUB_CLI_EXTENSIONS = "github_cli_extensions"
    GIT_REPOS = "git_repos"
    GO = "go"
    GNOME_SHELL_EXTENSIONS = "gnome_shell_extensions"
    HAXELIB = "haxelib"
    HOME_MANAGER = "home_manager"
    JETPACK = "jetpack"
    KAKOUNE = "kakoune"
    KREW = "krew"
    MACPORTS = "macports"
    MAS = "mas"
    MICRO = "micro"
    MYREPOS = "myrepos"
    NIX = "nix"
    NODE = "node"
    OPAM = "opam"
    PACSTALL = "pacstall"
    PEARL = "pearl"
    PIP3 = "pip3"
    PIPX = "pipx"
    PKG = "pkg"
    PKGIN = "pkgin"
    PNPM = "pnpm"
    POWERSHELL = "powershell"
    RACO = "raco"
    REMOTES = "remotes"
    RESTARTS = "restarts"
    RTCL = "rtcl"
    RUSTUP = "rustup"
    SCOOP = "scoop"
    SDKMAN = "sdkman"
    SHELDON = "sheldon"
    SHELL = "shell"
    SNAP = "snap"
    SPICETIFY = "spicetify"
    STACK = "stack"
    SYSTEM = "system"
    TLDR = "tldr"
    TLMGR = "tlmgr"
    TMUX = "tmux"
    TOOLBX = "toolbx"
    VAGRANT = "vagrant"
    VCPKG = "vcpkg"
    VIM = "vim"
    WINGET = "winget"
    WSL = "wsl"
    YADM = "yadm"


# Summary names of the built-in actions. Custom commands may not reuse them.
GIT_REPOS_ACTION = "Git repositories"
RESERVED_ACTION_NAMES = frozenset({GIT_REPOS_ACTION})

# Steps that have an action registered in the CLI.
ACTIONABLE_STEPS = frozenset({Step.GIT_REPOS, Step.CUSTOM_COMMANDS})


def parse_steps(values: list[str] | tuple[str, ...] | None, *, source: str) -> list[Step]:
    """Parse step names, rejecting anything outside the closed set."""
    steps: list[Step] = []
    for raw in values or ():
        name = str(raw).strip().lower().replace("-", "_")
        try:
            steps.append(Step(name))
        except ValueError as exc:
            valid = ", ".join(step.value for step in Step)
            raise ConfigError(f"{source}: unknown step `{raw}`. Valid steps: {valid}") from exc
    return steps


__all__ = ["ACTIONABLE_STEPS", "GIT_REPOS_ACTION", "RESERVED_ACTION_NAMES", "Step", "parse_steps"]
