from onboard.adapters.shell.command import CommandResult, CommandRunner
from onboard.adapters.shell.environment import base_env, pyenv_env

__all__ = ["CommandResult", "CommandRunner", "base_env", "pyenv_env"]
