"""Environment-backed settings shared by the runner and the CLI."""

from .env import env_flag, env_float, env_int, env_path

__all__ = ["env_flag", "env_float", "env_int", "env_path"]
