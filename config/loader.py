import os
import re
import yaml
from typing import Any, Dict, IO, Union

from utils.errors import ConfigError

ENV_VAR_MATCHER = re.compile(r"\$\{(\w+)\}")
# Plain scalars that mention at least one ${VAR} get the !env tag implicitly
ENV_VAR_SCALAR = re.compile(r"^.*\$\{\w+\}.*$")


class _EnvVarLoader(yaml.SafeLoader):
    """SafeLoader that resolves ${VAR} references from the environment."""


def _substitute(match: "re.Match[str]") -> str:
    name = match.group(1)
    value = os.getenv(name)
    if value is None:
        raise ConfigError(f"Environment variable '{name}' not found for substitution in config.")
    return value


def _env_var_constructor(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    """
    Replaces every ${VAR} in a scalar, so `project: ${NARYA_PROJECT}` and
    `main_branch: ${USER}/main` both work.
    """
    return ENV_VAR_MATCHER.sub(_substitute, loader.construct_scalar(node))


_EnvVarLoader.add_constructor("!env", _env_var_constructor)
_EnvVarLoader.add_implicit_resolver("!env", ENV_VAR_SCALAR, None)


def load_config(config_file: Union[str, IO[str]]) -> Dict[str, Any]:
    """
    Loads a YAML configuration document.

    Args:
        config_file: YAML text or a file-like object containing it.

    Returns:
        A dictionary containing the configuration. An empty document yields {}.

    Raises:
        ConfigError: If the document cannot be parsed or is not a mapping.
    """
    try:
        config = yaml.load(config_file, Loader=_EnvVarLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML configuration: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"Expected a mapping at the top level, got {type(config).__name__}.")
    return config
