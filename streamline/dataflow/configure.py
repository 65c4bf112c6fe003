import copy
import importlib
import logging
import os
from dataclasses import dataclass
from typing import Optional

from streamline.configurations import default

DEFAULT_CONFIG = copy.deepcopy(default.config)


@dataclass
class EditorConfig:
    """
    Settings for an editor session, built by :func:`apply_config`.
    """
    endpoint: str
    package: str
    module_name: str
    start_block: int
    stop_block: int
    token: Optional[str] = None
    stream_timeout: Optional[float] = None
    source_path: str = DEFAULT_CONFIG["source_path"]
    show_exceptions: bool = False


def load_update(name="config_overrides"):
    """
    Load named configuration from streamline.configurations folder, and
    update a copy of default configuration with user settings
    """
    config_module = importlib.import_module(
        "streamline.configurations.{name}".format(name=name))
    config = copy.deepcopy(DEFAULT_CONFIG)
    config.update(copy.deepcopy(config_module.config))
    return config


def load_config(name="config", fallback=True):
    """
    Look for configurations defined in the configurations directory
    if the name is not found, use the default configuration if fallback==True
    """
    try:
        config_module = importlib.import_module(
            "streamline.configurations.{name}".format(name=name))
        return copy.deepcopy(config_module.config)
    except ImportError:
        if fallback:
            return copy.deepcopy(DEFAULT_CONFIG)
        else:
            raise


def apply_config(user_config=None, user_overrides=None):
    """
    Merge *user_overrides* into *user_config* (or the default configuration)
    and return the resulting :class:`EditorConfig`.

    Keys missing from the user configuration take their default values.
    The token is read from the environment variable named by *token_env*.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if user_config is not None:
        config.update(copy.deepcopy(user_config))
    if user_overrides is not None:
        config.update(user_overrides)

    level = config.get("log_level", None)
    if level:
        logging.getLogger("streamline").setLevel(level)

    token_env = config.get("token_env", None)
    token = os.environ.get(token_env, None) if token_env else None

    return EditorConfig(
        endpoint=config["endpoint"],
        package=config["package"],
        module_name=config["module_name"],
        start_block=int(config["start_block"]),
        stop_block=int(config["stop_block"]),
        token=token,
        stream_timeout=config.get("stream_timeout", None),
        source_path=config["source_path"],
        show_exceptions=bool(config.get("show_exceptions", False)),
    )
