import os.path as osp
import shutil

import yaml

from mdpreview.utils.logger import logger


here = osp.dirname(osp.abspath(__file__))

USER_CONFIG_FILE = osp.join(osp.expanduser("~"), ".mdpreviewrc")


def default_template_path():
    return osp.join(here, "md-template.html")


def update_dict(target_dict, new_dict, validate_item=None):
    for key, value in new_dict.items():
        if validate_item:
            validate_item(key, value)
        if key not in target_dict:
            logger.warning("Skipping unexpected key in config: %s", key)
            continue
        if isinstance(target_dict[key], dict) and isinstance(value, dict):
            update_dict(target_dict[key], value, validate_item=validate_item)
        else:
            target_dict[key] = value


# -----------------------------------------------------------------------------


def get_default_config():
    config_file = osp.join(here, "default_config.yaml")
    with open(config_file, encoding="utf-8") as f:
        config = yaml.safe_load(f)

    # save default config to ~/.mdpreviewrc
    if not osp.exists(USER_CONFIG_FILE):
        try:
            shutil.copy(config_file, USER_CONFIG_FILE)
        except Exception:
            logger.warning("Failed to save config: %s", USER_CONFIG_FILE)

    return config


def validate_config_item(key, value):
    if key == "scroll_sync" and not isinstance(value, bool):
        raise ValueError(
            "Unexpected value for config key 'scroll_sync': {}".format(value)
        )
    if key == "zoom_percent" and (
        isinstance(value, bool)
        or not isinstance(value, int)
        or not 25 <= value <= 500
    ):
        raise ValueError(
            "Unexpected value for config key 'zoom_percent': {}".format(value)
        )
    if key in ("position_delay_ms", "refresh_delay_ms", "js_timeout_ms") and (
        isinstance(value, bool) or not isinstance(value, int) or value < 0
    ):
        raise ValueError(
            "Unexpected value for config key '{}': {}".format(key, value)
        )
    if key in ("template_path", "stylesheet_path") and value is not None:
        if not osp.isfile(osp.expanduser(str(value))):
            raise ValueError(
                "File not found for config key '{}': {}".format(key, value)
            )


def get_config(config_file_or_yaml=None, config_from_args=None):
    # 1. default config
    config = get_default_config()

    # 2. specified as file or yaml
    if config_file_or_yaml is not None:
        config_from_yaml = yaml.safe_load(config_file_or_yaml)
        if not isinstance(config_from_yaml, dict):
            with open(config_from_yaml, encoding="utf-8") as f:
                logger.info("Loading config file from: %s", config_from_yaml)
                config_from_yaml = yaml.safe_load(f)
        if config_from_yaml:
            update_dict(
                config, config_from_yaml, validate_item=validate_config_item
            )

    # 3. command line argument
    if config_from_args is not None:
        update_dict(
            config, config_from_args, validate_item=validate_config_item
        )

    return config
