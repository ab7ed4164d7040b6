"""Configuration loading for the rail presence tracker."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE = "transit.yaml"

TRAIN_FEEDS = ("trainview", "gtfs-rt")


@dataclass
class TransitConfig:
    """
    Tracker configuration.

    Attributes:
        person_entity_id: Home Assistant entity of the tracked person (e.g., "person.alice")
        home_assistant_url: Base URL of the Home Assistant instance
        home_assistant_bearer_token: Long-lived access token for Home Assistant
        train_feed: "trainview" (SEPTA TrainView JSON) or "gtfs-rt" (vehicle positions protobuf)
        gtfs_rt_url: Optional override for the GTFS-Realtime vehicle positions URL
    """
    person_entity_id: str
    home_assistant_url: str
    home_assistant_bearer_token: str
    train_feed: str = "trainview"
    gtfs_rt_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TransitConfig":
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping at the top of {CONFIG_FILE}")

        required = {}
        for key in ("person_entity_id", "home_assistant_url", "home_assistant_bearer_token"):
            value = data.get(key)
            if not isinstance(value, str):
                raise ConfigError(f"'{key}' must be set to a string in {CONFIG_FILE}")
            required[key] = value

        train_feed = data.get("train_feed", "trainview")
        if train_feed not in TRAIN_FEEDS:
            raise ConfigError(f"Unknown train_feed '{train_feed}', expected one of {', '.join(TRAIN_FEEDS)}")

        gtfs_rt_url = data.get("gtfs_rt_url")
        if gtfs_rt_url is not None and not isinstance(gtfs_rt_url, str):
            raise ConfigError("'gtfs_rt_url' must be a string")

        return cls(train_feed=train_feed, gtfs_rt_url=gtfs_rt_url, **required)


def config_path() -> Path:
    """Path of the config file inside the directory named by $HOME."""
    home_dir = os.environ.get("HOME")
    if not home_dir:
        raise ConfigError("Can not load HOME environment variable")
    return Path(home_dir) / CONFIG_FILE


def read_config(path: Optional[Path] = None) -> TransitConfig:
    """
    Load the tracker configuration.

    Args:
        path: Optional explicit path. Defaults to $HOME/transit.yaml.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    path = path or config_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Failed to open file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Unable to parse YAML file {path}: {e}") from e

    config = TransitConfig.from_dict(data)
    logger.debug(f"Loaded config for {config.person_entity_id} from {path}")
    return config
