#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Translation Settings
Handles loading and saving the translation repository configuration
"""

import configparser
from pathlib import Path
from typing import Optional

from config import CONFIG_SECTION, DEFAULT_META_INDEX_URL
from utils.core.logging import get_logger
from utils.core.paths import get_config_file_path

log = get_logger()


class TranslationSettings:
    """Translation repository settings stored in the [TranslationRepo] section of config.ini"""

    def __init__(self, config_path: Optional[Path] = None,
                 translation_repo_index: Optional[str] = None,
                 localized_data_dir: Optional[str] = None,
                 meta_index_url: str = DEFAULT_META_INDEX_URL):
        self._config_path = config_path
        self.translation_repo_index = translation_repo_index
        self.localized_data_dir = localized_data_dir
        self.meta_index_url = meta_index_url

    @property
    def config_path(self) -> Path:
        """Get the path to the config.ini file"""
        if self._config_path is None:
            self._config_path = get_config_file_path()
        return self._config_path

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "TranslationSettings":
        """Load settings from config.ini, keeping defaults for anything missing"""
        settings = cls(config_path)
        path = settings.config_path
        if not path.exists():
            log.debug("Config file not found, will create one")
            return settings

        try:
            config = configparser.ConfigParser()
            config.read(path, encoding='utf-8')
            if config.has_section(CONFIG_SECTION):
                section = config[CONFIG_SECTION]
                settings.translation_repo_index = section.get('translation_repo_index') or None
                settings.localized_data_dir = section.get('localized_data_dir') or None
                settings.meta_index_url = section.get('meta_index_url', fallback=DEFAULT_META_INDEX_URL)
                log.debug(f"Loaded translation settings from config: index={settings.translation_repo_index}")
        except configparser.Error as e:
            log.warning(f"Failed to read config file: {e}")

        return settings

    def save(self) -> bool:
        """Save settings to config.ini, preserving other sections"""
        path = self.config_path
        try:
            config = configparser.ConfigParser()

            # Load existing config if it exists
            if path.exists():
                config.read(path, encoding='utf-8')

            if not config.has_section(CONFIG_SECTION):
                config.add_section(CONFIG_SECTION)

            for key in ('translation_repo_index', 'localized_data_dir', 'meta_index_url'):
                value = getattr(self, key)
                if value:
                    config.set(CONFIG_SECTION, key, str(value))
                elif config.has_option(CONFIG_SECTION, key):
                    config.remove_option(CONFIG_SECTION, key)

            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                config.write(f)

            log.debug(f"Saved translation settings to config: {path}")
            return True
        except (OSError, configparser.Error) as e:
            log.warning(f"Failed to save config file: {e}")
            return False
