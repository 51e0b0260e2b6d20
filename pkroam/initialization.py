# -*- coding: utf-8 -*-
#
# GPL License and Copyright Notice ============================================
#  This file is part of PkRoam.
#
#  PkRoam is free software: you can redistribute it and/or
#  modify it under the terms of the GNU General Public License
#  as published by the Free Software Foundation, either version 3
#  of the License, or (at your option) any later version.
#
#  PkRoam is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with PkRoam.  If not, see <https://www.gnu.org/licenses/>.
#
#  PkRoam copyright (C) 2023-2026 PkRoam Team
#
# =============================================================================
"""Functions for initializing PkRoam's directories and settings: resolving
the config dir and parsing pkroam.ini."""
from __future__ import annotations

import os
from configparser import ConfigParser, Error as ConfigParserError
from dataclasses import dataclass
from pathlib import Path

from . import env
from .bolt import deprint
from .exception import ConfigError

INI_NAME = u'pkroam.ini'
REGISTRY_NAME = u'saves.yaml'
_DEFAULT_STORAGE = u'storage'
_DEFAULT_ARCHIVE = u'archive'

@dataclass(slots=True)
class RoamConfig:
    """Everything the core needs to know about the environment. Passed
    explicitly into the engine, the catalog and the registry."""
    config_dir: Path
    # Where external files created by deposit/extract go
    storage_dir: Path
    # Where consumed external files go, None to delete them on insert
    archive_dir: Path | None
    debug: bool = False

    @property
    def registry_path(self) -> Path:
        return self.config_dir / REGISTRY_NAME

    @property
    def ini_path(self) -> Path:
        return self.config_dir / INI_NAME

def get_config_dir(cli_config_dir=None) -> tuple[Path, str]:
    """Return the config dir to use and a description of where it came
    from: the command line, the environment, or the OS default."""
    if cli_config_dir:
        return Path(cli_config_dir), u'Folder path specified on command ' \
                                     u'line (--config-dir)'
    if (env_dir := env.get_config_dir_override()) is not None:
        return env_dir, f'Folder path specified via ${env.CONFIG_DIR_ENV}'
    return env.get_local_app_data_path(), u'Default local data folder'

def _roam_ini_parser(roam_ini_path: Path) -> ConfigParser | None:
    roam_ini_parser = None
    if os.path.exists(roam_ini_path):
        roam_ini_parser = ConfigParser()
        try:
            roam_ini_parser.read(roam_ini_path, encoding='utf-8')
        except (ConfigParserError, UnicodeDecodeError) as e:
            raise ConfigError(f'{roam_ini_path}: {e}') from e
    return roam_ini_parser

def _get_ini_option(ini_parser, option_key) -> str | None:
    if not ini_parser:
        return None
    # section is case sensitive - key is not
    return ini_parser.get('General', option_key, fallback=None)

def _get_ini_bool(ini_parser, option_key) -> bool:
    if (raw_val := _get_ini_option(ini_parser, option_key)) is None:
        return False
    try:
        return ini_parser.getboolean('General', option_key)
    except ValueError:
        raise ConfigError(f'Invalid value for {option_key} in '
                          f'{INI_NAME}: {raw_val!r}') from None

def _resolve_dir(config_dir: Path, raw_path: str | None,
                 default: str | None) -> Path | None:
    if not raw_path:
        return None if default is None else config_dir / default
    ini_path = Path(os.path.expanduser(raw_path))
    # Relative paths in the ini are relative to the config dir
    return ini_path if ini_path.is_absolute() else config_dir / ini_path

def init_config(cli_config_dir=None, cli_debug=False) -> RoamConfig:
    """Resolve the config dir, read pkroam.ini (if any) and return the
    resulting configuration. Nothing is created on disk here, directories
    are made on first write."""
    config_dir, dir_info = get_config_dir(cli_config_dir)
    ini_parser = _roam_ini_parser(config_dir / INI_NAME)
    debug = cli_debug or _get_ini_bool(ini_parser, 'bDebug')
    archive_raw = _get_ini_option(ini_parser, 'sArchiveDir')
    # bArchive turns archiving on with the default folder
    archive_default = _DEFAULT_ARCHIVE if _get_ini_bool(
        ini_parser, 'bArchive') else None
    roam_config = RoamConfig(config_dir=config_dir,
        storage_dir=_resolve_dir(config_dir,
            _get_ini_option(ini_parser, 'sStorageDir'), _DEFAULT_STORAGE),
        archive_dir=_resolve_dir(config_dir, archive_raw, archive_default),
        debug=debug)
    if debug:
        deprint(f'Config dir: {config_dir} ({dir_info})')
        deprint(f'Storage dir: {roam_config.storage_dir}')
        deprint(f'Archive dir: {roam_config.archive_dir}')
    return roam_config
