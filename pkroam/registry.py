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
"""The save registry: the saves the user configured, stored as a YAML
document in the config dir. Entries are never renumbered and ids are never
handed out twice, not even after a save was forgotten. Removing a save only
disconnects it by default, so it can be reconnected later under its old id."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .bolt import deprint, timestamp
from .exception import ConfigError, SaveFileError
from .gen3.save_files import SaveFile
from .rtemp import durable_write

# Try to use the C version (way faster), if that isn't possible fall back to
# the pure Python version
try:
    from yaml import CSafeDumper as SafeDumper
    from yaml import CSafeLoader as SafeLoader
except ImportError:
    from yaml import SafeDumper, SafeLoader

__author__ = u'PkRoam Team'

@dataclass(slots=True)
class SaveEntry:
    save_id: int
    path: Path
    connected: bool = True
    # Snapshot of the save taken when it was registered
    game: str | None = None
    trainer_name: str | None = None
    trainer_id: int | None = None
    added: str | None = None

    @classmethod
    def from_yaml(cls, yaml_entry: dict) -> SaveEntry:
        return cls(save_id=int(yaml_entry['id']),
                   path=Path(yaml_entry['path']),
                   connected=bool(yaml_entry.get('connected', True)),
                   game=yaml_entry.get('game'),
                   trainer_name=yaml_entry.get('trainer_name'),
                   trainer_id=yaml_entry.get('trainer_id'),
                   added=yaml_entry.get('added'))

    def to_yaml(self) -> dict:
        return {'id': self.save_id, 'path': os.fspath(self.path),
                'connected': self.connected, 'game': self.game,
                'trainer_name': self.trainer_name,
                'trainer_id': self.trainer_id, 'added': self.added}

class SaveRegistry(object):
    """Registered saves, keyed by their numeric id."""

    def __init__(self, registry_path):
        self.registry_path = Path(registry_path)
        self._entries: dict[int, SaveEntry] = {}
        # Persisted, so that ids of forgotten saves are not handed out again
        self._next_id = 1
        self.load()

    def load(self):
        """(Re)load the registry from disk. A missing file is an empty
        registry.

        :raise ConfigError: if the file is not valid YAML or malformed."""
        self._entries = {}
        self._next_id = 1
        try:
            with self.registry_path.open('r', encoding='utf-8') as ins:
                contents = yaml.load(ins, Loader=SafeLoader)
        except FileNotFoundError:
            return
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f'{self.registry_path}: failed to read save '
                              f'registry: {e}') from e
        if contents is None:
            return # Empty file
        try:
            for yaml_entry in contents['saves'] or ():
                entry = SaveEntry.from_yaml(yaml_entry)
                if entry.save_id in self._entries:
                    raise ConfigError(f'{self.registry_path}: duplicate save '
                                      f'id {entry.save_id}')
                self._entries[entry.save_id] = entry
            self._next_id = max(int(contents.get('next_id', 1)),
                                max(self._entries, default=0) + 1)
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f'{self.registry_path}: malformed save '
                              f'registry ({e!r})') from e

    def save(self):
        registry_data = {'next_id': self._next_id,
                         'saves': [e.to_yaml() for e in sorted(
                             self._entries.values(), key=lambda e: e.save_id)]}
        dumped = yaml.dump(registry_data, Dumper=SafeDumper,
                           sort_keys=False, allow_unicode=True)
        self.registry_path.parent.mkdir(parents=True, exist_ok=True)
        durable_write(self.registry_path, dumped.encode('utf-8'))

    def entries(self, include_disconnected=False) -> list[SaveEntry]:
        return [e for _sid, e in sorted(self._entries.items())
                if include_disconnected or e.connected]

    def get(self, save_id: int) -> SaveEntry:
        """:raise ConfigError: if no connected save has this id."""
        try:
            entry = self._entries[save_id]
        except KeyError:
            raise ConfigError(f'No save with id {save_id} is '
                              f'registered') from None
        if not entry.connected:
            raise ConfigError(f'Save {save_id} ({entry.path}) is '
                              f'disconnected')
        return entry

    def _find_by_path(self, save_path: Path) -> SaveEntry | None:
        for entry in self._entries.values():
            if entry.path == save_path:
                return entry
        return None

    def add(self, save_path) -> SaveEntry:
        """Validate the save at save_path and register it, reconnecting it if
        it was registered before. Writes the registry.

        :raise SaveFileError: if the save can't be read or is corrupt.
        :raise ConfigError: if the save is already registered."""
        save_path = Path(save_path).absolute()
        if not save_path.is_file():
            raise SaveFileError(save_path, u'Save does not exist')
        save_file = SaveFile(save_path)
        for warning in save_file.warnings:
            deprint(warning)
        trainer = save_file.trainer
        if (entry := self._find_by_path(save_path)) is not None:
            if entry.connected:
                raise ConfigError(f'{save_path} is already registered with '
                                  f'id {entry.save_id}')
            entry.connected = True
        else:
            entry = SaveEntry(self._next_id, save_path, added=timestamp())
            self._next_id += 1
            self._entries[entry.save_id] = entry
        entry.game = save_file.game.value
        entry.trainer_name = trainer.name
        entry.trainer_id = trainer.trainer_id
        self.save()
        return entry

    def remove(self, save_id: int, forget=False) -> SaveEntry:
        """Disconnect the save with the specified id, or drop it from the
        registry entirely if forget is True. Writes the registry."""
        if forget and save_id in self._entries:
            entry = self._entries.pop(save_id)
            self.save()
            return entry
        entry = self.get(save_id)
        entry.connected = False
        self.save()
        return entry
