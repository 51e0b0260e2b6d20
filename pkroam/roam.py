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
"""This module starts PkRoam: it parses the command line, initializes the
configuration and runs the requested command. The commands themselves are
thin wrappers around the migration engine, the catalog and the registry."""
from __future__ import annotations

import platform
import sys
from pathlib import Path

from . import barg
from .bolt import LogFile, deprint
from .catalog import SaveCatalog, log_record_summaries, log_save_summaries
from .exception import CorruptExternalFile, DurableWriteFailed, FileError, \
    RoamError
from .gen3.locator import BoxAddress
from .initialization import RoamConfig, init_config
from .migration import MigrationEngine
from .registry import SaveRegistry
from .roam_files import ROAM_EXT, RoamFile, iter_roam_files

def dump_environment():
    """Dumps information about the environment, for debug output."""
    import yaml
    libyaml_ver = ('available' if yaml.__with_libyaml__
                   else 'not found (optional)')
    msg = ['Using PkRoam with the following environment:',
           f' - OS: {platform.platform()}',
           f' - Python: {sys.version}',
           f' - PyYAML: {yaml.__version__} (LibYAML: {libyaml_ver})']
    deprint('\n\t'.join(msg))

def _engine(config: RoamConfig) -> MigrationEngine:
    return MigrationEngine(config.storage_dir, config.archive_dir,
                           debug=config.debug)

def _address(opts) -> BoxAddress:
    return BoxAddress.from_user(opts.box, opts.slot)

def _warn_duplicates(config: RoamConfig, save_path) -> int:
    """Run the duplicate check of save_path against the storage folder and
    print a warning for every hit. Returns the number of hits."""
    duplicates = _engine(config).check_duplicates(
        save_path, iter_roam_files(config.storage_dir))
    for dup in duplicates:
        deprint(f'WARNING: {dup}', trace=False)
    return len(duplicates)

# Commands --------------------------------------------------------------------
def _cmd_inspect(opts, config: RoamConfig, log):
    target = Path(opts.path)
    if target.suffix.lower() == ROAM_EXT:
        RoamFile.read(target).dump_to_log(log)
        return
    save_file = SaveCatalog(config.debug).load_save(target)
    save_file.dump_to_log(log, verbose=opts.verbose)
    _warn_duplicates(config, target)

def _extract(config: RoamConfig, save_path, address: BoxAddress, dest=None):
    try:
        result = _engine(config).extract(save_path, address, dest)
    except DurableWriteFailed as e:
        if Path(e.in_name) == Path(save_path):
            # The external file got written, only the save did not
            deprint(f'The record was copied, but {save_path} could not be '
                    f'updated. Run extract again to finish moving it.',
                    trace=False)
        raise
    resumed = u' (finished an interrupted extract)' if result.resumed else ''
    deprint(f'Moved species {result.species} from {result.address} to '
            f'{result.roam_path}{resumed}', trace=False)

def _insert(config: RoamConfig, roam_path, save_path, address: BoxAddress):
    result = _engine(config).insert(roam_path, save_path, address)
    archived = f', archived to {result.archived_path}' \
        if result.archived_path else ''
    deprint(f'Moved species {result.species} from {result.roam_path} to '
            f'{result.address}{archived}', trace=False)

def _cmd_extract(opts, config: RoamConfig, log):
    _extract(config, opts.save, _address(opts), opts.dest)

def _cmd_insert(opts, config: RoamConfig, log):
    _insert(config, opts.roam_file, opts.save, _address(opts))

def _cmd_check(opts, config: RoamConfig, log):
    roam_paths = opts.roam_files or list(iter_roam_files(config.storage_dir))
    duplicates = _engine(config).check_duplicates(opts.save, roam_paths)
    log.setHeader(u'== Duplicate records')
    for dup in duplicates:
        log(f'  {dup}')
    if not duplicates:
        deprint(f'No duplicates found ({len(roam_paths)} external files '
                f'checked)', trace=False)
        return 0
    return 1

def _cmd_list_saves(opts, config: RoamConfig, log):
    entries = SaveRegistry(config.registry_path).entries()
    if not entries:
        deprint(u'No saves registered, use add-save to add one', trace=False)
        return
    summaries = SaveCatalog(config.debug).list_saves(e.path for e in entries)
    log_save_summaries(log, summaries, [e.save_id for e in entries])

def _cmd_list_mons(opts, config: RoamConfig, log):
    entry = SaveRegistry(config.registry_path).get(opts.save_id)
    summaries = SaveCatalog(config.debug).list_records(entry.path)
    log_record_summaries(log, summaries)
    _warn_duplicates(config, entry.path)

def _cmd_deposit(opts, config: RoamConfig, log):
    entry = SaveRegistry(config.registry_path).get(opts.save_id)
    _extract(config, entry.path, _address(opts))

def _cmd_withdraw(opts, config: RoamConfig, log):
    entry = SaveRegistry(config.registry_path).get(opts.save_id)
    roam_path = config.storage_dir / f'{opts.storage_id}{ROAM_EXT}'
    if not roam_path.is_file():
        raise FileError(roam_path, f'No stored record with id '
                                   f'{opts.storage_id} (see list-storage)')
    _insert(config, roam_path, entry.path, _address(opts))

def _cmd_add_save(opts, config: RoamConfig, log):
    entry = SaveRegistry(config.registry_path).add(opts.path)
    deprint(f'Registered {entry.path} ({entry.trainer_name}, {entry.game}) '
            f'with id {entry.save_id}', trace=False)

def _cmd_remove_save(opts, config: RoamConfig, log):
    entry = SaveRegistry(config.registry_path).remove(opts.save_id,
                                                      forget=opts.forget)
    action = u'Removed' if opts.forget else u'Disconnected'
    deprint(f'{action} save {entry.save_id} ({entry.path})', trace=False)

def _cmd_list_storage(opts, config: RoamConfig, log):
    log.setHeader(f'== Storage ({config.storage_dir})')
    for roam_path in iter_roam_files(config.storage_dir):
        try:
            roam_file = RoamFile.read(roam_path)
        except CorruptExternalFile as e:
            log(f'  {roam_path.stem}: [corrupt] {e.message}')
            continue
        prov = roam_file.provenance
        log(f'  {roam_path.stem}: {roam_file.record.nickname} - species '
            f'{roam_file.record.species}, from {prov.trainer_name} '
            f'({prov.game.value}) {prov.origin_address}')

_commands = {
    'inspect': _cmd_inspect,
    'extract': _cmd_extract,
    'insert': _cmd_insert,
    'check': _cmd_check,
    'list-saves': _cmd_list_saves,
    'list-mons': _cmd_list_mons,
    'deposit': _cmd_deposit,
    'withdraw': _cmd_withdraw,
    'add-save': _cmd_add_save,
    'remove-save': _cmd_remove_save,
    'list-storage': _cmd_list_storage,
}

def main(argv=None) -> int:
    """Run a single PkRoam command and return the exit code.

    :param argv: command line arguments, sys.argv[1:] if None"""
    opts = barg.parse(argv)
    config = None
    try:
        config = init_config(opts.config_dir, opts.debug)
        if config.debug:
            dump_environment()
        return _commands[opts.command](opts, config, LogFile(sys.stdout)) or 0
    except RoamError as e:
        deprint(f'Error: {e}', traceback=bool(config and config.debug),
                trace=False)
        return 1

def run():
    sys.exit(main())
