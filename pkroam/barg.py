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
"""This module parses the command line that was used to start PkRoam."""

import argparse

def _positive_int(raw_val):
    try:
        int_val = int(raw_val)
    except ValueError:
        raise argparse.ArgumentTypeError(f'{raw_val!r} is not a number')
    if int_val < 1:
        raise argparse.ArgumentTypeError(f'{raw_val} must be at least 1')
    return int_val

def parse(argv=None):
    """Helper function to define commandline arguments"""
    parser = argparse.ArgumentParser(prog='pkroam',
        description='Move creature records between third generation saves '
                    'and external record files.')

    #### Individual Arguments ####
    parser.add_argument('-c', '--config-dir',
                        action='store',
                        default='',
                        dest='config_dir',
                        help='Use this folder for pkroam.ini, the save '
                             'registry and the storage folder. Overrides '
                             '$PKROAM_CONFIG_DIR.')
    parser.add_argument('-d', '--debug',
                        action='store_true',
                        dest='debug',
                        help='Print debug messages (same as bDebug in '
                             'pkroam.ini).')

    #### Commands ####
    commands = parser.add_subparsers(dest='command', metavar='<command>')
    commands.required = True
    def command(name, descr):
        return commands.add_parser(name, help=descr, description=descr)
    def arg(cmd_parser, dest, h, **kwargs):
        cmd_parser.add_argument(dest, help=h, **kwargs)
    def address_args(cmd_parser):
        arg(cmd_parser, 'box', 'Box number (1-14).', type=_positive_int)
        arg(cmd_parser, 'slot', 'Slot number within the box (1-30).',
            type=_positive_int)

    ### Low level commands, working on paths ###
    h = ('Show the trainer, party and boxes of a save, or the contents of an '
         'external record file.')
    inspect = command('inspect', h)
    arg(inspect, 'path', 'Save or .pk3r file to inspect.')
    inspect.add_argument('-v', '--verbose', action='store_true',
                         help='Show all fields of every box record.')
    extract = command('extract',
                      'Move a box record out of a save into an external file.')
    arg(extract, 'save', 'Save to extract from.')
    address_args(extract)
    extract.add_argument('-o', '--output', dest='dest', default=None,
                         help='External file to create. Defaults to a new '
                              'file in the storage folder.')
    insert = command('insert',
                     'Move the record in an external file into a save.')
    arg(insert, 'roam_file', 'External record file to insert.')
    arg(insert, 'save', 'Save to insert into.')
    address_args(insert)
    check = command('check', 'Look for records that exist both in a save '
                             'and in an external file.')
    arg(check, 'save', 'Save to check.')
    arg(check, 'roam_files', 'External files to check. Defaults to all files '
                             'in the storage folder.', nargs='*')

    ### Managed commands, working on registered saves and the storage ###
    command('list-saves', 'List the registered saves.')
    list_mons = command('list-mons', 'List the records in a registered save.')
    arg(list_mons, 'save_id', 'Id of the save (see list-saves).', type=int)
    deposit = command('deposit', 'Move a box record from a registered save '
                                 'into the storage folder.')
    arg(deposit, 'save_id', 'Id of the save (see list-saves).', type=int)
    address_args(deposit)
    withdraw = command('withdraw', 'Move a record from the storage folder '
                                   'into a registered save.')
    arg(withdraw, 'storage_id', 'Id of the stored record (see '
                                'list-storage).')
    arg(withdraw, 'save_id', 'Id of the save (see list-saves).', type=int)
    address_args(withdraw)
    add_save = command('add-save', 'Register a save.')
    arg(add_save, 'path', 'Path to the save.')
    remove_save = command('remove-save', 'Disconnect a registered save.')
    arg(remove_save, 'save_id', 'Id of the save (see list-saves).', type=int)
    remove_save.add_argument('--forget', action='store_true',
                             help='Drop the save from the registry instead '
                                  'of disconnecting it.')
    command('list-storage', 'List the records in the storage folder.')
    return parser.parse_args(argv)
