"""
Import teams or players from a spreadsheet

Usage:
    python manage.py import_roster --teams teams.xlsx
    python manage.py import_roster --players players.xlsx
"""

from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from league.exceptions import LeagueError
from league.roster_import import import_player_rows, import_team_rows
from league.spreadsheets import read_spreadsheet_rows


class Command(BaseCommand):
    help = 'Import teams or players from a spreadsheet'

    def add_arguments(self, parser):
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument('--teams', type=str, help='Teams spreadsheet')
        group.add_argument('--players', type=str, help='Players spreadsheet')

    def handle(self, *args, **options):
        if options['teams']:
            path, kind, importer = Path(options['teams']), 'TEAMS', import_team_rows
        else:
            path, kind, importer = Path(options['players']), 'PLAYERS', import_player_rows

        if not path.exists():
            raise CommandError(f"File not found: {path}")

        self.stdout.write("=" * 80)
        self.stdout.write(self.style.SUCCESS(f'IMPORTING {kind} FROM {path.name}'))
        self.stdout.write("=" * 80)

        try:
            with open(path, 'rb') as f:
                rows = read_spreadsheet_rows(f, name=path.name, size=path.stat().st_size)
        except LeagueError as e:
            raise CommandError(str(e))

        result = importer(rows)

        for error in result.errors:
            self.stdout.write(self.style.ERROR(f"  [ERROR] {error[result.kind]}: {error['error']}"))

        self.stdout.write("\n" + "=" * 80)
        self.stdout.write(self.style.SUCCESS('SUMMARY'))
        self.stdout.write("=" * 80)
        self.stdout.write(f"Rows: {len(rows)}")
        self.stdout.write(f"Created: {result.created}")
        self.stdout.write(f"Updated: {result.updated}")
        self.stdout.write(f"Errors: {len(result.errors)}")
        self.stdout.write("=" * 80)
