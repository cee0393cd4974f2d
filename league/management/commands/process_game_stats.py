"""
Apply (or reprocess) one game's statistics spreadsheet

Usage:
    python manage.py process_game_stats --game-id 12 --game-date 2025-05-10 --file game12.xlsx
    python manage.py process_game_stats --game-id 12 --game-date 2025-05-10 --file game12.xlsx --reprocess
"""

from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from league.exceptions import LeagueError
from league.ledger import apply_game_stats, reprocess_game_stats
from league.spreadsheets import read_spreadsheet_rows


class Command(BaseCommand):
    help = "Apply a game's statistics spreadsheet to the season totals"

    def add_arguments(self, parser):
        parser.add_argument('--game-id', type=str, required=True, help='Game identifier')
        parser.add_argument('--game-date', type=str, required=True, help='Game date')
        parser.add_argument('--file', type=str, required=True, help='Statistics spreadsheet (.xlsx/.xls)')
        parser.add_argument(
            '--reprocess',
            action='store_true',
            help='Reverse the previously applied statistics of the game before applying the file'
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='With --reprocess: accept a game that was never processed'
        )

    def handle(self, *args, **options):
        path = Path(options['file'])
        if not path.exists():
            raise CommandError(f"File not found: {path}")

        action = 'REPROCESSING' if options['reprocess'] else 'PROCESSING'
        self.stdout.write("=" * 80)
        self.stdout.write(self.style.SUCCESS(f"{action} GAME {options['game_id']} ({options['game_date']})"))
        self.stdout.write("=" * 80)

        try:
            with open(path, 'rb') as f:
                rows = read_spreadsheet_rows(f, name=path.name, size=path.stat().st_size)
            self.stdout.write(f"Rows read: {len(rows)}")

            if options['reprocess']:
                result = reprocess_game_stats(
                    options['game_id'], options['game_date'], rows,
                    source_filename=path.name,
                    force=options['force'],
                )
            else:
                result = apply_game_stats(
                    options['game_id'], options['game_date'], rows,
                    source_filename=path.name,
                )
        except LeagueError as e:
            hint = getattr(e, 'hint', None)
            raise CommandError(f"{e}. {hint}" if hint else str(e))

        for error in result.errors:
            self.stdout.write(self.style.ERROR(f"  [ERROR] {error['player']}: {error['error']}"))

        self.stdout.write("\n" + "=" * 80)
        self.stdout.write(self.style.SUCCESS('SUMMARY'))
        self.stdout.write("=" * 80)
        if result.reprocessed:
            self.stdout.write(f"Deltas reversed: {result.reversed}")
        self.stdout.write(f"Players processed: {result.success}")
        self.stdout.write(f"Errors: {len(result.errors)}")
        self.stdout.write("=" * 80)
