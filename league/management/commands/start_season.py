"""
Start a new season

Clones the previous season's teams into the new season and carries every
player over: explicit transfers first, everybody else stays with their team.

Usage:
    python manage.py start_season --year 2026
    python manage.py start_season --year 2026 --changes changes.json --transfers transfers.json

changes.json:   [{"teamId": 1, "name": "New name", "logo": "new.png"}, ...]
transfers.json: [{"playerId": 10, "newTeamName": "Team A2", "newNumber": 7}, ...]
"""

import json

from django.core.management.base import BaseCommand, CommandError

from league.exceptions import LeagueError
from league.rollover import TeamChange, TransferInstruction, start_season


class Command(BaseCommand):
    help = 'Start a new season from the previous one (teams, rosters and transfers)'

    def add_arguments(self, parser):
        parser.add_argument('--year', type=str, required=True, help='Season to start (e.g. 2026)')
        parser.add_argument('--changes', type=str, help='JSON file with per-team changes')
        parser.add_argument('--transfers', type=str, help='JSON file with transfer instructions')

    def _load_list(self, path):
        if not path:
            return []
        try:
            with open(path, encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise CommandError(f"Could not read {path}: {e}")
        if not isinstance(data, list):
            raise CommandError(f"{path} must contain a JSON list")
        return data

    def handle(self, *args, **options):
        year = options['year']

        self.stdout.write("=" * 80)
        self.stdout.write(self.style.SUCCESS(f'STARTING SEASON {year}'))
        self.stdout.write("=" * 80)

        try:
            changes = [TeamChange.from_dict(item) for item in self._load_list(options['changes'])]
            transfers = [TransferInstruction.from_dict(item) for item in self._load_list(options['transfers'])]

            self.stdout.write(f"Team changes: {len(changes)}")
            self.stdout.write(f"Transfers: {len(transfers)}")

            summary = start_season(year, changes, transfers)
        except LeagueError as e:
            raise CommandError(str(e))

        for skipped in summary.skipped:
            self.stdout.write(self.style.WARNING(
                f"  [SKIPPED] Player {skipped['playerId']}: {skipped['reason']}"
            ))

        self.stdout.write("\n" + "=" * 80)
        self.stdout.write(self.style.SUCCESS('SUMMARY'))
        self.stdout.write("=" * 80)
        self.stdout.write(f"Teams created: {summary.teams}")
        self.stdout.write(f"Players carried over: {summary.players}")
        self.stdout.write(f"Transfers applied: {summary.transfers}")
        self.stdout.write(f"Players retained: {summary.retained}")
        self.stdout.write(f"Transfers saved to audit file: {summary.transfers_saved}")
        self.stdout.write(f"Skipped: {len(summary.skipped)}")
        self.stdout.write("=" * 80)
