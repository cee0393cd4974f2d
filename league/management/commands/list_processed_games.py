from django.core.management.base import BaseCommand

from league.ledger import list_processed_games


class Command(BaseCommand):
    help = 'List the games whose statistics were applied'

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, default=None, help='Maximum number of games to show')

    def handle(self, *args, **options):
        listing = list_processed_games(options['limit'])

        self.stdout.write("=" * 80)
        self.stdout.write(self.style.SUCCESS(f"PROCESSED GAMES ({len(listing['games'])} of {listing['total']})"))
        self.stdout.write("=" * 80)

        for game in listing['games']:
            line = (
                f"{game['gameId']:<12} {game['gameDate']:<12} "
                f"{game['processedAt']}  players: {game['playersProcessed']}"
            )
            if game['reprocessed']:
                self.stdout.write(self.style.WARNING(f"{line}  [reprocessed]"))
            else:
                self.stdout.write(line)

        self.stdout.write("=" * 80)
