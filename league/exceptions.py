"""
Exceptions raised by the league services.
Views and management commands translate them into responses.
"""


class LeagueError(Exception):
    """Base exception for league service errors."""

    status_code = 500


class InvalidRequest(LeagueError):
    """Raised when required input is missing or inconsistent."""

    status_code = 400


class TeamNotFound(LeagueError):
    """Raised when a referenced team does not exist."""

    status_code = 404


class NoPriorSeasonTeams(LeagueError):
    """Raised when a season rollover finds no teams in the previous season."""

    status_code = 404

    def __init__(self, season):
        self.season = season
        super().__init__(f"No teams found in season {season}")


class GameAlreadyProcessed(LeagueError):
    """Raised when a game's statistics were already applied."""

    status_code = 400
    hint = 'Use the reprocess endpoint to update the game statistics.'

    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(f"Game {game_id} was already processed")


class GameNotProcessed(LeagueError):
    """Raised when reprocessing a game that was never processed (without force)."""

    status_code = 400
    hint = 'Use the process endpoint to apply the game statistics for the first time.'

    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(f"Game {game_id} was not processed before")


class TransferAuditNotFound(LeagueError):
    """Raised when no transfer audit exists for a pair of seasons."""

    status_code = 404

    def __init__(self, origin_season, destination_season):
        self.origin_season = origin_season
        self.destination_season = destination_season
        super().__init__(f"No transfers found from {origin_season} to {destination_season}")


class TransferAuditCorrupted(LeagueError):
    """Raised when a transfer audit file cannot be parsed."""

    status_code = 500


class TransactionTimeout(LeagueError):
    """Raised when a league transaction runs past its time budget (the transaction rolls back)."""

    status_code = 503


class PlayerNotFound(LeagueError):
    """Raised when a player has no roster entry in the requested season."""

    status_code = 404
