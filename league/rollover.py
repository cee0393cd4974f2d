"""
Season rollover

Starting season Y clones every team of season Y-1 into Y and moves every
player of Y-1 onto a team of Y:

    1. roll_forward_teams()  new team rows + old->new id/name maps
    2. resolve_transfers()   explicit transfers first, then everybody else
                             stays with the new row of their old team
    3. write_transfer_audit() JSON list of the transfers applied (best effort)

start_season() runs 1 and 2 in one transaction and 3 after it commits.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from league.db import league_transaction
from league.exceptions import InvalidRequest, NoPriorSeasonTeams, TransferAuditCorrupted, TransferAuditNotFound
from league.models import Player, PlayerTeamLink, Team
from league.statistics import migrate_statistics

logger = logging.getLogger(__name__)

# Team fields copied from one season to the next
TEAM_FIELDS = (
    'name', 'abbreviation', 'color', 'city', 'state_flag',
    'instagram', 'instagram2', 'logo', 'region', 'gender',
)

# Fields a team change may override
OVERRIDABLE_TEAM_FIELDS = (
    'name', 'abbreviation', 'color', 'instagram', 'instagram2', 'logo', 'region', 'gender',
)


def _blank(value):
    return value is None or value == ''


def _optional_int(value):
    if _blank(value):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequest(f"Invalid integer value: {value!r}")


def _first(data, *keys):
    for key in keys:
        if key in data:
            return data[key]
    return None


def previous_season(season):
    try:
        return str(int(season) - 1)
    except (TypeError, ValueError):
        raise InvalidRequest(f"Invalid season: {season!r}")


@dataclass
class TeamChange:
    """Fields of a team to change when it is carried into the new season"""
    team_id: int
    name: Optional[str] = None
    abbreviation: Optional[str] = None
    color: Optional[str] = None
    instagram: Optional[str] = None
    instagram2: Optional[str] = None
    logo: Optional[str] = None
    region: Optional[str] = None
    gender: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        team_id = _optional_int(_first(data, 'teamId', 'team_id'))
        if team_id is None:
            raise InvalidRequest('Every team change needs a teamId')
        return cls(
            team_id=team_id,
            name=data.get('name'),
            abbreviation=data.get('abbreviation'),
            color=data.get('color'),
            instagram=data.get('instagram'),
            instagram2=data.get('instagram2'),
            logo=data.get('logo'),
            region=data.get('region'),
            gender=data.get('gender'),
        )


@dataclass
class TransferInstruction:
    """Move a player to another team when the new season starts"""
    player_id: int
    new_team_id: Optional[int] = None
    new_team_name: Optional[str] = None
    new_number: Optional[int] = None
    new_jersey: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        player_id = _optional_int(_first(data, 'playerId', 'player_id'))
        if player_id is None:
            raise InvalidRequest('Every transfer needs a playerId')
        new_jersey = _first(data, 'newJersey', 'new_jersey')
        return cls(
            player_id=player_id,
            new_team_id=_optional_int(_first(data, 'newTeamId', 'new_team_id')),
            new_team_name=_first(data, 'newTeamName', 'new_team_name') or None,
            new_number=_optional_int(_first(data, 'newNumber', 'new_number')),
            new_jersey=None if _blank(new_jersey) else new_jersey,
        )


class RenamedTeam(NamedTuple):
    new_name: str
    new_team_id: int


@dataclass
class RolledTeams:
    teams: list
    id_map: dict  # old team id -> new team id
    name_map: dict  # old name -> RenamedTeam, only for teams whose name changed

    def team(self, team_id):
        for team in self.teams:
            if team.id == team_id:
                return team
        return None


@dataclass
class AppliedTransfer:
    player: Player
    origin_team: Team
    destination_team: Team
    number: int
    jersey: str
    new_number: Optional[int] = None
    new_jersey: Optional[str] = None
    applied_at: object = field(default_factory=timezone.now)

    def to_audit_entry(self):
        return {
            'id': self.player.id,
            'playerName': self.player.name,
            'originTeamId': self.origin_team.id,
            'originTeamName': self.origin_team.name,
            'originTeamAbbreviation': self.origin_team.abbreviation,
            'destinationTeamId': self.destination_team.id,
            'destinationTeamName': self.destination_team.name,
            'destinationTeamAbbreviation': self.destination_team.abbreviation,
            'newNumber': self.new_number,
            'newJersey': self.new_jersey,
            'date': self.applied_at.isoformat(),
        }


@dataclass
class TransferResult:
    processed: set = field(default_factory=set)
    applied: list = field(default_factory=list)
    retained: int = 0
    skipped: list = field(default_factory=list)

    @property
    def links_created(self):
        return len(self.applied) + self.retained


@dataclass
class RolloverSummary:
    season: str
    teams: int
    players: int
    transfers: int
    retained: int
    transfers_saved: int
    skipped: list = field(default_factory=list)

    def to_dict(self):
        return {
            'message': f"Season {self.season} started successfully!",
            'teams': self.teams,
            'players': self.players,
            'transfers': self.transfers,
            'retained': self.retained,
            'transfersSaved': self.transfers_saved,
            'skipped': self.skipped,
        }


# ============================================================================
# 1. TEAMS
# ============================================================================

def roll_forward_teams(season, team_changes=()):
    """
    Clone every team of the previous season into `season`.

    Fields set on the team's TeamChange win; everything else is copied.
    Raises NoPriorSeasonTeams when the previous season has no teams.
    """
    season = str(season)
    prior = previous_season(season)

    old_teams = list(Team.objects.filter(season=prior).order_by('id'))
    if not old_teams:
        raise NoPriorSeasonTeams(prior)

    changes = {}
    for change in team_changes:
        changes.setdefault(change.team_id, change)

    new_teams = []
    id_map = {}
    name_map = {}

    for old_team in old_teams:
        change = changes.get(old_team.id)
        values = {name: getattr(old_team, name) for name in TEAM_FIELDS}
        if change is not None:
            for name in OVERRIDABLE_TEAM_FIELDS:
                override = getattr(change, name)
                if not _blank(override):
                    values[name] = override
        values['region'] = values['region'] or ''
        values['gender'] = values['gender'] or ''

        new_team = Team.objects.create(season=season, **values)
        new_teams.append(new_team)
        id_map[old_team.id] = new_team.id

        if new_team.name != old_team.name:
            name_map[old_team.name] = RenamedTeam(new_team.name, new_team.id)

    logger.info(
        "Rolled %d teams from %s into %s (%d renamed)",
        len(new_teams), prior, season, len(name_map),
    )
    return RolledTeams(new_teams, id_map, name_map)


# ============================================================================
# 2. PLAYERS
# ============================================================================

def _resolve_destination(instruction, season, rolled):
    """New-season team of a transfer: mapped id, then exact name, then renamed-team name"""
    if instruction.new_team_id is not None:
        new_id = rolled.id_map.get(instruction.new_team_id)
        if new_id is not None:
            team = rolled.team(new_id)
            if team is not None:
                return team

    if instruction.new_team_name:
        team = (
            Team.objects.filter(name=instruction.new_team_name, season=season)
            .order_by('id')
            .first()
        )
        if team is not None:
            return team

        for renamed in rolled.name_map.values():
            if renamed.new_name == instruction.new_team_name:
                team = rolled.team(renamed.new_team_id)
                if team is not None:
                    return team

    return None


def _apply_transfer(instruction, season, rolled, players, prior_links, result):
    player = players.get(instruction.player_id)
    if player is None:
        logger.warning("Transfer skipped: player %s not found", instruction.player_id)
        result.skipped.append({'playerId': instruction.player_id, 'reason': 'player not found'})
        return

    prior_link = prior_links.get(player.id)
    if prior_link is None:
        logger.warning("Transfer skipped: %s had no team last season", player.name)
        result.skipped.append({'playerId': player.id, 'reason': 'no link in previous season'})
        return

    destination = _resolve_destination(instruction, season, rolled)
    if destination is None:
        logger.warning(
            "Transfer skipped: destination for %s not found (id=%s, name=%s)",
            player.name, instruction.new_team_id, instruction.new_team_name,
        )
        result.skipped.append({'playerId': player.id, 'reason': 'destination team not found'})
        return

    # Statistics follow the player to the new team
    statistics = migrate_statistics(prior_link.statistics).to_dict()
    number = instruction.new_number if instruction.new_number is not None else prior_link.number
    jersey = instruction.new_jersey if instruction.new_jersey is not None else prior_link.jersey

    with transaction.atomic():
        PlayerTeamLink.objects.create(
            player=player,
            team=destination,
            season=season,
            number=number,
            jersey=jersey,
            statistics=statistics,
        )

    result.processed.add(player.id)
    result.applied.append(AppliedTransfer(
        player=player,
        origin_team=prior_link.team,
        destination_team=destination,
        number=number,
        jersey=jersey,
        new_number=instruction.new_number,
        new_jersey=instruction.new_jersey,
    ))


def _create_retained_links(links):
    """Bulk insert; on a conflict fall back to one savepoint per link so one bad row only skips itself"""
    try:
        with transaction.atomic():
            PlayerTeamLink.objects.bulk_create(links)
        return links
    except IntegrityError:
        logger.warning("Bulk insert of %d roster links failed, inserting one by one", len(links))

    created = []
    for link in links:
        try:
            with transaction.atomic():
                link.save()
            created.append(link)
        except IntegrityError:
            logger.error(
                "Could not carry player %s to team %s in %s",
                link.player_id, link.team_id, link.season, exc_info=True,
            )
    return created


def resolve_transfers(season, prior_links, instructions, rolled, deadline=None):
    """
    Give every player of the previous season exactly one link in `season`.

    prior_links: previous-season PlayerTeamLink rows (player and team loaded),
    in id order; the first link of a player is the one carried over.
    """
    season = str(season)
    result = TransferResult()

    first_links = {}
    for link in prior_links:
        first_links.setdefault(link.player_id, link)

    players = Player.objects.in_bulk({i.player_id for i in instructions})

    # Pass 1: explicit transfers, in submission order
    for instruction in instructions:
        if deadline is not None:
            deadline.check()
        if instruction.player_id in result.processed:
            continue
        try:
            _apply_transfer(instruction, season, rolled, players, first_links, result)
        except Exception as e:
            logger.error("Error processing transfer of player %s", instruction.player_id, exc_info=True)
            result.skipped.append({'playerId': instruction.player_id, 'reason': str(e)})

    # Pass 2: everybody else stays with their team
    pending = []
    for link in prior_links:
        if deadline is not None:
            deadline.check()
        if link.player_id in result.processed:
            continue

        new_team_id = rolled.id_map.get(link.team_id)
        if new_team_id is None:
            logger.error("No new team found for previous team %s", link.team_id)
            result.skipped.append({'playerId': link.player_id, 'reason': 'team not rolled forward'})
            continue

        pending.append(PlayerTeamLink(
            player_id=link.player_id,
            team_id=new_team_id,
            season=season,
            number=link.number,
            jersey=link.jersey,
            statistics=migrate_statistics(link.statistics).to_dict(),
        ))
        result.processed.add(link.player_id)

    if pending:
        created = _create_retained_links(pending)
        result.retained = len(created)
        created_ids = {link.player_id for link in created}
        for link in pending:
            if link.player_id not in created_ids:
                result.skipped.append({'playerId': link.player_id, 'reason': 'could not create link'})

    logger.info(
        "Season %s rosters: %d transfers, %d retained, %d skipped",
        season, len(result.applied), result.retained, len(result.skipped),
    )
    return result


# ============================================================================
# 3. TRANSFER AUDIT
# ============================================================================

def transfer_audit_path(origin_season, destination_season):
    return settings.LEAGUE_TRANSFER_AUDIT_DIR / f"transfers_{origin_season}_{destination_season}.json"


def write_transfer_audit(origin_season, destination_season, applied):
    """Write the applied transfers to the audit file; returns how many were written (0 on failure)"""
    try:
        path = transfer_audit_path(origin_season, destination_season)
        path.parent.mkdir(parents=True, exist_ok=True)
        entries = [transfer.to_audit_entry() for transfer in applied]
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(entries, f, ensure_ascii=False, indent=2)
        logger.info("%d transfers saved to %s", len(entries), path)
        return len(entries)
    except (OSError, TypeError, ValueError):
        logger.error("Error saving transfers to JSON", exc_info=True)
        return 0


def load_transfer_audit(origin_season, destination_season):
    path = transfer_audit_path(origin_season, destination_season)
    if not path.exists():
        raise TransferAuditNotFound(origin_season, destination_season)

    try:
        with open(path, encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise TransferAuditCorrupted(f"Transfer file {path.name} is corrupted") from e


# ============================================================================
# ENTRY POINT
# ============================================================================

def start_season(season, team_changes=(), transfers=()):
    """Roll teams and rosters into `season`; returns a RolloverSummary"""
    season = str(season)
    prior = previous_season(season)

    with league_transaction() as deadline:
        rolled = roll_forward_teams(season, team_changes)
        prior_links = list(
            PlayerTeamLink.objects.filter(season=prior)
            .select_related('player', 'team')
            .order_by('id')
        )
        result = resolve_transfers(season, prior_links, list(transfers), rolled, deadline)

    # Outside the transaction: the audit is a file, not database state
    saved = write_transfer_audit(prior, season, result.applied)

    return RolloverSummary(
        season=season,
        teams=len(rolled.teams),
        players=result.links_created,
        transfers=len(result.applied),
        retained=result.retained,
        transfers_saved=saved,
        skipped=result.skipped,
    )
