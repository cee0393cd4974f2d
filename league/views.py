"""
JSON API views for the league app
"""

import json
import logging
from functools import wraps

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from league import aggregates, ledger, queries, rollover, roster_import
from league.exceptions import InvalidRequest, LeagueError
from league.spreadsheets import read_spreadsheet_rows

logger = logging.getLogger(__name__)


def api_view(*methods):
    """csrf-exempt JSON view; LeagueError becomes {"error": ...} with its status code"""
    def decorator(view):
        @csrf_exempt
        @require_http_methods(list(methods))
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            try:
                return view(request, *args, **kwargs)
            except LeagueError as e:
                payload = {'error': str(e)}
                hint = getattr(e, 'hint', None)
                if hint:
                    payload['hint'] = hint
                return JsonResponse(payload, status=e.status_code)
            except Exception as e:
                logger.exception("Unhandled error in %s", view.__name__)
                return JsonResponse({'error': 'Internal server error', 'details': str(e)}, status=500)
        return wrapper
    return decorator


def _json_body(request):
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise InvalidRequest('Request body must be valid JSON')
    if not isinstance(data, dict):
        raise InvalidRequest('Request body must be a JSON object')
    return data


def _uploaded_rows(request):
    upload = request.FILES.get('file')
    if upload is None:
        raise InvalidRequest('No file uploaded')
    return upload.name, read_spreadsheet_rows(upload)


def _flag(value):
    return str(value).lower() in ('1', 'true', 'yes', 'on')


def health(request):
    return JsonResponse({'status': 'healthy', 'debug': settings.DEBUG})


# ============================================================================
# SEASONS / TRANSFERS
# ============================================================================

@api_view('POST')
def start_season(request, year):
    data = _json_body(request)
    changes = [rollover.TeamChange.from_dict(item) for item in data.get('teamChanges') or []]
    transfers = [rollover.TransferInstruction.from_dict(item) for item in data.get('transfers') or []]

    summary = rollover.start_season(year, changes, transfers)
    return JsonResponse(summary.to_dict(), status=201)


@api_view('GET')
def transfers(request):
    origin = request.GET.get('originSeason') or ''
    destination = request.GET.get('destinationSeason') or ''
    if not origin or not destination:
        raise InvalidRequest('originSeason and destinationSeason are required')
    return JsonResponse(rollover.load_transfer_audit(origin, destination), safe=False)


# ============================================================================
# GAME STATISTICS
# ============================================================================

@api_view('POST')
def process_game(request):
    game_id = request.POST.get('gameId')
    game_date = request.POST.get('gameDate')
    if not game_id or not game_date:
        raise InvalidRequest('Game id and date are required')
    filename, rows = _uploaded_rows(request)

    result = ledger.apply_game_stats(game_id, game_date, rows, source_filename=filename)
    return JsonResponse(result.to_dict())


@api_view('POST')
def reprocess_game(request):
    game_id = request.POST.get('gameId')
    game_date = request.POST.get('gameDate')
    if not game_id or not game_date:
        raise InvalidRequest('Game id and date are required')
    filename, rows = _uploaded_rows(request)

    result = ledger.reprocess_game_stats(
        game_id, game_date, rows,
        source_filename=filename,
        force=_flag(request.POST.get('force', '')),
    )
    return JsonResponse(result.to_dict())


@api_view('GET')
def processed_games(request):
    return JsonResponse(ledger.list_processed_games())


# ============================================================================
# TEAMS / PLAYERS
# ============================================================================

@api_view('GET')
def teams(request):
    return JsonResponse(queries.teams_for_season(request.GET.get('season')), safe=False)


@api_view('GET')
def compare_teams(request):
    season = request.GET.get('season') or settings.LEAGUE_DEFAULT_SEASON
    result = aggregates.compare_teams(request.GET.get('team1Id'), request.GET.get('team2Id'), season)
    return JsonResponse(result)


@api_view('GET')
def players(request):
    result = queries.players_for_season(
        season=request.GET.get('season'),
        team_id=request.GET.get('teamId'),
        include_history=_flag(request.GET.get('includeHistory', '')),
    )
    return JsonResponse(result, safe=False)


@api_view('GET')
def player_season(request, player_id, season):
    return JsonResponse(queries.player_season(player_id, season))


@api_view('POST')
def import_teams(request):
    _, rows = _uploaded_rows(request)
    return JsonResponse(roster_import.import_team_rows(rows).to_dict())


@api_view('POST')
def import_players(request):
    _, rows = _uploaded_rows(request)
    return JsonResponse(roster_import.import_player_rows(rows).to_dict())
