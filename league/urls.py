"""
URL configuration for league app
"""

from django.urls import path

from . import views

app_name = 'league'

urlpatterns = [
    # Health check
    path('health/', views.health, name='health'),

    # Seasons
    path('seasons/<str:year>/start/', views.start_season, name='start_season'),
    path('transfers/', views.transfers, name='transfers'),

    # Game statistics
    path('games/process/', views.process_game, name='process_game'),
    path('games/reprocess/', views.reprocess_game, name='reprocess_game'),
    path('games/processed/', views.processed_games, name='processed_games'),

    # Teams and players
    path('teams/', views.teams, name='teams'),
    path('teams/compare/', views.compare_teams, name='compare_teams'),
    path('teams/import/', views.import_teams, name='import_teams'),
    path('players/', views.players, name='players'),
    path('players/import/', views.import_players, name='import_players'),
    path('players/<int:player_id>/seasons/<str:season>/', views.player_season, name='player_season'),
]
