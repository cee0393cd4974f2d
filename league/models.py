"""
Django models for the league statistics backend
"""

from django.db import models
from django.utils import timezone


class Team(models.Model):
    """Team for one season (each season gets its own row)"""
    name = models.CharField(max_length=200)
    abbreviation = models.CharField(max_length=10)
    color = models.CharField(max_length=20)
    city = models.CharField(max_length=200, blank=True, default='')
    state_flag = models.CharField(max_length=200, blank=True, default='')  # asset name
    instagram = models.CharField(max_length=300, blank=True, default='')
    instagram2 = models.CharField(max_length=100, blank=True, default='')
    logo = models.CharField(max_length=200, blank=True, default='')  # asset name
    region = models.CharField(max_length=100, blank=True, default='')
    gender = models.CharField(max_length=20, blank=True, default='')
    season = models.CharField(max_length=10, db_index=True)

    class Meta:
        db_table = 'teams'
        verbose_name = 'Team'
        verbose_name_plural = 'Teams'
        ordering = ['season', 'name']
        indexes = [
            models.Index(fields=['name', 'season'], name='teams_name_season_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.season})"


class Player(models.Model):
    """Player (season independent)"""
    name = models.CharField(max_length=200, db_index=True)

    # Biographical data
    position = models.CharField(max_length=50, blank=True, default='')
    sector = models.CharField(max_length=50, blank=True, default='')
    experience = models.IntegerField(null=True, blank=True)
    age = models.IntegerField(null=True, blank=True)
    height = models.FloatField(null=True, blank=True)
    weight = models.FloatField(null=True, blank=True)
    city = models.CharField(max_length=200, blank=True, default='')
    nationality = models.CharField(max_length=100, blank=True, default='')
    instagram = models.CharField(max_length=300, blank=True, default='')
    instagram2 = models.CharField(max_length=100, blank=True, default='')
    developing_club = models.CharField(max_length=200, blank=True, default='')

    class Meta:
        db_table = 'players'
        verbose_name = 'Player'
        verbose_name_plural = 'Players'
        ordering = ['name']

    def __str__(self):
        return self.name


class PlayerTeamLink(models.Model):
    """Roster entry: one player on one team for one season, with season-to-date statistics"""
    player = models.ForeignKey(Player, on_delete=models.CASCADE, related_name='links')
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='links')
    season = models.CharField(max_length=10, db_index=True)

    number = models.IntegerField(default=0)
    jersey = models.CharField(max_length=200, blank=True, default='')  # asset name

    # passing / rushing / receiving / defense buckets (see league.statistics)
    statistics = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = 'player_team_links'
        verbose_name = 'Player Team Link'
        verbose_name_plural = 'Player Team Links'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['player', 'team', 'season'],
                name='unique_player_team_season',
            ),
        ]
        indexes = [
            models.Index(fields=['player', 'season'], name='link_player_season_idx'),
            models.Index(fields=['team', 'season'], name='link_team_season_idx'),
        ]

    def __str__(self):
        return f"{self.player.name} - {self.team.name} ({self.season})"


class ProcessedGame(models.Model):
    """Registry of games whose statistics were applied to season totals"""
    game_id = models.CharField(max_length=100, unique=True)
    game_date = models.CharField(max_length=50)
    processed_at = models.DateTimeField(default=timezone.now, db_index=True)
    reprocessed = models.BooleanField(default=False)
    players_processed = models.IntegerField(default=0)
    source_filename = models.CharField(max_length=300, blank=True, default='')

    class Meta:
        db_table = 'processed_games'
        verbose_name = 'Processed Game'
        verbose_name_plural = 'Processed Games'
        ordering = ['-processed_at']

    def __str__(self):
        suffix = ' (reprocessed)' if self.reprocessed else ''
        return f"Game {self.game_id} - {self.game_date}{suffix}"


class GameStatDelta(models.Model):
    """Statistics one game added to one player's totals (kept so the game can be reversed)"""
    game = models.ForeignKey(ProcessedGame, on_delete=models.CASCADE, related_name='deltas')
    player = models.ForeignKey(Player, on_delete=models.CASCADE, related_name='game_deltas')
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='game_deltas')
    season = models.CharField(max_length=10)
    statistics = models.JSONField(default=dict)

    class Meta:
        db_table = 'game_stat_deltas'
        verbose_name = 'Game Stat Delta'
        verbose_name_plural = 'Game Stat Deltas'
        ordering = ['id']

    def __str__(self):
        return f"{self.game.game_id} - player {self.player_id}"
