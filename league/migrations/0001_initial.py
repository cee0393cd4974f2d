import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Player',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('position', models.CharField(blank=True, default='', max_length=50)),
                ('sector', models.CharField(blank=True, default='', max_length=50)),
                ('experience', models.IntegerField(blank=True, null=True)),
                ('age', models.IntegerField(blank=True, null=True)),
                ('height', models.FloatField(blank=True, null=True)),
                ('weight', models.FloatField(blank=True, null=True)),
                ('city', models.CharField(blank=True, default='', max_length=200)),
                ('nationality', models.CharField(blank=True, default='', max_length=100)),
                ('instagram', models.CharField(blank=True, default='', max_length=300)),
                ('instagram2', models.CharField(blank=True, default='', max_length=100)),
                ('developing_club', models.CharField(blank=True, default='', max_length=200)),
            ],
            options={
                'verbose_name': 'Player',
                'verbose_name_plural': 'Players',
                'db_table': 'players',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ProcessedGame',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('game_id', models.CharField(max_length=100, unique=True)),
                ('game_date', models.CharField(max_length=50)),
                ('processed_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('reprocessed', models.BooleanField(default=False)),
                ('players_processed', models.IntegerField(default=0)),
                ('source_filename', models.CharField(blank=True, default='', max_length=300)),
            ],
            options={
                'verbose_name': 'Processed Game',
                'verbose_name_plural': 'Processed Games',
                'db_table': 'processed_games',
                'ordering': ['-processed_at'],
            },
        ),
        migrations.CreateModel(
            name='Team',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('abbreviation', models.CharField(max_length=10)),
                ('color', models.CharField(max_length=20)),
                ('city', models.CharField(blank=True, default='', max_length=200)),
                ('state_flag', models.CharField(blank=True, default='', max_length=200)),
                ('instagram', models.CharField(blank=True, default='', max_length=300)),
                ('instagram2', models.CharField(blank=True, default='', max_length=100)),
                ('logo', models.CharField(blank=True, default='', max_length=200)),
                ('region', models.CharField(blank=True, default='', max_length=100)),
                ('gender', models.CharField(blank=True, default='', max_length=20)),
                ('season', models.CharField(db_index=True, max_length=10)),
            ],
            options={
                'verbose_name': 'Team',
                'verbose_name_plural': 'Teams',
                'db_table': 'teams',
                'ordering': ['season', 'name'],
                'indexes': [models.Index(fields=['name', 'season'], name='teams_name_season_idx')],
            },
        ),
        migrations.CreateModel(
            name='PlayerTeamLink',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('season', models.CharField(db_index=True, max_length=10)),
                ('number', models.IntegerField(default=0)),
                ('jersey', models.CharField(blank=True, default='', max_length=200)),
                ('statistics', models.JSONField(blank=True, default=dict)),
                ('player', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='links', to='league.player')),
                ('team', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='links', to='league.team')),
            ],
            options={
                'verbose_name': 'Player Team Link',
                'verbose_name_plural': 'Player Team Links',
                'db_table': 'player_team_links',
                'ordering': ['id'],
                'indexes': [
                    models.Index(fields=['player', 'season'], name='link_player_season_idx'),
                    models.Index(fields=['team', 'season'], name='link_team_season_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('player', 'team', 'season'), name='unique_player_team_season'),
                ],
            },
        ),
        migrations.CreateModel(
            name='GameStatDelta',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('season', models.CharField(max_length=10)),
                ('statistics', models.JSONField(default=dict)),
                ('game', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='deltas', to='league.processedgame')),
                ('player', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='game_deltas', to='league.player')),
                ('team', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='game_deltas', to='league.team')),
            ],
            options={
                'verbose_name': 'Game Stat Delta',
                'verbose_name_plural': 'Game Stat Deltas',
                'db_table': 'game_stat_deltas',
                'ordering': ['id'],
            },
        ),
    ]
