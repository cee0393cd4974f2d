from django.contrib import admin
from django.utils.html import format_html

from .models import GameStatDelta, Player, PlayerTeamLink, ProcessedGame, Team


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('name', 'abbreviation', 'get_color', 'season', 'region', 'gender')
    list_filter = ('season', 'region', 'gender')
    search_fields = ('name', 'abbreviation', 'city')
    ordering = ('-season', 'name')

    def get_color(self, obj):
        return format_html(
            '<span style="display:inline-block;width:12px;height:12px;background:{};"></span> {}',
            obj.color,
            obj.color,
        )
    get_color.short_description = 'Color'


class PlayerTeamLinkInline(admin.TabularInline):
    model = PlayerTeamLink
    fields = ('team', 'season', 'number', 'jersey')
    extra = 0
    show_change_link = True


@admin.register(Player)
class PlayerAdmin(admin.ModelAdmin):
    list_display = ('name', 'position', 'sector', 'nationality', 'age')
    list_filter = ('position', 'sector')
    search_fields = ('name', 'nationality', 'developing_club')
    ordering = ('name',)
    inlines = (PlayerTeamLinkInline,)


@admin.register(PlayerTeamLink)
class PlayerTeamLinkAdmin(admin.ModelAdmin):
    list_display = ('player', 'team', 'season', 'number', 'jersey')
    list_filter = ('season', 'team')
    search_fields = ('player__name', 'team__name')
    list_select_related = ('player', 'team')
    raw_id_fields = ('player', 'team')
    ordering = ('-season', 'team__name', 'number')


class GameStatDeltaInline(admin.TabularInline):
    model = GameStatDelta
    fields = ('player', 'team', 'season', 'statistics')
    readonly_fields = ('player', 'team', 'season', 'statistics')
    extra = 0
    can_delete = False


@admin.register(ProcessedGame)
class ProcessedGameAdmin(admin.ModelAdmin):
    list_display = ('game_id', 'game_date', 'processed_at', 'players_processed', 'get_reprocessed', 'source_filename')
    list_filter = ('reprocessed',)
    search_fields = ('game_id', 'source_filename')
    readonly_fields = ('game_id', 'game_date', 'processed_at', 'reprocessed', 'players_processed', 'source_filename')
    ordering = ('-processed_at',)
    inlines = (GameStatDeltaInline,)

    def get_reprocessed(self, obj):
        if obj.reprocessed:
            return format_html('<span style="color: orange;">Reprocessed</span>')
        return '-'
    get_reprocessed.short_description = 'Reprocessed'

    def has_add_permission(self, request):
        return False
