"""
Player statistics payloads

A roster link stores its season-to-date statistics as JSON. Two generations
of that JSON exist:

    legacy   {"attack": {...}, "defense": {...}}
    current  {"passing": {...}, "rushing": {...}, "receiving": {...}, "defense": {...}}

Everything that reads or writes statistics goes through this module:
parse_statistics() classifies a payload, migrate_statistics() always returns
the current shape, and CurrentStatistics implements the additive/overwrite
arithmetic used by the game ledger.
"""

import copy
import logging
import math
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

BUCKETS = ('passing', 'rushing', 'receiving', 'defense')

# (payload key, spreadsheet column) for every field of every bucket
STAT_COLUMNS = {
    'passing': (
        ('completions', 'passes_completos'),
        ('attempts', 'passes_tentados'),
        ('incompletions', 'passes_incompletos'),
        ('passYards', 'jds_passe'),
        ('passTDs', 'tds_passe'),
        ('passXP1', 'passe_xp1'),
        ('passXP2', 'passe_xp2'),
        ('interceptionsThrown', 'int_sofridas'),
        ('sacksTaken', 'sacks_sofridos'),
        ('pressurePct', 'pressao_pct'),
    ),
    'rushing': (
        ('carries', 'corridas'),
        ('rushYards', 'jds_corridas'),
        ('rushTDs', 'tds_corridos'),
        ('rushXP1', 'corrida_xp1'),
        ('rushXP2', 'corrida_xp2'),
    ),
    'receiving': (
        ('receptions', 'recepcoes'),
        ('targets', 'alvos'),
        ('drops', 'drops'),
        ('recYards', 'jds_recepcao'),
        ('yardsAfterCatch', 'jds_yac'),
        ('recTDs', 'tds_recepcao'),
        ('recXP1', 'recepcao_xp1'),
        ('recXP2', 'recepcao_xp2'),
    ),
    'defense': (
        ('tackles', 'tck'),
        ('tacklesForLoss', 'tfl'),
        ('pressurePct', 'pressao_pct_def'),
        ('sacks', 'sacks'),
        ('passesDefended', 'tip'),
        ('interceptions', 'int'),
        ('defensiveTDs', 'tds_defesa'),
        ('defXP2', 'defesa_xp2'),
        ('safeties', 'sft'),
        ('safety1pt', 'sft_1'),
        ('blocks', 'blk'),
        ('defYards', 'jds_defesa'),
    ),
}

# Percentages are never summed: the latest value replaces the stored one
OVERWRITE_FIELDS = frozenset({'pressurePct'})
DEFAULT_PERCENTAGE = '0'

# Legacy (bucket, field) -> current (bucket, field). Legacy pressures,
# flagsPulled and flagsLost have no current counterpart.
LEGACY_FIELD_MAP = (
    (('attack', 'completions'), ('passing', 'completions')),
    (('attack', 'attempts'), ('passing', 'attempts')),
    (('attack', 'tdPassed'), ('passing', 'passTDs')),
    (('attack', 'interceptionsThrown'), ('passing', 'interceptionsThrown')),
    (('attack', 'sacksTaken'), ('passing', 'sacksTaken')),
    (('attack', 'rushYards'), ('rushing', 'rushYards')),
    (('attack', 'rushTDs'), ('rushing', 'rushTDs')),
    (('attack', 'receptions'), ('receiving', 'receptions')),
    (('attack', 'targets'), ('receiving', 'targets')),
    (('attack', 'tdReceived'), ('receiving', 'recTDs')),
    (('defense', 'sacks'), ('defense', 'sacks')),
    (('defense', 'passesDefended'), ('defense', 'passesDefended')),
    (('defense', 'interceptionsForced'), ('defense', 'interceptions')),
    (('defense', 'defensiveTDs'), ('defense', 'defensiveTDs')),
)


def to_number(value):
    """Coerce a spreadsheet/JSON value to int (or float); anything non-numeric is 0"""
    if value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return int(number) if number.is_integer() else number


def to_percentage(value):
    """Percentages are kept as literal strings"""
    if value is None or value == '':
        return DEFAULT_PERCENTAGE
    if isinstance(value, float):
        if math.isnan(value):
            return DEFAULT_PERCENTAGE
        if value.is_integer():
            return str(int(value))
    return str(value)


def _is_bucket(value):
    return isinstance(value, dict)


def is_current_shape(payload):
    """
    True when the payload uses the passing/rushing/receiving/defense layout.

    Any of the four buckets present as an object (even empty) is enough,
    except that a lone "defense" next to an "attack" bucket is the legacy
    layout (both generations call that bucket "defense").
    """
    if not isinstance(payload, dict):
        return False
    if any(_is_bucket(payload.get(name)) for name in ('passing', 'rushing', 'receiving')):
        return True
    return _is_bucket(payload.get('defense')) and 'attack' not in payload


@dataclass
class LegacyStatistics:
    attack: dict = field(default_factory=dict)
    defense: dict = field(default_factory=dict)

    def to_current(self):
        stats = CurrentStatistics.zeroed()
        for (source_bucket, source_field), (target_bucket, target_field) in LEGACY_FIELD_MAP:
            source = getattr(self, source_bucket)
            stats.buckets[target_bucket][target_field] = to_number(source.get(source_field))
        return stats


@dataclass
class CurrentStatistics:
    """Statistics in the four-bucket layout; buckets absent from the payload stay absent"""
    buckets: dict = field(default_factory=dict)
    extra: dict = field(default_factory=dict)

    @classmethod
    def empty(cls):
        return cls({name: {} for name in BUCKETS})

    @classmethod
    def zeroed(cls):
        buckets = {}
        for name, columns in STAT_COLUMNS.items():
            buckets[name] = {
                key: DEFAULT_PERCENTAGE if key in OVERWRITE_FIELDS else 0
                for key, _ in columns
            }
        return cls(buckets)

    @classmethod
    def from_payload(cls, payload):
        buckets = {}
        extra = {}
        for key, value in payload.items():
            if key in BUCKETS:
                buckets[key] = copy.deepcopy(value) if _is_bucket(value) else {}
            else:
                extra[key] = copy.deepcopy(value)
        return cls(buckets, extra)

    @classmethod
    def from_row(cls, row):
        """Build one game's statistics from a spreadsheet row (column names as in STAT_COLUMNS)"""
        buckets = {}
        for name, columns in STAT_COLUMNS.items():
            buckets[name] = {
                key: to_percentage(row.get(column)) if key in OVERWRITE_FIELDS else to_number(row.get(column))
                for key, column in columns
            }
        return cls(buckets)

    def bucket(self, name):
        return self.buckets.get(name) or {}

    def number(self, bucket, key):
        return to_number(self.bucket(bucket).get(key))

    def percentage(self, bucket, key):
        return to_percentage(self.bucket(bucket).get(key))

    def plus(self, delta):
        """Season totals after adding one game: counts are summed, percentages replaced"""
        buckets = {}
        for name, columns in STAT_COLUMNS.items():
            totals = dict(self.bucket(name))
            for key, _ in columns:
                if key in OVERWRITE_FIELDS:
                    totals[key] = delta.percentage(name, key)
                else:
                    totals[key] = self.number(name, key) + delta.number(name, key)
            buckets[name] = totals
        return CurrentStatistics(buckets, copy.deepcopy(self.extra))

    def minus(self, delta):
        """Season totals after removing one game; counts never go below zero, percentages are kept"""
        buckets = {}
        for name, columns in STAT_COLUMNS.items():
            totals = dict(self.bucket(name))
            for key, _ in columns:
                if key in OVERWRITE_FIELDS:
                    totals[key] = totals.get(key) or DEFAULT_PERCENTAGE
                else:
                    totals[key] = max(0, self.number(name, key) - delta.number(name, key))
            buckets[name] = totals
        return CurrentStatistics(buckets, copy.deepcopy(self.extra))

    def to_dict(self):
        payload = copy.deepcopy(self.extra)
        for name, values in self.buckets.items():
            payload[name] = copy.deepcopy(values)
        return payload


def parse_statistics(payload):
    """
    Classify a stored payload.

    Returns CurrentStatistics, LegacyStatistics, or None when there is
    nothing to parse (missing or empty payload).
    """
    if not payload:
        return None
    if not isinstance(payload, dict):
        raise TypeError(f"Statistics payload must be an object, got {type(payload).__name__}")
    if is_current_shape(payload):
        return CurrentStatistics.from_payload(payload)

    attack = payload.get('attack') or {}
    defense = payload.get('defense') or {}
    if not isinstance(attack, dict) or not isinstance(defense, dict):
        raise TypeError('Legacy statistics buckets must be objects')
    return LegacyStatistics(attack=attack, defense=defense)


def migrate_statistics(payload):
    """
    Return the payload in the current shape. Never raises.

    Current payloads pass through unchanged, legacy payloads are converted
    field by field, and anything missing or unreadable becomes the empty
    four-bucket skeleton.
    """
    try:
        parsed = parse_statistics(payload)
        if parsed is None:
            return CurrentStatistics.empty()
        if isinstance(parsed, LegacyStatistics):
            return parsed.to_current()
        return parsed
    except Exception:
        logger.warning("Could not convert statistics payload, using empty statistics", exc_info=True)
        return CurrentStatistics.empty()
