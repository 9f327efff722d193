"""Fixed catalog of the six analytical queries over the ``songs`` table.

Each query is a declarative :class:`QueryDefinition` (parameter contract plus
a function that builds the SQLAlchemy statement). Parameters are validated
against the contract before any statement is sent to the database, and every
statement declares a total ordering so repeated runs return the same rows in
the same order.
"""
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from ..db import translate_db_errors
from ..errors import ParameterValidationError
from ..models import Song

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100
MAX_LIMIT = 100


@dataclass(frozen=True)
class ParamSpec:
    name: str
    type: type
    help: str = ""
    rule: Optional[Callable[[Any], Optional[str]]] = None


@dataclass(frozen=True)
class QueryDefinition:
    id: int
    name: str
    description: str
    params: Tuple[ParamSpec, ...]
    build: Callable[..., Select]
    check: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None

    @property
    def param_names(self) -> List[str]:
        return [p.name for p in self.params]


@dataclass
class QueryResult:
    columns: List[str]
    rows: List[Dict[str, Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)


# --- parameter rules ---------------------------------------------------------

def _between(low, high):
    def rule(value):
        if not (low <= value <= high):
            return f"must be between {low} and {high}"
        return None
    return rule


def _at_least(low):
    def rule(value):
        if value < low:
            return f"must be at least {low}"
        return None
    return rule


def _not_blank(value):
    if not value.strip():
        return "must not be empty"
    return None


YEAR = _between(MIN_YEAR, MAX_YEAR)
LIMIT = _between(1, MAX_LIMIT)


def _year_range_check(values):
    if values["start_year"] > values["end_year"]:
        return "start_year must not be after end_year"
    return None


# --- query plans -------------------------------------------------------------

def _top_songs_in_year(year: int, limit: int) -> Select:
    return (
        select(Song.title, Song.artist, Song.genre, Song.popularity, Song.streams)
        .where(Song.year == year)
        .order_by(Song.popularity.desc(), Song.title.asc(), Song.id.asc())
        .limit(limit)
    )


def _artist_summary(min_songs: int) -> Select:
    song_count = func.count(Song.id).label("song_count")
    return (
        select(
            Song.artist,
            song_count,
            func.round(func.avg(Song.popularity), 2).label("avg_popularity"),
        )
        .group_by(Song.artist)
        .having(func.count(Song.id) >= min_songs)
        .order_by(song_count.desc(), Song.artist.asc())
    )


def _avg_duration_by_genre(genre: str) -> Select:
    return (
        select(
            Song.year,
            func.count(Song.id).label("song_count"),
            func.round(func.avg(Song.duration_sec), 2).label("avg_duration_sec"),
        )
        .where(Song.genre == genre)
        .group_by(Song.year)
        .order_by(Song.year.asc())
    )


def _songs_by_artist(artist: str) -> Select:
    return (
        select(Song.title, Song.genre, Song.year, Song.duration_sec, Song.popularity)
        .where(Song.artist == artist)
        .order_by(Song.year.asc(), Song.title.asc(), Song.id.asc())
    )


def _genre_breakdown(start_year: int, end_year: int) -> Select:
    song_count = func.count(Song.id).label("song_count")
    return (
        select(
            Song.genre,
            song_count,
            func.round(func.avg(Song.popularity), 2).label("avg_popularity"),
            func.round(func.avg(Song.tempo), 2).label("avg_tempo"),
        )
        .where(Song.year.between(start_year, end_year))
        .group_by(Song.genre)
        .order_by(song_count.desc(), Song.genre.asc())
    )


def _danceable_songs(min_energy: float, limit: int) -> Select:
    return (
        select(Song.title, Song.artist, Song.danceability, Song.energy)
        .where(Song.energy >= min_energy, Song.danceability.is_not(None))
        .order_by(Song.danceability.desc(), Song.title.asc(), Song.id.asc())
        .limit(limit)
    )


_DEFINITIONS = (
    QueryDefinition(
        id=1,
        name="Top songs by popularity in a year",
        description="Most popular songs released in the given year.",
        params=(
            ParamSpec("year", int, "release year", YEAR),
            ParamSpec("limit", int, f"number of songs (1-{MAX_LIMIT})", LIMIT),
        ),
        build=_top_songs_in_year,
    ),
    QueryDefinition(
        id=2,
        name="Song count and average popularity per artist",
        description="Artists with at least the given number of songs.",
        params=(ParamSpec("min_songs", int, "minimum number of songs", _at_least(1)),),
        build=_artist_summary,
    ),
    QueryDefinition(
        id=3,
        name="Average song duration by genre",
        description="Average duration (seconds) per year for one genre.",
        params=(ParamSpec("genre", str, "genre name, e.g. Rock", _not_blank),),
        build=_avg_duration_by_genre,
    ),
    QueryDefinition(
        id=4,
        name="Songs by artist",
        description="Every song of one artist, oldest first.",
        params=(ParamSpec("artist", str, "artist name", _not_blank),),
        build=_songs_by_artist,
    ),
    QueryDefinition(
        id=5,
        name="Genre breakdown for a year range",
        description="Song count, popularity and tempo per genre between two years.",
        params=(
            ParamSpec("start_year", int, "first year (inclusive)", YEAR),
            ParamSpec("end_year", int, "last year (inclusive)", YEAR),
        ),
        build=_genre_breakdown,
        check=_year_range_check,
    ),
    QueryDefinition(
        id=6,
        name="Most danceable songs above an energy level",
        description="Songs with energy at or above the threshold, most danceable first.",
        params=(
            ParamSpec("min_energy", float, "energy threshold (0-1)", _between(0.0, 1.0)),
            ParamSpec("limit", int, f"number of songs (1-{MAX_LIMIT})", LIMIT),
        ),
        build=_danceable_songs,
    ),
)

CATALOG: Mapping[int, QueryDefinition] = MappingProxyType({d.id: d for d in _DEFINITIONS})


# --- validation --------------------------------------------------------------

def describe_catalog() -> List[QueryDefinition]:
    return [CATALOG[k] for k in sorted(CATALOG)]


def get_definition(query_id) -> QueryDefinition:
    if isinstance(query_id, bool) or not isinstance(query_id, int) or query_id not in CATALOG:
        raise ParameterValidationError(f"Unknown query id: {query_id!r}", query_id=query_id)
    return CATALOG[query_id]


def _matches_type(expected: type, value) -> bool:
    if isinstance(value, bool):
        return expected is bool
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


def validate_parameters(definition: QueryDefinition, parameters) -> Dict[str, Any]:
    """Checks count, names, types and rules. Returns the values keyed by name."""
    names = definition.param_names
    qid = definition.id

    if parameters is None:
        parameters = {}
    if isinstance(parameters, Mapping):
        missing = [n for n in names if n not in parameters]
        extra = [k for k in parameters if k not in names]
        if missing or extra:
            parts = []
            if missing:
                parts.append("missing " + ", ".join(missing))
            if extra:
                parts.append("unexpected " + ", ".join(map(str, extra)))
            raise ParameterValidationError(
                f"Query {qid} expects ({', '.join(names)}): {'; '.join(parts)}", query_id=qid
            )
        given = dict(parameters)
    elif isinstance(parameters, Sequence) and not isinstance(parameters, (str, bytes)):
        if len(parameters) != len(names):
            raise ParameterValidationError(
                f"Query {qid} expects {len(names)} parameter(s), got {len(parameters)}",
                query_id=qid,
            )
        given = dict(zip(names, parameters))
    else:
        raise ParameterValidationError(
            f"Query {qid} parameters must be a mapping or a list", query_id=qid
        )

    values: Dict[str, Any] = {}
    for spec in definition.params:
        value = given[spec.name]
        if not _matches_type(spec.type, value):
            raise ParameterValidationError(
                f"Parameter '{spec.name}' must be {spec.type.__name__}, got {type(value).__name__}",
                query_id=qid,
            )
        if spec.type is float:
            value = float(value)
        if spec.rule is not None:
            problem = spec.rule(value)
            if problem:
                raise ParameterValidationError(f"Parameter '{spec.name}' {problem}", query_id=qid)
        values[spec.name] = value

    if definition.check is not None:
        problem = definition.check(values)
        if problem:
            raise ParameterValidationError(problem, query_id=qid)
    return values


def parse_text_arguments(query_id, raw_values: Sequence[str]) -> Dict[str, Any]:
    """Converts console input (text) into typed, validated parameters."""
    definition = get_definition(query_id)
    if len(raw_values) != len(definition.params):
        raise ParameterValidationError(
            f"Query {definition.id} expects {len(definition.params)} parameter(s), got {len(raw_values)}",
            query_id=definition.id,
        )
    converted = []
    for spec, raw in zip(definition.params, raw_values):
        text_value = (raw or "").strip()
        if spec.type is str:
            converted.append(text_value)
            continue
        try:
            converted.append(spec.type(text_value))
        except ValueError:
            raise ParameterValidationError(
                f"Parameter '{spec.name}' must be {spec.type.__name__}, got {text_value!r}",
                query_id=definition.id,
            ) from None
    return validate_parameters(definition, converted)


def run_query(db: Session, query_id, parameters=None) -> QueryResult:
    definition = get_definition(query_id)
    values = validate_parameters(definition, parameters)
    stmt = definition.build(**values)

    with translate_db_errors():
        result = db.execute(stmt)
        columns = list(result.keys())
        rows = [dict(row._mapping) for row in result]

    logger.info("Query %s (%s) returned %d row(s)", definition.id, definition.name, len(rows))
    return QueryResult(columns=columns, rows=rows)
