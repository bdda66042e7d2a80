"""
Bracket Data Model

Value types shared by the Mexicano and Americano engines:
Player -> Match -> Court (Mexicano) / Round (Americano) -> Bracket

Brackets are frozen. Every engine operation returns a new bracket built with
dataclasses.replace, so untouched parts are shared and a caller holding the
previous value never sees it change.

The document codec at the bottom maps brackets to and from the JSON document
stored once per tournament (camelCase keys).
"""

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any, ClassVar, Optional, Union

from engine.exceptions import ValidationError


class BracketFormat(enum.Enum):
    """Tournament formats."""
    MEXICANO = "Mexicano"
    AMERICANO = "Americano"


SCORE_SIDES = ("score1", "score2")


def check_score_type(score: Any) -> Optional[int]:
    """
    Accept None or an integer score.

    Raises:
        ValidationError: For any other value
    """
    # bool is an int subclass but never a score
    if score is not None and (isinstance(score, bool) or not isinstance(score, int)):
        raise ValidationError(f"Score must be an integer, got {score!r}")
    return score


@dataclass(frozen=True)
class Player:
    """A registered player as seen by the pairing engine."""
    id: str
    name: str
    rating: float = 0
    group: Optional[str] = None      # Americano color
    group_order: Optional[int] = None  # Manual position within the group

    def to_dict(self) -> dict:
        data = {"id": self.id, "name": self.name, "rating": self.rating}
        if self.group is not None:
            data["group"] = self.group
        if self.group_order is not None:
            data["groupOrder"] = self.group_order
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Player":
        """
        Build a Player from a document entry.

        Older documents store the rating under "ranking".

        Raises:
            ValidationError: If the entry is not a usable player reference
        """
        if not isinstance(data, Mapping) or data.get("id") in (None, ""):
            raise ValidationError(f"Malformed player reference: {data!r}")

        rating = data.get("rating", data.get("ranking")) or 0
        if isinstance(rating, bool) or not isinstance(rating, (int, float)):
            raise ValidationError(f"Player {data['id']!r} has a non-numeric rating: {rating!r}")

        group_order = data.get("groupOrder")
        if group_order is not None and (
            isinstance(group_order, bool) or not isinstance(group_order, int)
        ):
            raise ValidationError(f"Player {data['id']!r} has an invalid groupOrder: {group_order!r}")

        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            rating=rating,
            group=data.get("group") or None,
            group_order=group_order,
        )


@dataclass(frozen=True)
class Match:
    """A doubles match: two teams of two players on one court."""
    id: str
    team1: tuple[Player, Player]
    team2: tuple[Player, Player]
    round: int
    court: str
    score1: Optional[int] = None
    score2: Optional[int] = None
    group_color: Optional[str] = None  # Americano only

    def __post_init__(self):
        if len(self.team1) != 2 or len(self.team2) != 2:
            raise ValidationError(f"Match {self.id} must have exactly two players per team")

    @property
    def completed(self) -> bool:
        return self.score1 is not None and self.score2 is not None

    @property
    def players(self) -> tuple[Player, ...]:
        return (*self.team1, *self.team2)

    def score_for(self, player_id: str) -> Optional[int]:
        """Score obtained by the team the player was on."""
        if any(p.id == player_id for p in self.team1):
            return self.score1
        if any(p.id == player_id for p in self.team2):
            return self.score2
        return None

    def with_score(self, side: str, score: Optional[int]) -> "Match":
        return replace(self, **{side: score})

    def to_dict(self, bracket_format: BracketFormat) -> dict:
        data = {
            "id": self.id,
            "team1": [p.to_dict() for p in self.team1],
            "team2": [p.to_dict() for p in self.team2],
            "score1": self.score1,
            "score2": self.score2,
            "completed": self.completed,
            "round": self.round,
        }
        if bracket_format == BracketFormat.MEXICANO:
            data["courtName"] = self.court
        else:
            data["court"] = self.court
            data["groupColor"] = self.group_color
        return data

    @classmethod
    def from_dict(cls, data: Mapping) -> "Match":
        return cls(
            id=str(data["id"]),
            team1=tuple(Player.from_dict(p) for p in data.get("team1", [])),
            team2=tuple(Player.from_dict(p) for p in data.get("team2", [])),
            round=int(data.get("round", 0)),
            court=data.get("courtName") or data.get("court") or "",
            score1=check_score_type(data.get("score1")),
            score2=check_score_type(data.get("score2")),
            group_color=data.get("groupColor"),
        )


@dataclass(frozen=True)
class Court:
    """A Mexicano court holding the current round's matches."""
    name: str
    matches: tuple[Match, ...] = ()


@dataclass(frozen=True)
class Round:
    """A pre-generated Americano round."""
    number: int
    matches: tuple[Match, ...] = ()

    @property
    def completed(self) -> bool:
        return bool(self.matches) and all(m.completed for m in self.matches)


@dataclass(frozen=True)
class Standing:
    """A player's cumulative record, recomputed from the completed-match ledger."""
    id: str
    name: str
    points: int = 0
    wins: int = 0
    losses: int = 0
    games_played: int = 0
    group: Optional[str] = None
    final_rank: Optional[int] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "points": self.points,
            "wins": self.wins,
            "losses": self.losses,
            "gamesPlayed": self.games_played,
        }
        if self.group is not None:
            data["group"] = self.group
        if self.final_rank is not None:
            data["finalRank"] = self.final_rank
        return data

    @classmethod
    def from_dict(cls, data: Mapping) -> "Standing":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            points=data.get("points", 0),
            wins=data.get("wins", 0),
            losses=data.get("losses", 0),
            games_played=data.get("gamesPlayed", 0),
            group=data.get("group"),
            final_rank=data.get("finalRank"),
        )


@dataclass(frozen=True)
class _BracketBase:
    """Fields shared by both bracket shapes; each shape defines live_matches."""
    current_round: int = 0
    completed_matches: tuple[Match, ...] = ()
    standings: tuple[Standing, ...] = ()
    completed: bool = False
    final_standings: tuple[Standing, ...] = ()

    format: ClassVar[BracketFormat]

    def find_live_match(self, match_id: str) -> Optional[Match]:
        return next((m for m in self.live_matches if m.id == match_id), None)

    def find_ledger_match(self, match_id: str) -> Optional[Match]:
        return next((m for m in self.completed_matches if m.id == match_id), None)

    def ledger_for_round(self, round_number: int) -> tuple[Match, ...]:
        return tuple(m for m in self.completed_matches if m.round == round_number)


@dataclass(frozen=True)
class MexicanoBracket(_BracketBase):
    """Ladder bracket: four courts holding the current round only."""
    courts: tuple[Court, ...] = ()

    format: ClassVar[BracketFormat] = BracketFormat.MEXICANO

    @property
    def live_matches(self) -> tuple[Match, ...]:
        return tuple(m for court in self.courts for m in court.matches)


@dataclass(frozen=True)
class AmericanoBracket(_BracketBase):
    """Group bracket: all four rounds generated up front."""
    rounds: tuple[Round, ...] = ()

    format: ClassVar[BracketFormat] = BracketFormat.AMERICANO

    @property
    def live_matches(self) -> tuple[Match, ...]:
        return tuple(m for rnd in self.rounds for m in rnd.matches)

    def get_round(self, number: int) -> Optional[Round]:
        return next((r for r in self.rounds if r.number == number), None)


BracketData = Union[MexicanoBracket, AmericanoBracket]


def upsert_match(ledger: Iterable[Match], match: Match) -> tuple[Match, ...]:
    """Replace the ledger entry with the same id in place, or append."""
    ledger = tuple(ledger)
    if any(m.id == match.id for m in ledger):
        return tuple(match if m.id == match.id else m for m in ledger)
    return ledger + (match,)


def replace_match(matches: Iterable[Match], match: Match) -> tuple[Match, ...]:
    return tuple(match if m.id == match.id else m for m in matches)


# -------------------------------------------------------------------------
# Document codec
# -------------------------------------------------------------------------

def bracket_to_dict(bracket: BracketData) -> dict:
    """
    Export a bracket as the persisted JSON document.

    Returns:
        Document dict that can be used with bracket_from_dict()
    """
    fmt = bracket.format
    data: dict[str, Any] = {
        "format": fmt.value,
        "currentRound": bracket.current_round,
        "completedMatches": [m.to_dict(fmt) for m in bracket.completed_matches],
        "standings": [s.to_dict() for s in bracket.standings],
        "completed": bracket.completed,
    }
    if bracket.final_standings:
        data["finalStandings"] = [s.to_dict() for s in bracket.final_standings]

    if isinstance(bracket, MexicanoBracket):
        data["courts"] = [
            {"name": court.name, "matches": [m.to_dict(fmt) for m in court.matches]}
            for court in bracket.courts
        ]
    else:
        data["rounds"] = [
            {
                "number": rnd.number,
                "completed": rnd.completed,
                "matches": [m.to_dict(fmt) for m in rnd.matches],
            }
            for rnd in bracket.rounds
        ]
    return data


def bracket_from_dict(data: Mapping) -> BracketData:
    """
    Reconstruct a bracket from a persisted document.

    Raises:
        ValidationError: If the format tag is unknown, a player entry is malformed
            or a score is not an integer
    """
    try:
        fmt = BracketFormat(data.get("format"))
    except ValueError:
        raise ValidationError(f"Unknown bracket format: {data.get('format')!r}") from None

    common = dict(
        current_round=int(data.get("currentRound", 0)),
        completed_matches=tuple(Match.from_dict(m) for m in data.get("completedMatches", [])),
        standings=tuple(Standing.from_dict(s) for s in data.get("standings", [])),
        completed=bool(data.get("completed", False)),
        final_standings=tuple(Standing.from_dict(s) for s in data.get("finalStandings", [])),
    )

    if fmt == BracketFormat.MEXICANO:
        courts = tuple(
            Court(
                name=c["name"],
                matches=tuple(Match.from_dict(m) for m in c.get("matches", [])),
            )
            for c in data.get("courts", [])
        )
        return MexicanoBracket(courts=courts, **common)

    rounds = tuple(
        Round(
            number=int(r["number"]),
            matches=tuple(Match.from_dict(m) for m in r.get("matches", [])),
        )
        for r in data.get("rounds", [])
    )
    return AmericanoBracket(rounds=rounds, **common)


def roster_from_dicts(entries: Iterable[Any]) -> list[Player]:
    """Decode a stored roster, rejecting duplicate ids."""
    roster = [Player.from_dict(e) for e in entries]
    seen: set[str] = set()
    for player in roster:
        if player.id in seen:
            raise ValidationError(f"Duplicate player id in roster: {player.id}")
        seen.add(player.id)
    return roster
