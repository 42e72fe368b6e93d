"""
Pydantic models for PvP gamemaster entities and search results.

Field aliases follow the camelCase keys of the public PvP gamemaster and
ranking exports, so files can be validated without any reshaping.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# CONSTANTS
# =============================================================================

# Shield counts (attacker, defender) evaluated for every matchup
ShieldScenario = tuple[int, int]
SHIELD_SCENARIOS: tuple[ShieldScenario, ...] = ((0, 0), (1, 1), (2, 2))

# A battle rating above this is a win for the attacker
WIN_THRESHOLD = 500
MAX_RATING = 1000

TEAM_SIZE = 3
LEADERBOARD_SIZE = 5

Team = tuple[str, ...]


# =============================================================================
# ENUMS
# =============================================================================


class MoveKind(str, Enum):
    """Move slot category."""

    FAST = "fast"
    CHARGED = "charged"


class FilterType(str, Enum):
    """Ruleset filter kinds."""

    TAG = "tag"
    TYPE = "type"
    ID = "id"


# =============================================================================
# GAMEMASTER MODELS
# =============================================================================


class _GameMasterModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Move(_GameMasterModel):
    """Fast or charged move definition."""

    move_id: str = Field(alias="moveId")
    name: str | None = None
    type: str
    power: float = 0
    energy: int = 0  # Cost of a charged move
    energy_gain: int = Field(default=0, alias="energyGain")  # Gain of a fast move
    cooldown: int = 500  # Milliseconds

    @property
    def kind(self) -> MoveKind:
        """Fast moves generate energy, charged moves spend it."""
        return MoveKind.FAST if self.energy_gain > 0 else MoveKind.CHARGED

    @property
    def turns(self) -> int:
        """Duration in 500ms battle turns."""
        return max(1, self.cooldown // 500)


class BaseStats(_GameMasterModel):
    """Species base stats."""

    atk: float
    defense: float = Field(alias="def")
    hp: float


class Pokemon(_GameMasterModel):
    """
    Species definition from the gamemaster.

    `default_ivs` maps a league key such as ``cp1500`` to
    ``[level, atk_iv, def_iv, hp_iv]``.
    """

    species_id: str = Field(alias="speciesId")
    species_name: str | None = Field(default=None, alias="speciesName")
    dex: int | None = None
    base_stats: BaseStats = Field(alias="baseStats")
    types: list[str] = Field(default_factory=list)
    fast_moves: list[str] = Field(default_factory=list, alias="fastMoves")
    charged_moves: list[str] = Field(default_factory=list, alias="chargedMoves")
    tags: list[str] = Field(default_factory=list)
    default_ivs: dict[str, list[float]] = Field(default_factory=dict, alias="defaultIVs")

    @property
    def display_name(self) -> str:
        return self.species_name or self.species_id

    @property
    def real_types(self) -> list[str]:
        """Types without the ``none`` placeholder."""
        return [t for t in self.types if t and t != "none"]


class RulesetFilter(_GameMasterModel):
    """Single include/exclude filter of a ruleset."""

    filter_type: FilterType = Field(alias="filterType")
    values: list[str] = Field(default_factory=list)

    def matches(self, pokemon: Pokemon) -> bool:
        if self.filter_type == FilterType.TAG:
            return any(tag in self.values for tag in pokemon.tags)
        if self.filter_type == FilterType.TYPE:
            return any(t in self.values for t in pokemon.real_types)
        return pokemon.species_id in self.values


class Ruleset(_GameMasterModel):
    """
    Cup definition restricting which species may battle.

    An empty include list admits every species not excluded.
    """

    name: str
    include: list[RulesetFilter] = Field(default_factory=list)
    exclude: list[RulesetFilter] = Field(default_factory=list)

    def allows(self, pokemon: Pokemon) -> bool:
        if any(f.matches(pokemon) for f in self.exclude):
            return False
        if self.include:
            return any(f.matches(pokemon) for f in self.include)
        return True


class GameMasterData(_GameMasterModel):
    """Top-level gamemaster document."""

    pokemon: list[Pokemon] = Field(default_factory=list)
    moves: list[Move] = Field(default_factory=list)


class RankingEntry(_GameMasterModel):
    """One row of a ranking export, best first."""

    species_id: str = Field(alias="speciesId")
    species_name: str | None = Field(default=None, alias="speciesName")
    rating: float | None = None
    score: float | None = None


# =============================================================================
# SEARCH RESULT MODELS
# =============================================================================


class LeaderboardEntry(BaseModel):
    """
    A scored team.

    `sequence` is the generation index of the team. It breaks score ties so
    that earlier teams outrank later ones regardless of completion order.
    """

    model_config = ConfigDict(frozen=True)

    team: Team
    score: int = Field(ge=0)
    sequence: int = 0

    def format(self, rank: int) -> str:
        """Report line for this entry."""
        return f"#{rank}: {', '.join(self.team)} score {self.score}"


class SearchResult(BaseModel):
    """Outcome of a completed search."""

    evaluated: int
    total: int
    entries: list[LeaderboardEntry] = Field(default_factory=list)
