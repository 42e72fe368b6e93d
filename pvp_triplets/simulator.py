"""
One-on-one PvP battle simulation.

The search only depends on the `Simulator` protocol. `BattleSimulator` is the
bundled deterministic engine: both combatants are built at a CP cap with a
default moveset, fight in 500ms turns, and the result is reported as a
battle rating from the attacker's point of view (0-1000, above 500 is a win).
"""

import logging
import math
import threading
from dataclasses import dataclass
from typing import Protocol

from .data_loader import GameMaster
from .errors import SimulationError
from .models import MAX_RATING, Move, MoveKind, Pokemon, Ruleset

logger = logging.getLogger(__name__)


class Simulator(Protocol):
    """Protocol for battle engines."""

    def simulate(
        self,
        attacker: str,
        defender: str,
        shields_a: int,
        shields_b: int,
    ) -> int:
        """Return the attacker's battle rating."""
        ...


# =============================================================================
# CONSTANTS
# =============================================================================

MAX_SHIELDS = 2
MAX_ENERGY = 100
TURN_MS = 500
MAX_TURNS = 240_000 // TURN_MS  # 4 minute battle timer

STAB_BONUS = 1.2
DAMAGE_BONUS = 1.3
SUPER_EFFECTIVE = 1.6
RESISTED = 0.625
DOUBLE_RESISTED = 0.390625

MIN_LEVEL = 1.0
MAX_LEVEL = 51.0
DEFAULT_IVS = (15, 15, 15)

# CP multiplier per whole level, starting at level 1
CPM_BY_LEVEL = (
    0.094, 0.16639787, 0.21573247, 0.25572005, 0.29024988,
    0.3210876, 0.34921268, 0.3752356, 0.39956728, 0.4225,
    0.44310755, 0.4627984, 0.48168495, 0.49985844, 0.51739395,
    0.5343543, 0.5507927, 0.5667545, 0.5822789, 0.5974,
    0.6121573, 0.6265671, 0.64065295, 0.65443563, 0.667934,
    0.6811649, 0.69414365, 0.7068842, 0.7193991, 0.7317,
    0.7377695, 0.74378943, 0.74976104, 0.7556855, 0.76156384,
    0.76739717, 0.7731865, 0.77893275, 0.784637, 0.7903,
    0.7953, 0.8003, 0.8053, 0.8103, 0.8153,
    0.8203, 0.8253, 0.8303, 0.8353, 0.8403,
    0.8453,
)

# attacking type -> (super effective against, resisted by, immune)
TYPE_CHART: dict[str, tuple[frozenset[str], frozenset[str], frozenset[str]]] = {
    t: (frozenset(se), frozenset(nve), frozenset(imm))
    for t, se, nve, imm in (
        ("normal", (), ("rock", "steel"), ("ghost",)),
        ("fire", ("grass", "ice", "bug", "steel"), ("fire", "water", "rock", "dragon"), ()),
        ("water", ("fire", "ground", "rock"), ("water", "grass", "dragon"), ()),
        ("electric", ("water", "flying"), ("electric", "grass", "dragon"), ("ground",)),
        ("grass", ("water", "ground", "rock"),
         ("fire", "grass", "poison", "flying", "bug", "dragon", "steel"), ()),
        ("ice", ("grass", "ground", "flying", "dragon"), ("fire", "water", "ice", "steel"), ()),
        ("fighting", ("normal", "ice", "rock", "dark", "steel"),
         ("poison", "flying", "psychic", "bug", "fairy"), ("ghost",)),
        ("poison", ("grass", "fairy"), ("poison", "ground", "rock", "ghost"), ("steel",)),
        ("ground", ("fire", "electric", "poison", "rock", "steel"), ("grass", "bug"), ("flying",)),
        ("flying", ("grass", "fighting", "bug"), ("electric", "rock", "steel"), ()),
        ("psychic", ("fighting", "poison"), ("psychic", "steel"), ("dark",)),
        ("bug", ("grass", "psychic", "dark"),
         ("fire", "fighting", "poison", "flying", "ghost", "steel", "fairy"), ()),
        ("rock", ("fire", "ice", "flying", "bug"), ("fighting", "ground", "steel"), ()),
        ("ghost", ("psychic", "ghost"), ("dark",), ("normal",)),
        ("dragon", ("dragon",), ("steel",), ("fairy",)),
        ("dark", ("psychic", "ghost"), ("fighting", "dark", "fairy"), ()),
        ("steel", ("ice", "rock", "fairy"), ("fire", "water", "electric", "steel"), ()),
        ("fairy", ("fighting", "dragon", "dark"), ("fire", "poison", "steel"), ()),
    )
}


# =============================================================================
# STAT HELPERS
# =============================================================================


def cp_multiplier(level: float) -> float:
    """CP multiplier for a whole or half level."""
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise SimulationError(f"Level out of range: {level}")

    index = int(level) - 1
    if level == int(level):
        return CPM_BY_LEVEL[index]

    low, high = CPM_BY_LEVEL[index], CPM_BY_LEVEL[index + 1]
    return math.sqrt((low * low + high * high) / 2)


def calculate_cp(pokemon: Pokemon, level: float, ivs: tuple[int, int, int]) -> int:
    base = pokemon.base_stats
    cpm = cp_multiplier(level)
    cp = (
        (base.atk + ivs[0])
        * math.sqrt(base.defense + ivs[1])
        * math.sqrt(base.hp + ivs[2])
        * cpm * cpm / 10
    )
    return max(10, math.floor(cp))


def type_effectiveness(move_type: str, defender_types: list[str]) -> float:
    """Damage multiplier of `move_type` against a (possibly dual) typing."""
    super_effective, resisted, immune = TYPE_CHART.get(
        move_type, (frozenset(), frozenset(), frozenset())
    )
    multiplier = 1.0
    for defender_type in defender_types:
        if defender_type in super_effective:
            multiplier *= SUPER_EFFECTIVE
        elif defender_type in immune:
            multiplier *= DOUBLE_RESISTED
        elif defender_type in resisted:
            multiplier *= RESISTED
    return multiplier


# =============================================================================
# COMBATANTS
# =============================================================================


@dataclass(frozen=True)
class Build:
    """A species fixed at a level, IV spread and moveset."""

    species_id: str
    types: tuple[str, ...]
    level: float
    ivs: tuple[int, int, int]
    cp: int
    atk: float
    defense: float
    max_hp: int
    fast_move: Move
    charged_moves: tuple[Move, ...]


@dataclass
class Combatant:
    """Mutable battle state of one side."""

    build: Build
    shields: int
    hp: int = 0
    energy: int = 0
    cooldown: int = 0
    fast_pending: bool = False

    def __post_init__(self):
        if self.hp <= 0:
            self.hp = self.build.max_hp

    @property
    def fainted(self) -> bool:
        return self.hp <= 0


def calculate_damage(attacker: Build, defender: Build, move: Move) -> int:
    stab = STAB_BONUS if move.type in attacker.types else 1.0
    effectiveness = type_effectiveness(move.type, list(defender.types))
    return math.floor(
        move.power * stab * (attacker.atk / defender.defense)
        * effectiveness * 0.5 * DAMAGE_BONUS
    ) + 1


# =============================================================================
# SIMULATOR
# =============================================================================


class BattleSimulator:
    """
    Deterministic turn-based battle engine.

    Both sides use their default moveset: the first fast move, the first
    charged move and, when the species has one, the second charged move.
    Shields are spent on every charged move while any remain.
    """

    def __init__(
        self,
        game_master: GameMaster,
        cp_cap: int = 1500,
        cup: str = "all",
    ):
        """
        Initialize the simulator.

        Args:
            game_master: Shared dataset handle.
            cp_cap: League CP limit every combatant is built under.
            cup: Ruleset name; species it excludes cannot battle.
        """
        self.game_master = game_master
        self.cp_cap = cp_cap
        self.ruleset: Ruleset = game_master.get_cup_by_id(cup)

        self._lock = threading.Lock()
        self._builds: dict[str, Build] = {}
        self._ratings: dict[tuple[str, str, int, int], int] = {}

    def simulate(
        self,
        attacker: str,
        defender: str,
        shields_a: int,
        shields_b: int,
    ) -> int:
        """
        Battle `attacker` against `defender` and rate the outcome.

        Returns:
            Attacker's battle rating in [0, 1000].

        Raises:
            SimulationError: If the battle cannot be set up.
            DataNotFoundError: If a species or move is unknown.
        """
        for shields in (shields_a, shields_b):
            if not 0 <= shields <= MAX_SHIELDS:
                raise SimulationError(
                    f"Shield count must be between 0 and {MAX_SHIELDS}",
                    {"shields": shields},
                )

        key = (attacker, defender, shields_a, shields_b)
        with self._lock:
            if key in self._ratings:
                return self._ratings[key]

        rating = self._battle(
            Combatant(self.get_build(attacker), shields_a),
            Combatant(self.get_build(defender), shields_b),
        )

        with self._lock:
            self._ratings[key] = rating

        logger.debug(f"{attacker} vs {defender} ({shields_a}-{shields_b}): {rating}")
        return rating

    def get_build(self, species_id: str) -> Build:
        """Build (and cache) a species at the CP cap."""
        with self._lock:
            build = self._builds.get(species_id)
        if build is not None:
            return build

        build = self._create_build(self.game_master.get_pokemon_by_id(species_id))
        with self._lock:
            self._builds.setdefault(species_id, build)
        return build

    def _create_build(self, pokemon: Pokemon) -> Build:
        if not self.ruleset.allows(pokemon):
            raise SimulationError(
                f"{pokemon.species_id} is not allowed in {self.ruleset.name}",
            )
        if not pokemon.fast_moves or not pokemon.charged_moves:
            raise SimulationError(f"{pokemon.species_id} has no default moveset")

        level, ivs = self._default_spread(pokemon)
        cpm = cp_multiplier(level)
        base = pokemon.base_stats

        fast_move = self.game_master.get_move_by_id(pokemon.fast_moves[0])
        if fast_move.kind != MoveKind.FAST:
            raise SimulationError(f"{fast_move.move_id} is not a fast move")

        charged_moves = tuple(self.game_master.get_move_by_id(m) for m in pokemon.charged_moves[:2])
        for move in charged_moves:
            if move.kind != MoveKind.CHARGED:
                raise SimulationError(f"{move.move_id} is not a charged move")

        return Build(
            species_id=pokemon.species_id,
            types=tuple(pokemon.real_types),
            level=level,
            ivs=ivs,
            cp=calculate_cp(pokemon, level, ivs),
            atk=(base.atk + ivs[0]) * cpm,
            defense=(base.defense + ivs[1]) * cpm,
            max_hp=max(10, math.floor((base.hp + ivs[2]) * cpm)),
            fast_move=fast_move,
            charged_moves=charged_moves,
        )

    def _default_spread(self, pokemon: Pokemon) -> tuple[float, tuple[int, int, int]]:
        """Level and IVs from the gamemaster, else the best 15/15/15 under the cap."""
        preset = pokemon.default_ivs.get(f"cp{self.cp_cap}")
        if preset and len(preset) == 4:
            level, atk_iv, def_iv, hp_iv = preset
            return float(level), (int(atk_iv), int(def_iv), int(hp_iv))

        level = MAX_LEVEL
        while level > MIN_LEVEL and calculate_cp(pokemon, level, DEFAULT_IVS) > self.cp_cap:
            level -= 0.5
        return level, DEFAULT_IVS

    # =========================================================================
    # BATTLE LOOP
    # =========================================================================

    def _battle(self, a: Combatant, b: Combatant) -> int:
        sides = (a, b)
        opponents = {0: b, 1: a}

        for _ in range(MAX_TURNS):
            # Charged moves resolve first, higher attack wins ties for priority
            charged = []
            for index, side in enumerate(sides):
                if side.cooldown == 0:
                    move = self._choose_charged_move(side, opponents[index])
                    if move is not None:
                        charged.append((index, side, move))
            charged.sort(key=lambda item: (-item[1].build.atk, item[0]))

            acted = set()
            for index, side, move in charged:
                acted.add(index)
                if side.fainted:
                    continue
                self._use_charged_move(side, opponents[index], move)

            for index, side in enumerate(sides):
                if index not in acted and side.cooldown == 0 and not side.fainted:
                    side.cooldown = side.build.fast_move.turns
                    side.fast_pending = True

            # Fast moves landing this turn hit simultaneously
            landed = []
            for index, side in enumerate(sides):
                if side.cooldown > 0:
                    side.cooldown -= 1
                    if side.cooldown == 0 and side.fast_pending:
                        side.fast_pending = False
                        if not side.fainted:
                            landed.append(index)
            for index in landed:
                side, target = sides[index], opponents[index]
                damage = calculate_damage(side.build, target.build, side.build.fast_move)
                target.hp = max(0, target.hp - damage)
                side.energy = min(MAX_ENERGY, side.energy + side.build.fast_move.energy_gain)

            if a.fainted or b.fainted:
                break

        return self._rating(a, b)

    def _choose_charged_move(self, side: Combatant, target: Combatant) -> Move | None:
        affordable = [m for m in side.build.charged_moves if side.energy >= m.energy]
        if not affordable:
            return None

        # Finish with the fast move when it is enough
        fast_damage = calculate_damage(side.build, target.build, side.build.fast_move)
        if fast_damage >= target.hp and side.build.fast_move.turns == 1:
            return None

        return max(
            affordable,
            key=lambda m: (calculate_damage(side.build, target.build, m), -m.energy),
        )

    def _use_charged_move(self, side: Combatant, target: Combatant, move: Move) -> None:
        side.energy -= move.energy
        if target.shields > 0:
            target.shields -= 1
            damage = 1
        else:
            damage = calculate_damage(side.build, target.build, move)
        target.hp = max(0, target.hp - damage)

    @staticmethod
    def _rating(a: Combatant, b: Combatant) -> int:
        dealt = (b.build.max_hp - b.hp) / b.build.max_hp
        remaining = a.hp / a.build.max_hp
        rating = math.floor(500 * dealt + 500 * remaining)
        return max(0, min(MAX_RATING, rating))
