"""
Gamemaster and ranking loaders.

Reads the gamemaster (species and moves) and ranking exports from JSON or
YAML files and parses them into Pydantic models. The loaded GameMaster is
built once per process and handed to every component that needs it.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .errors import DataNotFoundError, InvalidConfigurationError
from .models import (
    TEAM_SIZE,
    FilterType,
    GameMasterData,
    Move,
    Pokemon,
    RankingEntry,
    Ruleset,
    RulesetFilter,
)

logger = logging.getLogger(__name__)


def _load_data_file(file_path: Path) -> Any:
    """Load a single JSON or YAML file."""
    if not file_path.exists():
        raise InvalidConfigurationError(f"Data file not found: {file_path}")

    try:
        with open(file_path, encoding="utf-8") as f:
            if file_path.suffix in (".yaml", ".yml"):
                return yaml.safe_load(f)
            return json.load(f)
    except yaml.YAMLError as e:
        raise InvalidConfigurationError(f"YAML parse error in {file_path}:\n{e}") from e
    except json.JSONDecodeError as e:
        raise InvalidConfigurationError(f"JSON parse error in {file_path}:\n{e}") from e


class GameMaster:
    """
    Read-only lookups into a loaded gamemaster.

    Every lookup returns an independent deep copy, so callers can mutate
    what they get back without touching the shared dataset.
    """

    def __init__(self, data: GameMasterData):
        self._pokemon: dict[str, Pokemon] = {p.species_id: p for p in data.pokemon}
        self._moves: dict[str, Move] = {m.move_id: m for m in data.moves}

    @classmethod
    def from_file(cls, file_path: str | Path) -> "GameMaster":
        """
        Load a gamemaster document.

        Args:
            file_path: JSON or YAML file with ``pokemon`` and ``moves`` lists.

        Returns:
            GameMaster instance.

        Raises:
            InvalidConfigurationError: If the file is missing or malformed.
        """
        file_path = Path(file_path)
        raw = _load_data_file(file_path)

        try:
            data = GameMasterData.model_validate(raw or {})
        except ValidationError as e:
            raise InvalidConfigurationError(f"Validation error in {file_path}:\n{e}") from e

        game_master = cls(data)
        logger.info(
            f"Loaded gamemaster {file_path.name}: "
            f"{len(game_master._pokemon)} species, {len(game_master._moves)} moves"
        )
        return game_master

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def has_pokemon(self, species_id: str) -> bool:
        return species_id in self._pokemon

    def get_pokemon_by_id(self, species_id: str) -> Pokemon:
        """
        Get a species definition.

        Raises:
            DataNotFoundError: If the species is unknown.
        """
        pokemon = self._pokemon.get(species_id)
        if pokemon is None:
            raise DataNotFoundError("species", species_id)
        return pokemon.model_copy(deep=True)

    def get_move_by_id(self, move_id: str) -> Move:
        """
        Get a move definition.

        Raises:
            DataNotFoundError: If the move is unknown.
        """
        move = self._moves.get(move_id)
        if move is None:
            raise DataNotFoundError("move", move_id)
        return move.model_copy(deep=True)

    def get_cup_by_id(self, cup_id: str) -> Ruleset:
        """Open ruleset named `cup_id` that only excludes mega evolutions."""
        return Ruleset(
            name=cup_id,
            exclude=[RulesetFilter(filter_type=FilterType.TAG, values=["mega"])],
        )


def load_rankings(file_path: str | Path) -> list[RankingEntry]:
    """
    Load a ranking export, best species first.

    Raises:
        InvalidConfigurationError: If the file is missing or malformed.
    """
    file_path = Path(file_path)
    raw = _load_data_file(file_path)

    if not isinstance(raw, list):
        raise InvalidConfigurationError(f"Ranking file must contain a list: {file_path}")

    try:
        rankings = [RankingEntry.model_validate(row) for row in raw]
    except ValidationError as e:
        raise InvalidConfigurationError(f"Validation error in {file_path}:\n{e}") from e

    logger.info(f"Loaded {len(rankings)} ranked species from {file_path.name}")
    return rankings


def load_meta_pool(
    file_path: str | Path,
    meta_count: int = 25,
    game_master: GameMaster | None = None,
) -> tuple[str, ...]:
    """
    Load the meta pool: the top `meta_count` species of a ranking.

    Args:
        file_path: Ranking export.
        meta_count: Number of top-ranked species to keep.
        game_master: If given, every pool id must exist in it.

    Returns:
        Immutable tuple of species ids in rank order.

    Raises:
        InvalidConfigurationError: If fewer than three species remain or
            a species is ranked twice.
        DataNotFoundError: If a pool id is missing from `game_master`.
    """
    if meta_count < 0:
        raise InvalidConfigurationError(f"meta_count must be non-negative, got {meta_count}")

    rankings = load_rankings(file_path)
    pool = tuple(entry.species_id for entry in rankings[:meta_count])

    if len(pool) < TEAM_SIZE:
        raise InvalidConfigurationError(
            f"Meta pool needs at least {TEAM_SIZE} species to form a team",
            {"pool_size": len(pool), "meta_count": meta_count},
        )

    seen: set[str] = set()
    for species_id in pool:
        if species_id in seen:
            raise InvalidConfigurationError(
                f"Duplicate species in meta pool: {species_id}",
                {"species_id": species_id},
            )
        seen.add(species_id)

    if game_master is not None:
        for species_id in pool:
            if not game_master.has_pokemon(species_id):
                raise DataNotFoundError("species", species_id)

    logger.info(f"Meta pool: {len(pool)} species")
    return pool
