"""
Shared fixtures for PvP Triplets tests.

Provides a small gamemaster and ranking on disk plus stub battle engines.
"""

import json

import pytest

from pvp_triplets.data_loader import GameMaster
from pvp_triplets.errors import SimulationError


GAMEMASTER = {
    "pokemon": [
        {
            "speciesId": "bruiser",
            "speciesName": "Bruiser",
            "baseStats": {"atk": 250, "def": 250, "hp": 250},
            "types": ["normal", "none"],
            "fastMoves": ["TACKLE"],
            "chargedMoves": ["BODY_SLAM", "HYPER_BEAM"],
        },
        {
            "speciesId": "sparky",
            "speciesName": "Sparky",
            "baseStats": {"atk": 180, "def": 150, "hp": 160},
            "types": ["electric", "none"],
            "fastMoves": ["THUNDER_SHOCK", "TACKLE"],
            "chargedMoves": ["WILD_CHARGE", "BODY_SLAM", "HYPER_BEAM"],
        },
        {
            "speciesId": "digger",
            "speciesName": "Digger",
            "baseStats": {"atk": 170, "def": 170, "hp": 180},
            "types": ["ground", "none"],
            "fastMoves": ["MUD_SHOT"],
            "chargedMoves": ["EARTHQUAKE"],
        },
        {
            "speciesId": "weakling",
            "speciesName": "Weakling",
            "baseStats": {"atk": 40, "def": 40, "hp": 40},
            "types": ["normal", "none"],
            "fastMoves": ["TACKLE"],
            "chargedMoves": ["BODY_SLAM"],
        },
        {
            "speciesId": "splasher",
            "speciesName": "Splasher",
            "baseStats": {"atk": 160, "def": 160, "hp": 200},
            "types": ["water"],
            "fastMoves": ["WATER_GUN"],
            "chargedMoves": ["HYDRO_CANNON", "EARTHQUAKE"],
            "defaultIVs": {"cp1500": [20.5, 1, 15, 15]},
        },
        {
            "speciesId": "bruiser_mega",
            "speciesName": "Bruiser (Mega)",
            "baseStats": {"atk": 300, "def": 300, "hp": 250},
            "types": ["normal", "none"],
            "fastMoves": ["TACKLE"],
            "chargedMoves": ["BODY_SLAM"],
            "tags": ["mega"],
        },
    ],
    "moves": [
        {"moveId": "TACKLE", "type": "normal", "power": 5, "energyGain": 5, "cooldown": 500},
        {"moveId": "THUNDER_SHOCK", "type": "electric", "power": 3, "energyGain": 9, "cooldown": 1000},
        {"moveId": "MUD_SHOT", "type": "ground", "power": 3, "energyGain": 9, "cooldown": 1000},
        {"moveId": "WATER_GUN", "type": "water", "power": 3, "energyGain": 3, "cooldown": 500},
        {"moveId": "BODY_SLAM", "type": "normal", "power": 50, "energy": 35},
        {"moveId": "HYPER_BEAM", "type": "normal", "power": 150, "energy": 80},
        {"moveId": "WILD_CHARGE", "type": "electric", "power": 100, "energy": 45},
        {"moveId": "EARTHQUAKE", "type": "ground", "power": 120, "energy": 65},
        {"moveId": "HYDRO_CANNON", "type": "water", "power": 80, "energy": 40},
    ],
}

RANKINGS = [
    {"speciesId": "bruiser", "rating": 700},
    {"speciesId": "sparky", "rating": 650},
    {"speciesId": "digger", "rating": 600},
    {"speciesId": "splasher", "rating": 550},
    {"speciesId": "weakling", "rating": 100},
]


@pytest.fixture
def data_dir(tmp_path):
    """Data directory laid out like the default one."""
    (tmp_path / "gamemaster.json").write_text(json.dumps(GAMEMASTER), encoding="utf-8")

    rankings_dir = tmp_path / "rankings" / "all" / "overall"
    rankings_dir.mkdir(parents=True)
    (rankings_dir / "rankings-1500.json").write_text(json.dumps(RANKINGS), encoding="utf-8")
    return tmp_path


@pytest.fixture
def rankings_path(data_dir):
    return data_dir / "rankings" / "all" / "overall" / "rankings-1500.json"


@pytest.fixture
def game_master(data_dir):
    return GameMaster.from_file(data_dir / "gamemaster.json")


# =============================================================================
# STUB SIMULATORS
# =============================================================================


class ConstantSimulator:
    """Returns the same rating for every battle and records the calls."""

    def __init__(self, rating):
        self.rating = rating
        self.calls = []

    def simulate(self, attacker, defender, shields_a, shields_b):
        self.calls.append((attacker, defender, shields_a, shields_b))
        return self.rating


class PatternSimulator:
    """Deterministic ratings that vary by matchup, producing score ties."""

    def __init__(self, pool):
        self.index = {species: i for i, species in enumerate(pool)}

    def simulate(self, attacker, defender, shields_a, shields_b):
        value = self.index[attacker] * 7 + self.index[defender] * 3 + shields_a
        return 1000 if value % 5 < 2 else 0


class FailingSimulator:
    """Raises after a number of successful battles."""

    def __init__(self, fail_after=0):
        self.fail_after = fail_after
        self.calls = 0

    def simulate(self, attacker, defender, shields_a, shields_b):
        self.calls += 1
        if self.calls > self.fail_after:
            raise SimulationError(f"engine failure on {attacker} vs {defender}")
        return 1000


@pytest.fixture
def pool():
    return tuple(f"species_{i:02d}" for i in range(8))
