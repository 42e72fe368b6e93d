"""Tests for gamemaster and ranking loading."""

import json

import pytest
import yaml

from conftest import GAMEMASTER, RANKINGS
from pvp_triplets.data_loader import GameMaster, load_meta_pool, load_rankings
from pvp_triplets.errors import DataNotFoundError, InvalidConfigurationError


class TestGameMaster:
    """Tests for GameMaster lookups."""

    def test_loads_species_and_moves(self, game_master):
        assert game_master.get_pokemon_by_id("bruiser").species_name == "Bruiser"
        assert game_master.has_pokemon("digger")
        assert not game_master.has_pokemon("missingno")

    def test_parses_camel_case_fields(self, game_master):
        sparky = game_master.get_pokemon_by_id("sparky")

        assert sparky.base_stats.defense == 150
        assert sparky.fast_moves == ["THUNDER_SHOCK", "TACKLE"]
        assert sparky.real_types == ["electric"]

        shock = game_master.get_move_by_id("THUNDER_SHOCK")
        assert shock.energy_gain == 9
        assert shock.turns == 2

    def test_lookups_return_independent_copies(self, game_master):
        first = game_master.get_pokemon_by_id("bruiser")
        first.types.append("ghost")
        first.base_stats.atk = 1

        second = game_master.get_pokemon_by_id("bruiser")
        assert second is not first
        assert second.types == ["normal", "none"]
        assert second.base_stats.atk == 250

    def test_move_lookup_returns_copy(self, game_master):
        move = game_master.get_move_by_id("BODY_SLAM")
        move.power = 999

        assert game_master.get_move_by_id("BODY_SLAM").power == 50

    def test_unknown_species(self, game_master):
        with pytest.raises(DataNotFoundError) as exc_info:
            game_master.get_pokemon_by_id("missingno")

        assert exc_info.value.identifier == "missingno"
        assert isinstance(exc_info.value, LookupError)

    def test_unknown_move(self, game_master):
        with pytest.raises(DataNotFoundError):
            game_master.get_move_by_id("STRUGGLE")

    def test_cup_excludes_megas(self, game_master):
        cup = game_master.get_cup_by_id("all")

        assert cup.name == "all"
        assert cup.include == []
        assert not cup.allows(game_master.get_pokemon_by_id("bruiser_mega"))
        assert cup.allows(game_master.get_pokemon_by_id("bruiser"))

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "gamemaster.yaml"
        path.write_text(yaml.safe_dump(GAMEMASTER), encoding="utf-8")

        game_master = GameMaster.from_file(path)

        assert game_master.get_pokemon_by_id("splasher").default_ivs == {"cp1500": [20.5, 1, 15, 15]}

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidConfigurationError):
            GameMaster.from_file(tmp_path / "nope.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "gamemaster.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(InvalidConfigurationError):
            GameMaster.from_file(path)

    def test_invalid_entries(self, tmp_path):
        path = tmp_path / "gamemaster.json"
        path.write_text(json.dumps({"pokemon": [{"speciesId": "x"}]}), encoding="utf-8")

        with pytest.raises(InvalidConfigurationError):
            GameMaster.from_file(path)


class TestMetaPool:
    """Tests for ranking loading and pool truncation."""

    def test_rankings_keep_order(self, rankings_path):
        rankings = load_rankings(rankings_path)

        assert [r.species_id for r in rankings] == [r["speciesId"] for r in RANKINGS]

    def test_pool_is_top_of_ranking(self, rankings_path):
        pool = load_meta_pool(rankings_path, meta_count=3)

        assert pool == ("bruiser", "sparky", "digger")
        assert isinstance(pool, tuple)

    def test_meta_count_larger_than_ranking(self, rankings_path):
        assert len(load_meta_pool(rankings_path, meta_count=25)) == len(RANKINGS)

    def test_pool_too_small(self, rankings_path):
        with pytest.raises(InvalidConfigurationError):
            load_meta_pool(rankings_path, meta_count=2)

    def test_negative_meta_count(self, rankings_path):
        with pytest.raises(InvalidConfigurationError):
            load_meta_pool(rankings_path, meta_count=-1)

    def test_checks_ids_against_game_master(self, rankings_path, game_master):
        assert load_meta_pool(rankings_path, 5, game_master)[-1] == "weakling"

    def test_unknown_ranked_species(self, tmp_path, game_master):
        path = tmp_path / "rankings.json"
        path.write_text(json.dumps(RANKINGS + [{"speciesId": "missingno"}]), encoding="utf-8")

        with pytest.raises(DataNotFoundError):
            load_meta_pool(path, 6, game_master)

    def test_ranking_must_be_a_list(self, tmp_path):
        path = tmp_path / "rankings.json"
        path.write_text(json.dumps({"speciesId": "bruiser"}), encoding="utf-8")

        with pytest.raises(InvalidConfigurationError):
            load_rankings(path)

    def test_duplicate_ranked_species(self, tmp_path):
        path = tmp_path / "rankings.json"
        path.write_text(json.dumps(RANKINGS[:3] + RANKINGS[:1]), encoding="utf-8")

        with pytest.raises(InvalidConfigurationError, match="Duplicate"):
            load_meta_pool(path, 4)
