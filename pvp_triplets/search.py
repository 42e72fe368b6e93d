"""
Best-triplet search.

Linear pipeline that:
1. Enumerates every 3-member team of the meta pool
2. Scores each team by simulating its members against the rest of the pool
3. Keeps the best scoring teams on a bounded leaderboard
4. Returns the evaluated count and the final leaderboard

Workers share one combination cursor and one leaderboard, so running with
several workers produces exactly the leaderboard of a sequential run.
"""

import logging
import threading
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from .combinations import combinations, count_combinations
from .errors import InvalidConfigurationError
from .models import (
    LEADERBOARD_SIZE,
    SHIELD_SCENARIOS,
    TEAM_SIZE,
    WIN_THRESHOLD,
    LeaderboardEntry,
    SearchResult,
    ShieldScenario,
    Team,
)
from .simulator import Simulator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def score_team(
    team: Sequence[str],
    pool: Sequence[str],
    simulator: Simulator,
    scenarios: Sequence[ShieldScenario] = SHIELD_SCENARIOS,
) -> int:
    """
    Count the winning matchups of a team against the meta pool.

    Every member battles every pool species outside the team once per
    shield scenario, always as the attacker. A rating above 500 scores one
    point. Errors from the simulator propagate immediately.

    Args:
        team: Member species ids.
        pool: Meta pool species ids.
        simulator: Battle engine.
        scenarios: (attacker shields, defender shields) pairs.

    Returns:
        Number of won encounters.
    """
    score = 0
    for opponent in pool:
        if opponent in team:
            continue
        for member in team:
            for shields_a, shields_b in scenarios:
                rating = simulator.simulate(member, opponent, shields_a, shields_b)
                if rating > WIN_THRESHOLD:
                    score += 1
    return score


class Leaderboard:
    """
    Bounded list of the best scoring teams.

    Entries are ordered by score, then by generation sequence. When the
    board overflows the last entry goes, which is the latest generated team
    among those tied for the lowest score.
    """

    def __init__(self, capacity: int = LEADERBOARD_SIZE):
        if capacity < 1:
            raise InvalidConfigurationError(f"Leaderboard capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: list[LeaderboardEntry] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def offer(self, entry: LeaderboardEntry) -> bool:
        """
        Insert an entry, evicting the weakest one on overflow.

        Returns:
            True if the entry is on the board afterwards.
        """
        with self._lock:
            self._entries.append(entry)
            self._entries.sort(key=lambda e: (-e.score, e.sequence))
            if len(self._entries) > self.capacity:
                evicted = self._entries.pop()
                return evicted is not entry
            return True

    def snapshot(self) -> list[LeaderboardEntry]:
        """Current entries, best first."""
        with self._lock:
            return list(self._entries)


class _TeamCursor:
    """Shared, capped iterator over (sequence, team) pairs."""

    def __init__(self, teams: Iterator[Team], limit: int | None):
        self._teams = teams
        self._limit = limit
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self.dispatched = 0
        self.completed = 0

    def next(self) -> tuple[int, Team] | None:
        with self._lock:
            if self._stopped.is_set():
                return None
            if self._limit is not None and self.dispatched >= self._limit:
                return None
            team = next(self._teams, None)
            if team is None:
                return None
            sequence = self.dispatched
            self.dispatched += 1
            return sequence, team

    def mark_done(self) -> int:
        with self._lock:
            self.completed += 1
            return self.completed

    def stop(self) -> None:
        self._stopped.set()


class TripletSearch:
    """
    Exhaustive search for the best 3-member teams of a meta pool.

    Flow:
    1. Validate the pool and create a fresh combination cursor
    2. Pull teams, score them and offer them to the leaderboard
    3. Stop when the teams run out or the evaluation limit is reached
    """

    def __init__(
        self,
        pool: Sequence[str],
        simulator: Simulator,
        limit: int | None = None,
        workers: int = 1,
        capacity: int = LEADERBOARD_SIZE,
        scenarios: Sequence[ShieldScenario] = SHIELD_SCENARIOS,
    ):
        """
        Initialize the search.

        Args:
            pool: Meta pool species ids, best ranked first.
            simulator: Battle engine used for every matchup.
            limit: Maximum teams to evaluate. None evaluates all of them.
            workers: Number of threads scoring teams.
            capacity: Leaderboard size.
            scenarios: Shield scenarios per matchup.
        """
        if limit is not None and limit < 0:
            raise InvalidConfigurationError(f"limit must be non-negative, got {limit}")
        if workers < 1:
            raise InvalidConfigurationError(f"workers must be at least 1, got {workers}")

        self.pool = tuple(pool)
        self.simulator = simulator
        self.limit = limit
        self.workers = workers
        self.capacity = capacity
        self.scenarios = tuple(scenarios)

    @property
    def total_teams(self) -> int:
        """Teams the search will evaluate, taking the limit into account."""
        total = count_combinations(len(self.pool), TEAM_SIZE)
        if self.limit is not None:
            return min(total, self.limit)
        return total

    def run(self, progress: ProgressCallback | None = None) -> SearchResult:
        """
        Run the search to completion.

        Args:
            progress: Called with (evaluated, total) after each team.

        Returns:
            Evaluated team count and final leaderboard.

        Raises:
            InvalidConfigurationError: If the pool has fewer than three species.
            Any simulator error, after in-flight evaluations finish.
        """
        if len(self.pool) < TEAM_SIZE:
            raise InvalidConfigurationError(
                f"Meta pool needs at least {TEAM_SIZE} species to form a team",
                {"pool_size": len(self.pool)},
            )

        total = self.total_teams
        leaderboard = Leaderboard(self.capacity)
        cursor = _TeamCursor(combinations(self.pool, TEAM_SIZE), self.limit)

        logger.info(
            f"Searching {total} teams from a pool of {len(self.pool)} "
            f"with {self.workers} worker(s)"
        )

        if self.workers == 1:
            self._work(cursor, leaderboard, total, progress)
        else:
            with ThreadPoolExecutor(
                max_workers=self.workers,
                thread_name_prefix="TripletSearch",
            ) as executor:
                futures = [
                    executor.submit(self._work, cursor, leaderboard, total, progress)
                    for _ in range(self.workers)
                ]
                for future in as_completed(futures):
                    future.result()

        logger.info(f"Search finished after {cursor.completed} teams")
        return SearchResult(
            evaluated=cursor.completed,
            total=total,
            entries=leaderboard.snapshot(),
        )

    def _work(
        self,
        cursor: _TeamCursor,
        leaderboard: Leaderboard,
        total: int,
        progress: ProgressCallback | None,
    ) -> None:
        """Score teams until the cursor runs dry."""
        while (item := cursor.next()) is not None:
            sequence, team = item
            try:
                score = score_team(team, self.pool, self.simulator, self.scenarios)
            except Exception:
                cursor.stop()
                raise

            leaderboard.offer(LeaderboardEntry(team=team, score=score, sequence=sequence))
            done = cursor.mark_done()
            logger.debug(f"Team {', '.join(team)}: {score}")

            if progress is not None:
                progress(done, total)
