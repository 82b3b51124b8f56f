import logging
from datetime import date
from typing import Callable, List, Optional

from .constants import LEADERBOARD_LIMIT
from .types import LeaderboardEntry, PlayerStats


def calendar_days_between(earlier: str, later: str) -> Optional[int]:
    """Whole days from `earlier` to `later` (ISO dates); None if either is unset or malformed."""
    if not earlier or not later:
        return None
    try:
        return (date.fromisoformat(later) - date.fromisoformat(earlier)).days
    except ValueError:
        return None


def apply_game_result(stats: PlayerStats, votes_received: int, is_winner: bool, today: str) -> PlayerStats:
    """Fold one completed game into `stats`.

    The streak only grows when the previous game was exactly one calendar
    day before `today`; any other gap (same day, missed days, first game)
    restarts it at 1.
    """
    stats.total_submissions += 1
    stats.total_votes_received += int(votes_received)
    if is_winner:
        stats.wins += 1

    gap = calendar_days_between(stats.last_played_date, today)
    if gap == 1:
        stats.current_streak += 1
    else:
        stats.current_streak = 1
    stats.longest_streak = max(stats.longest_streak, stats.current_streak)
    stats.last_played_date = today
    return stats


class StatsService:
    """Per-player aggregate stats and the all-time wins leaderboard."""

    def __init__(self, players, leaderboard, today: Callable[[], str],
                 logger: Optional[logging.Logger] = None):
        self._players = players
        self._leaderboard = leaderboard
        self._today = today
        self._logger = logger or logging.getLogger(__name__)

    def record_game_result(self, player_id: str, player_name: str, votes_received: int, is_winner: bool) -> None:
        """Update one player's stats after a game; failures are logged, never raised."""

        def fold(current: Optional[PlayerStats]) -> PlayerStats:
            stats = current or PlayerStats(player_id=player_id, player_name=player_name)
            if player_name:
                stats.player_name = player_name
            return apply_game_result(stats, votes_received, is_winner, self._today())

        try:
            stats = self._players.update(player_id, fold)
            self._leaderboard.upsert(stats.player_name, stats.wins)
            self._logger.info(
                f'[stats] player={player_id} wins={stats.wins} streak={stats.current_streak} winner={is_winner}'
            )
        except Exception:
            self._logger.exception(f'[stats-error] failed to record game result for player={player_id}')

    def get_player_stats(self, player_id: str) -> Optional[PlayerStats]:
        return self._players.get(player_id)

    def get_leaderboard(self, limit: int = LEADERBOARD_LIMIT) -> List[LeaderboardEntry]:
        entries = []
        for member, _score in self._leaderboard.top(limit):
            player_id = self._players.resolve_name(member)
            stats = self._players.get(player_id) if player_id else None
            if stats is None:
                self._logger.warning(f'[leaderboard] skipping {member!r}: no stats found')
                continue
            entries.append(LeaderboardEntry.from_stats(stats))
        return entries
