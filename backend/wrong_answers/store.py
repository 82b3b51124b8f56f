"""Redis-backed persistence for games, player stats and the leaderboard.

`redis_client` is a stable proxy so services built at app start keep
working when the underlying client is swapped (e.g. for fakeredis in tests).
"""

import json
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

import redis
from redis.exceptions import WatchError

from wrong_answers.services.games.errors import ConcurrencyError
from wrong_answers.services.games.types import GameState, PlayerStats

T = TypeVar('T')

GAME_KEY = 'game:{game_id}'
PLAYER_KEY = 'player:{player_id}'
PLAYER_NAMES_KEY = 'player:names'
LEADERBOARD_KEY = 'leaderboard:alltime'
QUESTION_USAGE_KEY = 'questions:last_used'
POST_KEY = 'post:{post_id}'


class RedisProxy:
    """Forwards attribute access to the current redis client."""

    def __init__(self, client: Optional[redis.Redis] = None):
        self._client = client

    def set_client(self, client: redis.Redis) -> None:
        self._client = client

    @property
    def client(self) -> Optional[redis.Redis]:
        return self._client

    def __getattr__(self, item):
        if self._client is None:
            raise RuntimeError('redis client is not configured; call init_redis(app) first')
        return getattr(self._client, item)


redis_client = RedisProxy()


def set_redis_client(client: redis.Redis) -> None:
    redis_client.set_client(client)


def init_redis(app) -> None:
    """Point the proxy at REDIS_URL unless a client was already installed."""
    if redis_client.client is None:
        redis_client.set_client(redis.from_url(app.config['REDIS_URL'], decode_responses=True))


class GameRepository:
    """One JSON-encoded GameState per game id, stored in the `state` field of `game:{id}`."""

    def __init__(self, client=redis_client, retries: int = 5):
        self._redis = client
        self._retries = max(1, int(retries))

    @staticmethod
    def _key(game_id: str) -> str:
        return GAME_KEY.format(game_id=game_id)

    @staticmethod
    def _decode(raw) -> Optional[GameState]:
        if not raw:
            return None
        return GameState.from_dict(json.loads(raw))

    @staticmethod
    def _encode(state: GameState) -> str:
        return json.dumps(state.to_dict())

    def load(self, game_id: str) -> Optional[GameState]:
        return self._decode(self._redis.hget(self._key(game_id), 'state'))

    def save(self, game_id: str, state: GameState) -> None:
        self._redis.hset(self._key(game_id), mapping={'state': self._encode(state)})

    def update(self, game_id: str, fn: Callable[[Optional[GameState]], Tuple[Optional[GameState], T]]) -> T:
        """Run a read-modify-write of one game inside a WATCH/MULTI transaction.

        `fn` receives the stored state (or None) and returns `(state_to_save, result)`;
        a None state skips the write. `fn` is re-run from a fresh read whenever
        another writer touched the game in between.
        """
        key = self._key(game_id)
        for _ in range(self._retries):
            with self._redis.pipeline() as pipe:
                try:
                    pipe.watch(key)
                    current = self._decode(pipe.hget(key, 'state'))
                    new_state, result = fn(current)
                    if new_state is None:
                        pipe.unwatch()
                        return result
                    pipe.multi()
                    pipe.hset(key, mapping={'state': self._encode(new_state)})
                    pipe.execute()
                    return result
                except WatchError:
                    continue
        raise ConcurrencyError('The game was busy, please try again')


class PlayerStatsRepository:
    """Per-player stats hash plus a player name -> id index for leaderboard lookups."""

    def __init__(self, client=redis_client, retries: int = 5):
        self._redis = client
        self._retries = max(1, int(retries))

    def get(self, player_id: str) -> Optional[PlayerStats]:
        fields = self._redis.hgetall(PLAYER_KEY.format(player_id=player_id))
        if not fields:
            return None
        return PlayerStats.from_hash(player_id, fields)

    def update(self, player_id: str, fn: Callable[[Optional[PlayerStats]], PlayerStats]) -> PlayerStats:
        """Read-modify-write one player's stats under WATCH, re-running `fn` on conflict."""
        key = PLAYER_KEY.format(player_id=player_id)
        for _ in range(self._retries):
            with self._redis.pipeline() as pipe:
                try:
                    pipe.watch(key)
                    fields = pipe.hgetall(key)
                    stats = fn(PlayerStats.from_hash(player_id, fields) if fields else None)
                    pipe.multi()
                    pipe.hset(key, mapping=stats.to_hash())
                    pipe.hset(PLAYER_NAMES_KEY, stats.player_name, stats.player_id)
                    pipe.execute()
                    return stats
                except WatchError:
                    continue
        raise ConcurrencyError(f'Stats for player {player_id} were busy, please try again')

    def resolve_name(self, player_name: str) -> Optional[str]:
        return self._redis.hget(PLAYER_NAMES_KEY, player_name)


class LeaderboardRepository:
    """Sorted set of player name -> wins.

    Equal scores come back in reverse lexicographic member order, which is
    how ZREVRANGE orders ties.
    """

    def __init__(self, client=redis_client, key: str = LEADERBOARD_KEY):
        self._redis = client
        self._key = key

    def upsert(self, member: str, score: float) -> None:
        self._redis.zadd(self._key, {member: float(score)})

    def top(self, limit: int) -> List[Tuple[str, float]]:
        if limit <= 0:
            return []
        rows = self._redis.zrevrange(self._key, 0, limit - 1, withscores=True)
        return [(member, float(score)) for member, score in rows]


class QuestionUsageRepository:
    """Last date (YYYY-MM-DD) each question was assigned to a game."""

    def __init__(self, client=redis_client):
        self._redis = client

    def all(self) -> Dict[str, str]:
        return self._redis.hgetall(QUESTION_USAGE_KEY) or {}

    def mark_used(self, question_id: str, day: str) -> None:
        self._redis.hset(QUESTION_USAGE_KEY, question_id, day)


class PostRepository:
    def __init__(self, client=redis_client):
        self._redis = client

    def save(self, post_id: str, fields: Dict[str, str]) -> None:
        self._redis.hset(POST_KEY.format(post_id=post_id), mapping=fields)

    def get(self, post_id: str) -> Optional[Dict[str, str]]:
        return self._redis.hgetall(POST_KEY.format(post_id=post_id)) or None
