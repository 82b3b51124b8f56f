import logging

import pytest

from wrong_answers.services.games.errors import ConcurrencyError
from wrong_answers.services.games.scoring import StatsService, apply_game_result, calendar_days_between
from wrong_answers.services.games.types import PlayerStats
from wrong_answers.store import LeaderboardRepository, PlayerStatsRepository, redis_client


class Today:
    def __init__(self, value):
        self.value = value

    def __call__(self):
        return self.value


@pytest.fixture()
def today():
    return Today('2024-01-01')


@pytest.fixture()
def stats_service(redis, today):
    return StatsService(PlayerStatsRepository(redis_client), LeaderboardRepository(redis_client), today=today,
                        logger=logging.getLogger('tests.stats'))


def test_calendar_days_between():
    assert calendar_days_between('2024-01-01', '2024-01-02') == 1
    assert calendar_days_between('2024-02-28', '2024-03-01') == 2
    assert calendar_days_between('2023-12-31', '2024-01-01') == 1
    assert calendar_days_between('', '2024-01-01') is None
    assert calendar_days_between('garbage', '2024-01-01') is None


@pytest.mark.parametrize('recorded_on, expected', [
    ('2024-01-02', 5),
    ('2024-01-04', 1),
    ('2024-01-01', 1),
])
def test_streak_law(recorded_on, expected):
    stats = PlayerStats(player_id='p1', player_name='alice', current_streak=4, longest_streak=7,
                        last_played_date='2024-01-01')
    apply_game_result(stats, 0, False, recorded_on)
    assert stats.current_streak == expected
    assert stats.longest_streak == 7
    assert stats.last_played_date == recorded_on


def test_first_game_starts_streak_at_one():
    stats = apply_game_result(PlayerStats(player_id='p1', player_name='alice'), 3, True, '2024-01-01')
    assert (stats.total_submissions, stats.total_votes_received, stats.wins) == (1, 3, 1)
    assert stats.current_streak == 1
    assert stats.longest_streak == 1


def test_record_game_result_accumulates(stats_service, today):
    stats_service.record_game_result('p1', 'alice', 2, False)
    today.value = '2024-01-02'
    stats_service.record_game_result('p1', 'alice', 5, True)
    today.value = '2024-01-03'
    stats_service.record_game_result('p1', 'alice', 1, True)

    stats = stats_service.get_player_stats('p1')
    assert stats.total_submissions == 3
    assert stats.total_votes_received == 8
    assert stats.wins == 2
    assert stats.current_streak == 3
    assert stats.longest_streak == 3
    assert stats.last_played_date == '2024-01-03'


def test_stats_are_stored_as_string_fields(stats_service, redis):
    stats_service.record_game_result('p1', 'alice', 2, True)
    raw = redis.hgetall('player:p1')
    assert raw['wins'] == '1'
    assert raw['total_votes_received'] == '2'
    assert redis.zscore('leaderboard:alltime', 'alice') == 1.0


def test_get_player_stats_unknown_player(stats_service):
    assert stats_service.get_player_stats('nobody') is None


def test_record_game_result_swallows_store_errors(redis, today, caplog):
    class BrokenPlayers(PlayerStatsRepository):
        def update(self, player_id, fn):
            raise ConnectionError('redis went away')

    service = StatsService(BrokenPlayers(redis_client), LeaderboardRepository(redis_client), today=today,
                           logger=logging.getLogger('tests.stats'))
    with caplog.at_level(logging.ERROR, logger='tests.stats'):
        service.record_game_result('p1', 'alice', 1, True)
    assert 'stats-error' in caplog.text
    assert redis.zscore('leaderboard:alltime', 'alice') is None


def test_leaderboard_orders_by_wins(stats_service):
    for _ in range(3):
        stats_service.record_game_result('p1', 'alice', 1, True)
    stats_service.record_game_result('p2', 'bob', 4, True)
    stats_service.record_game_result('p3', 'cara', 0, False)

    board = stats_service.get_leaderboard(10)
    assert [e.player_name for e in board] == ['alice', 'bob', 'cara']
    assert board[0].wins == 3
    assert board[1].total_votes_received == 4
    assert [e.player_name for e in stats_service.get_leaderboard(2)] == ['alice', 'bob']
    assert stats_service.get_leaderboard(0) == []


def test_leaderboard_ties_follow_reverse_member_order(stats_service):
    stats_service.record_game_result('p1', 'alice', 0, True)
    stats_service.record_game_result('p2', 'bob', 0, True)
    stats_service.record_game_result('p3', 'cara', 0, True)
    assert [e.player_name for e in stats_service.get_leaderboard()] == ['cara', 'bob', 'alice']


def test_leaderboard_skips_members_without_stats(stats_service, redis):
    stats_service.record_game_result('p1', 'alice', 0, True)
    redis.zadd('leaderboard:alltime', {'ghost': 10})
    assert [e.player_name for e in stats_service.get_leaderboard()] == ['alice']


def test_record_game_result_retries_after_concurrent_write(stats_service, redis):
    other = StatsService(PlayerStatsRepository(redis_client), LeaderboardRepository(redis_client),
                         today=Today('2024-01-01'), logger=logging.getLogger('tests.stats'))

    class Interleaved(Today):
        calls = 0

        def __call__(self):
            self.calls += 1
            if self.calls == 1:
                # another worker finishes its write between our read and our commit
                other.record_game_result('p1', 'alice', 3, True)
            return self.value

    today = Interleaved('2024-01-01')
    service = StatsService(PlayerStatsRepository(redis_client), LeaderboardRepository(redis_client), today=today,
                           logger=logging.getLogger('tests.stats'))
    service.record_game_result('p1', 'alice', 1, False)

    assert today.calls == 2
    stats = service.get_player_stats('p1')
    assert stats.total_submissions == 2
    assert stats.total_votes_received == 4
    assert stats.wins == 1
    assert redis.zscore('leaderboard:alltime', 'alice') == 1.0


def test_player_stats_update_gives_up_after_retries(redis):
    repo = PlayerStatsRepository(redis_client, retries=2)
    seen = []

    def fold(current):
        seen.append(current)
        redis.hset('player:p1', 'wins', str(len(seen)))
        return PlayerStats(player_id='p1', player_name='alice', wins=99)

    with pytest.raises(ConcurrencyError):
        repo.update('p1', fold)
    assert len(seen) == 2
    assert redis.hget('player:p1', 'wins') == '2'
