import logging
import random

import pytest

from wrong_answers.services.games.constants import CATEGORIES
from wrong_answers.services.games.errors import NoQuestionsAvailableError
from wrong_answers.services.games.questions import QUESTION_POOL, QuestionPool, available_questions
from wrong_answers.services.games.types import Question
from wrong_answers.store import QuestionUsageRepository, redis_client

SMALL_POOL = [
    Question(id='q1', text='Capital of Japan?', category='Geography', correct_answer='Tokyo'),
    Question(id='q2', text='Symbol for gold?', category='Science', correct_answer='Au'),
    Question(id='q3', text='Who painted Starry Night?', category='Art', correct_answer='Vincent van Gogh'),
]


@pytest.fixture()
def pool(redis):
    return QuestionPool(QuestionUsageRepository(redis_client), questions=SMALL_POOL,
                        rng=random.Random(5), logger=logging.getLogger('tests.questions'))


def test_default_pool_is_well_formed():
    assert len(QUESTION_POOL) == 30
    assert len({q.id for q in QUESTION_POOL}) == 30
    assert all(q.date == '' for q in QUESTION_POOL)
    assert {q.category for q in QUESTION_POOL} <= set(CATEGORIES)


def test_available_questions_excludes_today():
    questions = [
        Question(id='a', text='', category='', correct_answer='', date=''),
        Question(id='b', text='', category='', correct_answer='', date='2023-12-31'),
        Question(id='c', text='', category='', correct_answer='', date='2024-01-01'),
    ]
    assert [q.id for q in available_questions(questions, '2024-01-01')] == ['a', 'b']


def test_select_stamps_today_without_touching_the_pool(pool):
    chosen = pool.select('2024-01-01')
    assert chosen.date == '2024-01-01'
    assert all(q.date == '' for q in SMALL_POOL)
    assert all(q.date == '' for q in pool.questions())


def test_marked_questions_are_skipped_for_the_day(pool):
    seen = set()
    for _ in range(3):
        q = pool.select('2024-01-01')
        pool.mark_used(q, '2024-01-01')
        seen.add(q.id)
    assert seen == {'q1', 'q2', 'q3'}
    with pytest.raises(NoQuestionsAvailableError):
        pool.candidates('2024-01-01')
    # all of them come back the next day
    assert len(pool.candidates('2024-01-02')) == 3


def test_exhausted_pool_falls_back_to_reuse(pool, caplog):
    pool.mark_used(SMALL_POOL[0], '2023-12-30')
    pool.mark_used(SMALL_POOL[1], '2024-01-01')
    pool.mark_used(SMALL_POOL[2], '2024-01-01')
    # only q1 is still a candidate today
    assert pool.select('2024-01-01').id == 'q1'
    pool.mark_used(SMALL_POOL[0], '2024-01-01')

    with caplog.at_level(logging.ERROR, logger='tests.questions'):
        chosen = pool.select('2024-01-01')
    assert chosen.id in {'q1', 'q2', 'q3'}
    assert chosen.date == '2024-01-01'
    assert 'exhausted' in caplog.text


def test_empty_pool_raises(redis):
    empty = QuestionPool(QuestionUsageRepository(redis_client), questions=[], logger=logging.getLogger('tests.questions'))
    with pytest.raises(NoQuestionsAvailableError):
        empty.select('2024-01-01')
