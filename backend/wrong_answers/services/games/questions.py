"""Trivia question pool and the daily rotation policy."""

import logging
import random
from typing import Iterable, List, Optional

from .errors import NoQuestionsAvailableError
from .types import Question

_POOL = [
    ('q001', 'What year did the French Revolution begin?', 'History', '1789'),
    ('q002', 'What is the chemical symbol for gold?', 'Science', 'Au'),
    ('q003', 'Who painted the Mona Lisa?', 'Art', 'Leonardo da Vinci'),
    ('q004', 'What is the capital of Australia?', 'Geography', 'Canberra'),
    ('q005', 'How many planets are in our solar system?', 'Science', '8'),
    ('q006', 'Who wrote Romeo and Juliet?', 'Literature', 'William Shakespeare'),
    ('q007', 'What is the largest ocean on Earth?', 'Geography', 'Pacific Ocean'),
    ('q008', 'In which year did World War II end?', 'History', '1945'),
    ('q009', 'What is the speed of light in vacuum?', 'Science', '299,792,458 meters per second'),
    ('q010', 'Who was the first person to walk on the moon?', 'Science', 'Neil Armstrong'),
    ('q011', 'What is the smallest country in the world?', 'Geography', 'Vatican City'),
    ('q012', 'Who composed the Four Seasons?', 'Music', 'Antonio Vivaldi'),
    ('q013', 'What is the capital of Japan?', 'Geography', 'Tokyo'),
    ('q014', 'In which year did the Titanic sink?', 'History', '1912'),
    ('q015', 'What is the chemical formula for water?', 'Science', 'H2O'),
    ('q016', 'Who painted Starry Night?', 'Art', 'Vincent van Gogh'),
    ('q017', 'What is the largest mammal in the world?', 'Science', 'Blue whale'),
    ('q018', 'Who wrote The Great Gatsby?', 'Literature', 'F. Scott Fitzgerald'),
    ('q019', 'What is the capital of Egypt?', 'Geography', 'Cairo'),
    ('q020', 'In which year did the Berlin Wall fall?', 'History', '1989'),
    ('q021', 'What is the hardest natural substance on Earth?', 'Science', 'Diamond'),
    ('q022', "Who composed Beethoven's 5th Symphony?", 'Music', 'Ludwig van Beethoven'),
    ('q023', 'What is the largest desert in the world?', 'Geography', 'Antarctica'),
    ('q024', 'Who was the first President of the United States?', 'History', 'George Washington'),
    ('q025', 'What is the chemical symbol for silver?', 'Science', 'Ag'),
    ('q026', 'Who wrote Don Quixote?', 'Literature', 'Miguel de Cervantes'),
    ('q027', 'What is the capital of Brazil?', 'Geography', 'Brasília'),
    ('q028', 'In which year did Christopher Columbus reach the Americas?', 'History', '1492'),
    ('q029', 'What is the fastest land animal?', 'Science', 'Cheetah'),
    ('q030', 'Who painted The Persistence of Memory?', 'Art', 'Salvador Dalí'),
]

QUESTION_POOL: List[Question] = [
    Question(id=qid, text=text, category=category, correct_answer=answer)
    for qid, text, category, answer in _POOL
]


def available_questions(questions: Iterable[Question], today: str) -> List[Question]:
    """Questions never used, or last used before `today` (ISO dates compare as strings)."""
    return [q for q in questions if not q.date or q.date < today]


class QuestionPool:
    """Picks the question for a new game.

    Usage dates are kept in the store so every worker process sees the
    same rotation.
    """

    def __init__(self, usage, questions: Optional[List[Question]] = None,
                 rng: Optional[random.Random] = None, logger: Optional[logging.Logger] = None):
        self._usage = usage
        self._questions = list(QUESTION_POOL if questions is None else questions)
        self._rng = rng or random.Random()
        self._logger = logger or logging.getLogger(__name__)

    def questions(self) -> List[Question]:
        used = self._usage.all()
        return [
            Question(id=q.id, text=q.text, category=q.category,
                     correct_answer=q.correct_answer, date=used.get(q.id, q.date))
            for q in self._questions
        ]

    def candidates(self, today: str) -> List[Question]:
        pool = available_questions(self.questions(), today)
        if not pool:
            raise NoQuestionsAvailableError(f'No available questions for {today}')
        return pool

    def select(self, today: str) -> Question:
        """Choose uniformly among today's candidates and stamp the copy with `today`.

        When every question was already used today, fall back to reusing the
        least recently used ones. An empty pool still raises.
        """
        try:
            pool = self.candidates(today)
        except NoQuestionsAvailableError:
            questions = self.questions()
            if not questions:
                self._logger.error('[question-pool] pool is empty, cannot start a game')
                raise
            oldest = min(q.date for q in questions)
            pool = [q for q in questions if q.date == oldest]
            self._logger.error(
                f'[question-pool] exhausted for {today}; reusing {len(pool)} least recently used questions'
            )
        chosen = self._rng.choice(pool)
        chosen.date = today
        return chosen

    def mark_used(self, question: Question, today: str) -> None:
        self._usage.mark_used(question.id, today)
