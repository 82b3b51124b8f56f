"""Game state machine: one GameState per game (post) id, rolled over lazily.

There is no background timer. Every operation first applies at most one
due phase transition to the stored state, inside the same optimistic
transaction as its own write. Side effects of a transition (player stats,
question rotation) only run once that transaction has committed.
"""

import logging
import random
from typing import Any, Callable, Optional, Tuple

from .clock import Clock, utc_date
from .constants import (
    MAX_ANSWER_LENGTH,
    MAX_VOTES_PER_PLAYER,
    SUBMISSION_DURATION_MS,
    VOTING_DURATION_MS,
)
from .errors import (
    AuthError,
    DuplicateError,
    DuplicateVoteError,
    GameError,
    NotFoundError,
    PhaseError,
    QuotaExceededError,
    SelfVoteError,
    ValidationError,
)
from .phases import Transition, advance, is_due, new_game
from .types import GameState, Phase, Submission


class GameService:
    def __init__(self, games, questions, stats, clock: Optional[Clock] = None,
                 rng: Optional[random.Random] = None,
                 submission_duration_ms: int = SUBMISSION_DURATION_MS,
                 voting_duration_ms: int = VOTING_DURATION_MS,
                 logger: Optional[logging.Logger] = None):
        self._games = games
        self._questions = questions
        self._stats = stats
        self._clock = clock or Clock()
        self._rng = rng or random.Random()
        self._submission_ms = int(submission_duration_ms)
        self._voting_ms = int(voting_duration_ms)
        self._logger = logger or logging.getLogger(__name__)

    # ---- internals ----

    def _start_new_game(self, now: int) -> GameState:
        question = self._questions.select(utc_date(now))
        return new_game(question, now, self._submission_ms)

    def _current(self, stored: Optional[GameState], now: int) -> Tuple[GameState, Optional[Transition]]:
        """Create the game if missing, otherwise apply one due rollover step."""
        if stored is None:
            state = self._start_new_game(now)
            return state, Transition(state=state, from_phase=None, new_question=state.current_question)
        if not is_due(stored, now):
            return stored, None
        transition = advance(stored, now, self._rng, lambda: self._start_new_game(now), self._voting_ms)
        return transition.state, transition

    def _run(self, game_id: str, operation: Optional[Callable[[GameState, int], Any]] = None):
        """Load, roll over, apply `operation` and persist one game atomically.

        Returns `(state, operation_result)`. A rejected operation is re-raised
        after any rollover it observed has been saved.
        """
        now = self._clock.now_ms()

        def txn(stored):
            state, transition = self._current(stored, now)
            if operation is None:
                return (state if transition else None), (state, transition, None, None)
            try:
                result = operation(state, now)
            except GameError as exc:
                if transition is None:
                    raise
                return state, (state, transition, None, exc)
            return state, (state, transition, result, None)

        state, transition, result, error = self._games.update(game_id, txn)
        self._after_commit(game_id, transition, now)
        if error is not None:
            raise error
        return state, result

    def _after_commit(self, game_id: str, transition: Optional[Transition], now: int) -> None:
        if transition is None:
            return
        from_phase = transition.from_phase.value if transition.from_phase else 'new'
        self._logger.info(
            f'[rollover] game={game_id} {from_phase} -> {transition.to_phase.value} ends_at={transition.state.phase_ends_at}'
        )
        if transition.new_question is not None:
            self._questions.mark_used(transition.new_question, utc_date(now))
        # one player at a time; record_game_result never raises
        for submission, is_winner in transition.results:
            self._stats.record_game_result(submission.author_id, submission.author_name, submission.votes, is_winner)
        if transition.to_phase == Phase.RESULTS:
            self._logger.info(
                f'[results] game={game_id} players={len(transition.results)} winner={transition.state.winner_id}'
            )

    # ---- operations ----

    def get_or_initialize(self, game_id: str) -> GameState:
        state, _ = self._run(game_id)
        return state

    def fetch_state(self, game_id: str, username: Optional[str] = None) -> dict:
        """Game state as served to players, with the viewer's name and server time."""
        state = self.get_or_initialize(game_id)
        payload = state.to_dict()
        payload['username'] = username or 'anonymous'
        payload['current_time'] = self._clock.now_ms()
        if state.phase == Phase.RESULTS:
            payload['results'] = self.results_summary(state)
        return payload

    @staticmethod
    def results_summary(state: GameState) -> dict:
        winner = state.find_submission(state.winner_id) if state.winner_id else None
        return {
            'question': state.current_question.to_dict(),
            'submissions': [s.to_dict() for s in sorted(state.submissions, key=lambda s: -s.votes)],
            'winner': winner.to_dict() if winner else None,
            'total_players': len(state.submissions),
            'date': state.current_question.date,
        }

    def submit_answer(self, game_id: str, author_id: Optional[str], author_name: Optional[str],
                      answer: Optional[str]) -> Submission:
        if not isinstance(answer, str) or not answer:
            raise ValidationError('Answer is required')
        # the limit applies to the raw input, before trimming
        if len(answer) > MAX_ANSWER_LENGTH:
            raise ValidationError(f'Answer must be {MAX_ANSWER_LENGTH} characters or less')
        text = answer.strip()
        if not text:
            raise ValidationError('Answer is required')

        def operation(state: GameState, now: int) -> Submission:
            if state.phase != Phase.SUBMISSION:
                raise PhaseError('Submission phase is closed')
            if not author_id or not author_name:
                raise AuthError('User not authenticated')
            if state.submission_by_author(author_id) is not None:
                raise DuplicateError('You have already submitted an answer')
            submission = Submission(
                id=f'{author_id}-{now}',
                author_id=author_id,
                author_name=author_name,
                answer=text,
                timestamp=now,
            )
            state.submissions.append(submission)
            return submission

        _, submission = self._run(game_id, operation)
        self._logger.info(f'[submit] game={game_id} author={author_id} submission={submission.id}')
        return submission

    def vote(self, game_id: str, voter_id: Optional[str], submission_id: str) -> dict:
        def operation(state: GameState, now: int) -> dict:
            if state.phase != Phase.VOTING:
                raise PhaseError('Voting phase is not active')
            if not voter_id:
                raise AuthError('User not authenticated')
            target = state.find_submission(submission_id)
            if target is None:
                raise NotFoundError('Submission not found')
            if target.author_id == voter_id:
                raise SelfVoteError('You cannot vote for your own answer')
            if state.votes_cast_by(voter_id) >= MAX_VOTES_PER_PLAYER:
                raise QuotaExceededError(f'You have already used all {MAX_VOTES_PER_PLAYER} votes')
            if voter_id in target.voter_ids:
                raise DuplicateVoteError('You have already voted for this answer')
            target.voter_ids.append(voter_id)
            target.votes = len(target.voter_ids)
            return {'submission_id': submission_id}

        _, result = self._run(game_id, operation)
        self._logger.info(f'[vote] game={game_id} voter={voter_id} submission={submission_id}')
        return result

    def rotate_phase(self, game_id: str) -> GameState:
        """Apply one rollover step now, ignoring the deadline."""
        now = self._clock.now_ms()

        def txn(stored):
            if stored is None:
                raise NotFoundError(f'Game {game_id} not found')
            transition = advance(stored, now, self._rng, lambda: self._start_new_game(now), self._voting_ms)
            return transition.state, transition

        transition = self._games.update(game_id, txn)
        self._after_commit(game_id, transition, now)
        return transition.state
