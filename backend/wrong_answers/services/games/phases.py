"""Pure phase transitions: submission -> voting -> results -> new game.

Nothing here touches the store or the clock; callers pass `now` (epoch ms)
and a random source.
"""

import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .types import GameState, Phase, Question, Submission


@dataclass
class Transition:
    """Outcome of one rollover step.

    `from_phase` is None when the game was just created. `results` lists
    `(submission, is_winner)` for every participant when the game entered
    the results phase; `new_question` is set when a new game was started.
    """

    state: GameState
    from_phase: Optional[Phase]
    results: List[Tuple[Submission, bool]] = field(default_factory=list)
    new_question: Optional[Question] = None

    @property
    def to_phase(self) -> Phase:
        return self.state.phase


def new_game(question: Question, now: int, submission_duration_ms: int) -> GameState:
    return GameState(
        current_question=question,
        phase=Phase.SUBMISSION,
        phase_ends_at=now + submission_duration_ms,
        submissions=[],
    )


def is_due(state: GameState, now: int) -> bool:
    return now >= state.phase_ends_at


def shuffle_submissions(submissions: List[Submission], rng: random.Random) -> List[Submission]:
    """Return a uniformly shuffled copy (Fisher-Yates)."""
    shuffled = list(submissions)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def pick_winner(submissions: List[Submission]) -> Optional[Submission]:
    """Most votes wins; ties go to the earliest submission, then the lowest id."""
    if not submissions:
        return None
    return min(submissions, key=lambda s: (-s.votes, s.timestamp, s.id))


def advance(
    state: GameState,
    now: int,
    rng: random.Random,
    start_new_game: Callable[[], GameState],
    voting_duration_ms: int,
) -> Transition:
    """Apply exactly one rollover step to `state`, regardless of its deadline."""
    if state.phase == Phase.SUBMISSION:
        voting = GameState(
            current_question=state.current_question,
            phase=Phase.VOTING,
            phase_ends_at=now + voting_duration_ms,
            submissions=shuffle_submissions(state.submissions, rng),
        )
        return Transition(state=voting, from_phase=Phase.SUBMISSION)

    if state.phase == Phase.VOTING:
        winner = pick_winner(state.submissions)
        finished = GameState(
            current_question=state.current_question,
            phase=Phase.RESULTS,
            # results has no duration of its own; the next read starts a new game
            phase_ends_at=now,
            submissions=list(state.submissions),
            winner_id=winner.id if winner else None,
        )
        results = [(s, winner is not None and s.id == winner.id) for s in finished.submissions]
        return Transition(state=finished, from_phase=Phase.VOTING, results=results)

    fresh = start_new_game()
    return Transition(state=fresh, from_phase=Phase.RESULTS, new_question=fresh.current_question)
