"""Game records and their storage/wire serialisation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Phase(str, Enum):
    SUBMISSION = 'submission'
    VOTING = 'voting'
    RESULTS = 'results'


@dataclass
class Question:
    id: str
    text: str
    category: str
    correct_answer: str
    date: str = ''

    def to_dict(self):
        return {
            'id': self.id,
            'text': self.text,
            'category': self.category,
            'correct_answer': self.correct_answer,
            'date': self.date,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            text=data['text'],
            category=data['category'],
            correct_answer=data['correct_answer'],
            date=data.get('date') or '',
        )


@dataclass
class Submission:
    id: str
    author_id: str
    author_name: str
    answer: str
    timestamp: int
    votes: int = 0
    voter_ids: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            'id': self.id,
            'author_id': self.author_id,
            'author_name': self.author_name,
            'answer': self.answer,
            'timestamp': self.timestamp,
            'votes': self.votes,
            'voter_ids': list(self.voter_ids),
        }

    @classmethod
    def from_dict(cls, data):
        voter_ids = list(dict.fromkeys(data.get('voter_ids') or []))
        # votes is always derived from the distinct voters
        return cls(
            id=data['id'],
            author_id=data['author_id'],
            author_name=data['author_name'],
            answer=data['answer'],
            timestamp=int(data['timestamp']),
            votes=len(voter_ids),
            voter_ids=voter_ids,
        )


@dataclass
class GameState:
    current_question: Question
    phase: Phase
    phase_ends_at: int
    submissions: List[Submission] = field(default_factory=list)
    winner_id: Optional[str] = None

    def find_submission(self, submission_id: str) -> Optional[Submission]:
        for s in self.submissions:
            if s.id == submission_id:
                return s
        return None

    def submission_by_author(self, author_id: str) -> Optional[Submission]:
        for s in self.submissions:
            if s.author_id == author_id:
                return s
        return None

    def votes_cast_by(self, voter_id: str) -> int:
        return sum(1 for s in self.submissions if voter_id in s.voter_ids)

    def to_dict(self):
        return {
            'current_question': self.current_question.to_dict(),
            'phase': self.phase.value,
            'phase_ends_at': self.phase_ends_at,
            'submissions': [s.to_dict() for s in self.submissions],
            'winner_id': self.winner_id,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            current_question=Question.from_dict(data['current_question']),
            phase=Phase(data['phase']),
            phase_ends_at=int(data['phase_ends_at']),
            submissions=[Submission.from_dict(s) for s in data.get('submissions') or []],
            winner_id=data.get('winner_id'),
        )


@dataclass
class PlayerStats:
    player_id: str
    player_name: str
    total_submissions: int = 0
    total_votes_received: int = 0
    wins: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_played_date: str = ''

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'player_name': self.player_name,
            'total_submissions': self.total_submissions,
            'total_votes_received': self.total_votes_received,
            'wins': self.wins,
            'current_streak': self.current_streak,
            'longest_streak': self.longest_streak,
            'last_played_date': self.last_played_date,
        }

    def to_hash(self) -> dict:
        """Flatten to the string fields stored in the player hash."""
        return {k: str(v) for k, v in self.to_dict().items()}

    @classmethod
    def from_hash(cls, player_id: str, fields: dict) -> 'PlayerStats':
        def _int(name):
            try:
                return int(fields.get(name) or 0)
            except ValueError:
                return 0

        return cls(
            player_id=player_id,
            player_name=fields.get('player_name') or '',
            total_submissions=_int('total_submissions'),
            total_votes_received=_int('total_votes_received'),
            wins=_int('wins'),
            current_streak=_int('current_streak'),
            longest_streak=_int('longest_streak'),
            last_played_date=fields.get('last_played_date') or '',
        )


@dataclass
class LeaderboardEntry:
    player_name: str
    wins: int
    total_submissions: int
    total_votes_received: int
    longest_streak: int

    @classmethod
    def from_stats(cls, stats: PlayerStats) -> 'LeaderboardEntry':
        return cls(
            player_name=stats.player_name,
            wins=stats.wins,
            total_submissions=stats.total_submissions,
            total_votes_received=stats.total_votes_received,
            longest_streak=stats.longest_streak,
        )

    def to_dict(self):
        return {
            'player_name': self.player_name,
            'wins': self.wins,
            'total_submissions': self.total_submissions,
            'total_votes_received': self.total_votes_received,
            'longest_streak': self.longest_streak,
        }
