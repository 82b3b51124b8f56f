"""Game rules shared by the services and the HTTP layer."""

MAX_ANSWER_LENGTH = 280
MAX_VOTES_PER_PLAYER = 3

HOUR_MS = 60 * 60 * 1000
SUBMISSION_DURATION_MS = 12 * HOUR_MS
VOTING_DURATION_MS = 12 * HOUR_MS

LEADERBOARD_LIMIT = 10

CATEGORIES = [
    'History',
    'Science',
    'Art',
    'Geography',
    'Literature',
    'Music',
    'Pop Culture',
    'Sports',
    'Random',
]
