"""Creating game posts: the public entry point each daily game hangs off."""

import random
import string
import time

POST_TITLE = 'Wrong Answers Only - Daily Trivia Challenge'
POST_TEXT = (
    'Welcome to Wrong Answers Only! A daily trivia game where the goal is to submit '
    'the most creative *wrong* answers.\n\n'
    '**Daily Schedule:**\n'
    '- **12 hours:** Submit your creative wrong answers\n'
    '- **12 hours:** Vote for your favorite wrong answers\n'
    '- **Winner announced:** The most creative wrong answer wins!\n\n'
    '**Prizes:**\n'
    '- Daily winner glory\n'
    '- Streak bonuses for consecutive days\n'
    '- Leaderboard recognition\n\n'
    'Think you have what it takes to be creatively wrong? Play now!'
)


def generate_post_id(posts, length=6):
    """Generate a unique, short post id."""
    while True:
        code = ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))
        if not posts.get(code):
            return code


def create_game_post(posts, game_service, created_by=None):
    """Register a new post and seed it with a fresh game.

    Returns `(post_id, game_state)`.
    """
    post_id = generate_post_id(posts)
    posts.save(post_id, {
        'title': POST_TITLE,
        'text': POST_TEXT,
        'created_by': created_by or '',
        'created_at': str(int(time.time() * 1000)),
    })
    state = game_service.get_or_initialize(post_id)
    return post_id, state
