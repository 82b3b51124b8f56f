"""Wrong Answers Only game rules.

The phase machine, the daily question rotation and the player stats and
leaderboard live here. The blueprints and CLI commands only translate
requests into calls on these services.
"""

from .engine import GameService
from .questions import QuestionPool
from .scoring import StatsService

__all__ = ['GameService', 'QuestionPool', 'StatsService']
