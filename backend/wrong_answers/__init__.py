from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
default_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]


class Services:
    """Game services bound to one app; reachable as app.extensions['wrong_answers']."""

    def __init__(self, games, stats, questions, posts):
        self.games = games
        self.stats = stats
        self.questions = questions
        self.posts = posts


def build_services(flask_app, clock=None, rng=None):
    from wrong_answers.services.games import GameService, QuestionPool, StatsService
    from wrong_answers.services.games.clock import Clock
    from wrong_answers.store import (
        GameRepository,
        LeaderboardRepository,
        PlayerStatsRepository,
        PostRepository,
        QuestionUsageRepository,
        redis_client,
    )

    cfg = flask_app.config
    clock = clock or Clock()
    questions = QuestionPool(QuestionUsageRepository(redis_client), rng=rng, logger=flask_app.logger)
    stats = StatsService(
        PlayerStatsRepository(redis_client, retries=cfg.get('GAME_WRITE_RETRIES', 5)),
        LeaderboardRepository(redis_client),
        today=clock.today,
        logger=flask_app.logger,
    )
    games = GameService(
        GameRepository(redis_client, retries=cfg.get('GAME_WRITE_RETRIES', 5)),
        questions,
        stats,
        clock=clock,
        rng=rng,
        submission_duration_ms=int(cfg.get('SUBMISSION_DURATION_SEC', 12 * 60 * 60)) * 1000,
        voting_duration_ms=int(cfg.get('VOTING_DURATION_SEC', 12 * 60 * 60)) * 1000,
        logger=flask_app.logger,
    )
    return Services(games=games, stats=stats, questions=questions, posts=PostRepository(redis_client))


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS') or default_origins

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    from wrong_answers.store import init_redis
    init_redis(flask_app)
    flask_app.extensions['wrong_answers'] = build_services(flask_app)

    from wrong_answers.routes import main
    flask_app.register_blueprint(main)

    from wrong_answers.api.games import games, internal
    flask_app.register_blueprint(games, url_prefix='/api')
    flask_app.register_blueprint(internal, url_prefix='/internal')

    # Flask-Login user loader
    from wrong_answers.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'type': 'ERROR', 'error': 'User not authenticated'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the accounts database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = ['testuser1', 'testuser2', 'testuser3']
            for u in users:
                user = User(username=u)
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            click.echo('Database has been reset and seeded!')

    @click.command('create-game')
    def create_game_command():
        """Creates a new game post and seeds it with a fresh game."""
        from wrong_answers.posts import create_game_post
        services = flask_app.extensions['wrong_answers']
        post_id, state = create_game_post(services.posts, services.games, created_by='cli')
        click.echo(f'Created post {post_id}: {state.current_question.text}')

    @click.command('rotate-phase')
    @click.argument('game_id')
    def rotate_phase_command(game_id):
        """Forces one phase rollover for GAME_ID."""
        from wrong_answers.services.games.errors import NotFoundError
        services = flask_app.extensions['wrong_answers']
        try:
            state = services.games.rotate_phase(game_id)
        except NotFoundError as exc:
            raise click.ClickException(exc.message)
        click.echo(f'Game {game_id} is now in {state.phase.value}')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(create_game_command)
    flask_app.cli.add_command(rotate_phase_command)

    return flask_app
