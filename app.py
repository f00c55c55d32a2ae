import os

from config import config
from flask import Flask, jsonify
from flask_cors import CORS
from flask_login import LoginManager
from flask_migrate import Migrate


def create_app(config_name=None):
    """Application factory pattern"""
    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Initialize CORS for the dashboard frontend
    CORS(
        app,
        resources={
            r"/quiz/*": {"origins": app.config["ALLOWED_ORIGINS"]},
            r"/progress/*": {"origins": app.config["ALLOWED_ORIGINS"]},
        },
        supports_credentials=True,
    )

    # Initialize SQLAlchemy
    from models import db

    db.init_app(app)

    # Initialize Flask-Migrate
    Migrate(app, db)

    # Initialize Flask-Login. Sign-in is handled by the accounts service;
    # this app only resolves the learner from the session.
    login_manager = LoginManager()
    login_manager.init_app(app)

    # Import all models to ensure they are registered with SQLAlchemy
    from models.chapter import Chapter
    from models.quiz import Quiz
    from models.quiz_attempt import QuizAttempt
    from models.user import User

    # User loader callback for Flask-Login
    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # Register API blueprints
    from routes.progress import bp as progress_bp
    from routes.quiz import bp as quiz_bp

    app.register_blueprint(quiz_bp)
    app.register_blueprint(progress_bp)

    # Home route
    @app.route("/")
    def home():
        return jsonify({"message": "Welcome to Tutor Retention!", "version": "1.0.0"})

    # Health check route
    @app.route("/health")
    def health_check():
        try:
            db.session.execute(db.text("SELECT 1"))
            return jsonify({"status": "healthy", "database": "connected"}), 200
        except Exception as e:
            app.logger.error(f"Health check failed: {e}")
            return jsonify({"status": "unhealthy", "error": str(e)}), 500

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, port=5001)
