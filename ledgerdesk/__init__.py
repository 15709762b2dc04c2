"""
Flask Application Factory
Initializes and configures the Flask application
"""

import os
from flask import Flask, jsonify
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect
from config import config
from ledgerdesk.models import db, User

# Initialize extensions
login_manager = LoginManager()
migrate = Migrate()
csrf = CSRFProtect()


def create_app(config_name='default'):
    """
    Application factory pattern
    Creates and configures Flask application
    """
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Validate secret key in production
    if config_name == 'production':
        if not app.config.get('SECRET_KEY') or app.config['SECRET_KEY'] == 'dev-secret-key-change-in-production':
            raise ValueError("Production requires a secure SECRET_KEY. Set it via environment variable.")
        if len(app.config['SECRET_KEY']) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters for production.")

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # Initialize Sentry if configured
    if app.config.get('SENTRY_DSN'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=config_name
        )
        app.logger.info("Sentry error tracking initialized")

    @login_manager.user_loader
    def load_user(user_id):
        """Load user by ID for Flask-Login"""
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    os.makedirs(app.config['LOG_FOLDER'], exist_ok=True)

    def register(blueprint, url_prefix):
        csrf.exempt(blueprint)
        app.register_blueprint(blueprint, url_prefix=url_prefix)

    # Register blueprints
    from ledgerdesk.routes.auth import bp as auth_bp
    register(auth_bp, '/auth')

    from ledgerdesk.routes.companies import bp as companies_bp
    register(companies_bp, '/companies')

    from ledgerdesk.routes.bank_accounts import bp as bank_accounts_bp
    register(bank_accounts_bp, '/bank-accounts')

    from ledgerdesk.routes.records import record_blueprints
    for url_prefix, blueprint in record_blueprints():
        register(blueprint, url_prefix)

    from ledgerdesk.routes.dashboard import bp as dashboard_bp
    register(dashboard_bp, '/dashboard')

    from ledgerdesk.routes.reports import bp as reports_bp
    register(reports_bp, '/reports')

    @app.route('/')
    def index():
        """Service status and the current user's company context"""
        from flask_login import current_user
        from ledgerdesk.utils.company_context import get_company_context
        payload = {'status': 'ok', 'authenticated': current_user.is_authenticated}
        if current_user.is_authenticated:
            payload.update(get_company_context().to_dict())
        return jsonify(payload)

    # Error handlers
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'error': 'Internal server error'}), 500

    # Request hooks
    @app.before_request
    def before_request():
        """Actions to perform before each request"""
        from flask import session
        from flask_login import current_user
        session.permanent = True

        # Resolve the active company for this request
        if current_user.is_authenticated:
            from ledgerdesk.utils.company_context import set_company_context
            set_company_context()

    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses"""
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        return response

    return app
