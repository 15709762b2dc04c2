"""
Application Entry Point
Initializes and runs the Flask application
"""

import os
import logging
import click
from ledgerdesk import create_app, db

# Determine configuration environment
config_name = os.environ.get('FLASK_ENV', 'development')
app = create_app(config_name)

# Setup logging
if not os.path.exists(app.config['LOG_FOLDER']):
    os.makedirs(app.config['LOG_FOLDER'])

logging.basicConfig(
    level=getattr(logging, app.config['LOG_LEVEL']),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(os.path.join(app.config['LOG_FOLDER'], 'app.log')),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


@app.shell_context_processor
def make_shell_context():
    """Make database and models available in Flask shell"""
    from ledgerdesk import models
    return {
        'db': db,
        'User': models.User,
        'Company': models.Company,
        'BankAccount': models.BankAccount,
        'Invoice': models.Invoice,
        'Expense': models.Expense,
    }


@app.cli.command()
def init_db():
    """Initialize the database with tables and a demo user"""
    from init_db import seed_demo_user
    logger.info("Initializing database...")
    db.create_all()
    seed_demo_user()
    logger.info("Database initialized successfully!")


@app.cli.command()
@click.option('--email', default='demo@ledgerdesk.local', help='Owner of the sample company')
@click.option('--company', 'company_name', default='Demo Trading Ltd', help='Sample company name')
def create_sample_data(email, company_name):
    """Create a sample company with one record of each kind"""
    from ledgerdesk.models import User
    from ledgerdesk.utils.helpers import create_sample_data as build_sample_company

    user = User.query.filter_by(email=email).first()
    if user is None:
        logger.error(f"No user with email {email}; run 'flask init-db' first")
        return

    logger.info("Creating sample data...")
    company = build_sample_company(user, company_name)
    if company is None:
        logger.error("Sample data could not be created")
        return
    logger.info(f"Sample company '{company.name}' created successfully!")


if __name__ == '__main__':
    # Check if running in development mode
    is_dev = os.environ.get('FLASK_ENV', 'development') == 'development'
    use_reloader = os.environ.get('FLASK_USE_RELOADER', 'true').lower() == 'true'

    with app.app_context():
        # Create tables if they don't exist
        db.create_all()
        logger.info("Database tables created")

    logger.info("Starting LedgerDesk...")
    logger.info(f"Debug mode: {is_dev}, Auto-reload: {use_reloader}")

    app.run(
        host='0.0.0.0',
        port=int(os.environ.get('PORT', 5001)),
        debug=is_dev,
        use_reloader=use_reloader
    )
