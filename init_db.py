"""
Database Initialization Script
Run this script to create the tables, a demo user and a sample company
"""

from ledgerdesk import create_app
from ledgerdesk.models import db, User, Company
from ledgerdesk.utils.helpers import create_sample_data

DEMO_EMAIL = 'demo@ledgerdesk.local'
DEMO_PASSWORD = 'demo1234'


def seed_demo_user():
    """Create the demo user if missing; call inside an application context"""
    user = User.query.filter_by(email=DEMO_EMAIL).first()
    if user is None:
        print("Creating demo user...")
        user = User(email=DEMO_EMAIL, full_name='Demo Bookkeeper', is_active=True)
        user.set_password(DEMO_PASSWORD)
        db.session.add(user)
        db.session.commit()
        print(f"✓ Demo user created (email: {DEMO_EMAIL}, password: {DEMO_PASSWORD})")
    else:
        print("✓ Demo user already exists")
    return user


def init_database():
    """Initialize database with default data"""
    app = create_app()

    with app.app_context():
        # Create all tables
        print("Creating database tables...")
        db.create_all()

        user = seed_demo_user()

        if Company.query.filter_by(user_id=user.id).count() == 0:
            print("Creating sample company...")
            company = create_sample_data(user)
            if company is not None:
                print(f"✓ {company.name} created with one record of each kind")
        else:
            print("✓ Demo user already has companies")

        print("\n" + "="*50)
        print("Database initialization completed successfully!")
        print("="*50)
        print("\nDemo Login Credentials:")
        print(f"  Email: {DEMO_EMAIL}")
        print(f"  Password: {DEMO_PASSWORD}")
        print("\nIMPORTANT: Change the demo password or remove the user before going live!")
        print("="*50)


if __name__ == '__main__':
    init_database()
