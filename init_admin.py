#!/usr/bin/env python3
"""
Create the first admin account and seed the staff directory.
Run with: python init_admin.py

Admin credentials come from INIT_ADMIN_EMAIL / INIT_ADMIN_PASSWORD;
doctors and nurses from comma separated INIT_DOCTORS / INIT_NURSES.
"""
import os
import sys

from denta_crm import create_app
from denta_crm.extensions import db
from denta_crm.models import User, Doctor, Nurse, WhitelistEmail


def _names(env_name):
    return [name.strip() for name in os.getenv(env_name, '').split(',') if name.strip()]


def create_admin():
    """Create the admin user, whitelist its email and add directory names"""
    email = (os.getenv('INIT_ADMIN_EMAIL') or '').strip().lower()
    password = os.getenv('INIT_ADMIN_PASSWORD') or ''
    if not email or len(password) < 6:
        print("Set INIT_ADMIN_EMAIL and INIT_ADMIN_PASSWORD (at least 6 characters)")
        sys.exit(1)

    app = create_app()

    with app.app_context():
        print("=" * 60)
        print("Initializing Denta CRM")
        print("=" * 60)
        print()

        user = User.query.filter_by(email=email).first()
        if user:
            print(f"  - User '{email}' already exists (skipping)")
        else:
            user = User(email=email, is_admin=True, first_name='Администратор')
            user.set_password(password)
            db.session.add(user)
            print(f"  ✓ Created admin: {email}")

        if not WhitelistEmail.query.filter_by(email=email).first():
            db.session.add(WhitelistEmail(email=email, provider='email'))
            print(f"  ✓ Whitelisted: {email}")

        for model, env_name in ((Doctor, 'INIT_DOCTORS'), (Nurse, 'INIT_NURSES')):
            for name in _names(env_name):
                if model.query.filter_by(name=name).first():
                    continue
                db.session.add(model(name=name))
                print(f"  ✓ Added {model.__tablename__[:-1]}: {name}")

        db.session.commit()

        print()
        print("=" * 60)
        print("✅ Done")
        print("=" * 60)


if __name__ == '__main__':
    create_admin()
