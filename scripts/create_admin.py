#!/usr/bin/env python
"""
Script to create the admin user.
"""
import os

from gymsubs import create_app, db
from gymsubs.models.user import Role, User

app = create_app()

with app.app_context():
    admin = User.query.filter_by(username='admin').first()

    if not admin:
        admin = User(
            username='admin',
            email='admin@example.com',
            password=os.getenv('ADMIN_PASSWORD', 'admin123'),
            role=Role.ADMIN,
        )
        db.session.add(admin)
        db.session.commit()
        print(f'Admin user created with ID: {admin.id}')
    elif admin.role != Role.ADMIN.value:
        admin.role = Role.ADMIN.value
        db.session.commit()
        print(f'Updated user ID: {admin.id} with admin role')
    else:
        print(f'Admin user already exists with ID: {admin.id}')
