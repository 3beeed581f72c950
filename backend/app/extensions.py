"""
extensions.py — Flask extension singletons.

Initialises SQLAlchemy as a module-level object so it can be imported
anywhere without creating circular dependencies.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `db` from here wherever needed.

    from backend.app.extensions import db

Only the app factory, the repository layer and backend/app/dependencies.py
touch `db.session`. Services receive repository objects, never the session.

Request validation uses plain marshmallow.Schema classes (app/schemas/),
which need no extension object and run in unit tests without a Flask app.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
