"""
Orgdesk - SQLAlchemy extension instance.

All model modules import ``db`` from here:

    from orgdesk.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
