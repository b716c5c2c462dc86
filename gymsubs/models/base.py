"""
Base model with common fields.
"""
from gymsubs import db
from gymsubs.utils.dates import utcnow


class BaseModel(db.Model):
    """
    Base model class that includes the columns shared by all models.
    """
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
