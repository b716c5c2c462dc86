"""
Revoked JWTs.

Logout stores the token's ``jti`` here; the blocklist loader refuses any
token whose ``jti`` has a row. Rows are useless once the token itself has
expired, so the scheduled sweep purges them.
"""
from datetime import UTC, datetime

from gymsubs import db
from gymsubs.models.base import BaseModel
from gymsubs.utils.dates import utcnow


class RevokedToken(BaseModel):
    """
    A logged-out access or refresh token.

    Attributes:
        jti (str): JWT id claim
        token_type (str): ``access`` or ``refresh``
        user_id (int): Account the token was issued to
        revoked_at (datetime): When logout happened
        expires_at (datetime): Token expiry (naive UTC); the row can go after it
    """
    __tablename__ = 'revoked_tokens'

    jti = db.Column(db.String(36), nullable=False, unique=True, index=True)
    token_type = db.Column(db.String(10), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
                        nullable=False, index=True)
    revoked_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    user = db.relationship('User', backref=db.backref('revoked_tokens', lazy='dynamic',
                                                      passive_deletes=True))

    def __repr__(self):
        return f'<RevokedToken {self.token_type} user:{self.user_id}>'

    @classmethod
    def is_revoked(cls, jti):
        return bool(db.session.query(db.exists().where(cls.jti == jti)).scalar())

    @classmethod
    def revoke(cls, claims, user_id):
        """
        Record a decoded token as logged out.

        Revoking the same token twice keeps the first row.

        Args:
            claims (dict): Decoded JWT, as returned by ``get_jwt()``
            user_id (int): Account the token belongs to

        Returns:
            RevokedToken: The stored row
        """
        existing = cls.query.filter_by(jti=claims['jti']).first()
        if existing is not None:
            return existing
        token = cls(
            jti=claims['jti'],
            token_type=claims['type'],
            user_id=user_id,
            expires_at=datetime.fromtimestamp(claims['exp'], UTC).replace(tzinfo=None),
        )
        db.session.add(token)
        db.session.commit()
        return token

    @classmethod
    def purge_expired(cls, now):
        """Delete rows for tokens that expired before ``now``; returns the count."""
        removed = cls.query.filter(cls.expires_at < now).delete(synchronize_session=False)
        db.session.commit()
        return removed
