from datetime import datetime
from . import db


class UserSession(db.Model):
    """Server-side session data keyed by the id carried in the session cookie."""
    __tablename__ = 'sessions'

    sid = db.Column(db.String(255), primary_key=True)
    # JSON encoded session dict
    sess = db.Column(db.Text, nullable=False)
    expire = db.Column(db.DateTime, nullable=False, index=True)

    def __repr__(self):
        return f'<UserSession {self.sid[:8]}>'

    def is_expired(self, now=None):
        return self.expire <= (now or datetime.now())
