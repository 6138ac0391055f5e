"""
Server-side Flask sessions stored in the ``sessions`` table.

The cookie only carries a random session id; the session dict (including
the Flask-Login user id) lives in the database until it expires.
"""
from datetime import datetime
import json
import secrets
from flask.sessions import SessionInterface, SessionMixin
from werkzeug.datastructures import CallbackDict
from ..models import db
from ..models.session import UserSession


def generate_sid():
    return secrets.token_urlsafe(32)


class DatabaseSession(CallbackDict, SessionMixin):

    def __init__(self, initial=None, sid=None, new=False):
        def on_update(self):
            self.modified = True
        CallbackDict.__init__(self, initial, on_update)
        self.sid = sid
        self.new = new
        self.modified = False
        self.previous_sid = None

    def regenerate(self):
        """Move the data to a fresh id, e.g. on login; the old row is dropped on save."""
        if self.previous_sid is None and not self.new:
            self.previous_sid = self.sid
        self.sid = generate_sid()
        self.modified = True


class DatabaseSessionInterface(SessionInterface):
    session_class = DatabaseSession

    def open_session(self, app, request):
        sid = request.cookies.get(self.get_cookie_name(app))
        if sid:
            record = db.session.get(UserSession, sid)
            if record is not None and not record.is_expired():
                try:
                    data = json.loads(record.sess)
                except ValueError:
                    app.logger.warning(f"Discarding unreadable session {sid[:8]}")
                else:
                    return self.session_class(data, sid=sid)
        return self.session_class(sid=generate_sid(), new=True)

    def save_session(self, app, session, response):
        name = self.get_cookie_name(app)
        domain = self.get_cookie_domain(app)
        path = self.get_cookie_path(app)

        if session.previous_sid:
            self._delete(session.previous_sid)

        # Emptied session (logout): drop the row and the cookie
        if not session:
            if session.modified:
                self._delete(session.sid)
                db.session.commit()
                response.delete_cookie(name, domain=domain, path=path)
            return

        if not self.should_set_cookie(app, session):
            return

        record = db.session.get(UserSession, session.sid)
        if record is None:
            record = UserSession(sid=session.sid)
            db.session.add(record)
        record.sess = json.dumps(dict(session))
        record.expire = datetime.now() + app.permanent_session_lifetime
        db.session.commit()

        response.set_cookie(
            name,
            session.sid,
            expires=self.get_expiration_time(app, session),
            httponly=self.get_cookie_httponly(app),
            domain=domain,
            path=path,
            secure=self.get_cookie_secure(app),
            samesite=self.get_cookie_samesite(app)
        )

    @staticmethod
    def _delete(sid):
        record = db.session.get(UserSession, sid)
        if record is not None:
            db.session.delete(record)


def purge_expired_sessions(now=None):
    """Delete expired session rows; returns how many were removed."""
    deleted = UserSession.query.filter(UserSession.expire <= (now or datetime.now())).delete()
    db.session.commit()
    return deleted
