from flask import Flask
from flask_cors import CORS
from sqlalchemy import event
from .config.config import config
from .models import db, login_manager
from .utils.errors import register_error_handlers
from .utils.session_utils import DatabaseSessionInterface, purge_expired_sessions


def create_app(config_name="development", test_config=None):
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    if test_config:
        app.config.update(test_config)

    app.config['SYSTEM_VERSION'] = '1.0.0'
    config[config_name].init_app(app)

    # Extensions
    db.init_app(app)
    login_manager.init_app(app)
    CORS(app, origins=app.config['CORS_ORIGINS'], supports_credentials=True)

    # Sessions live in the sessions table, the cookie only holds the id
    app.session_interface = DatabaseSessionInterface()

    register_error_handlers(app)

    with app.app_context():
        if db.engine.dialect.name == 'sqlite':
            event.listen(db.engine, 'connect', enable_sqlite_foreign_keys)
        db.create_all()

    # Blueprints
    from .routers.main import main_bp
    from .routers.auth import auth_bp
    from .routers.users import users_bp
    from .routers.appointments import appointments_bp
    from .routers.messages import messages_bp
    from .routers.prescriptions import prescriptions_bp
    from .routers.medical_records import medical_records_bp
    from .routers.files import files_bp, uploads_bp
    from .routers.doctor_patient import doctor_patient_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(appointments_bp)
    app.register_blueprint(messages_bp)
    app.register_blueprint(prescriptions_bp)
    app.register_blueprint(medical_records_bp)
    app.register_blueprint(files_bp)
    app.register_blueprint(uploads_bp)
    app.register_blueprint(doctor_patient_bp)

    @app.cli.command('purge-sessions')
    def purge_sessions_command():
        """Delete expired rows from the sessions table."""
        deleted = purge_expired_sessions()
        app.logger.info(f"Purged {deleted} expired sessions")
        print(f"Purged {deleted} expired sessions")

    return app


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores foreign keys unless asked on every connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
