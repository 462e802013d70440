# ==============================================================================
# reviewer/__init__.py
# ------------------------------------------------------------------------------
# Application factory for creating and configuring the Flask app instance.
# ==============================================================================

import json
from datetime import timedelta
import os
import logging
import click
from flask import Flask, jsonify
from config import Config
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Initialize extensions globally to be accessible by other modules
db = SQLAlchemy()
migrate = Migrate()


def create_app(config_class=Config, sheet_source=None, identity_provider=None, session_store=None):
    """
    Application factory function. Creates and configures the Flask application.

    Args:
        config_class (class): The configuration class to use.
        sheet_source: Spreadsheet source; defaults to Google Sheets.
        identity_provider: Login provider; defaults to Google OAuth.
        session_store: Server-side session store; defaults to SESSION_STORE_URL.

    Returns:
        Flask: The configured Flask application instance.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)
    # The cookie lives as long as the server-side session it points to.
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(seconds=app.config['SESSION_LIFETIME_SECONDS'])
    # Role groups are returned in the order they first appear in the sheet.
    app.json.sort_keys = False

    # Configure logging
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    missing = [name for name in app.config.get('REQUIRED_SETTINGS', ()) if not app.config.get(name)]
    if missing:
        app.logger.warning(f"Missing required settings: {', '.join(missing)}. Check your .env file.")

    # Ensure the instance folder exists for the SQLite database
    os.makedirs(app.instance_path, exist_ok=True)

    # Initialize extensions with the application instance
    db.init_app(app)
    migrate.init_app(app, db)

    # External collaborators, replaceable for tests
    from reviewer.auth.identity import create_identity_provider
    from reviewer.auth.session_store import create_session_store
    from reviewer.sources.google_sheets import GoogleSheetsSource
    app.extensions['sheet_source'] = sheet_source or GoogleSheetsSource(app.config)
    app.extensions['identity_provider'] = identity_provider or create_identity_provider(app.config)
    app.extensions['session_store'] = session_store or create_session_store(app.config['SESSION_STORE_URL'])

    # Register blueprints with the application
    from reviewer.main import bp as main_bp
    app.register_blueprint(main_bp)
    from reviewer.auth import bp as auth_bp
    app.register_blueprint(auth_bp)

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.cli.command('init-db')
    def init_db():
        """Creates the database tables."""
        db.create_all()
        app.logger.info('Database tables created.')

    @app.cli.command('export-data')
    @click.argument('path', type=click.Path(dir_okay=False, writable=True))
    def export_data_command(path):
        """Writes all sheets, votes, selections and notes to a JSON file."""
        from reviewer.transfer import export_data
        data = export_data()
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        click.echo(f"Exported {len(data['sheets'])} sheet(s) to {path}")

    @app.cli.command('import-legacy')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    def import_legacy_command(path):
        """Imports a JSON backup or a legacy data.json file."""
        from reviewer.transfer import import_data
        with open(path, encoding='utf-8') as f:
            stats = import_data(json.load(f))
        for kind, counts in stats.items():
            click.echo(f"{kind}: {counts['imported']} imported, {counts['skipped']} skipped")

    app.logger.info('Applicant Reviewer startup complete')

    return app
