# ==============================================================================
# run.py
# ------------------------------------------------------------------------------
# The main entry point to launch the Flask application.
# ==============================================================================

from reviewer import create_app, db
from reviewer.models import Note, Selection, Sheet, Vote

# Create the Flask application instance using the factory function
app = create_app()

@app.shell_context_processor
def make_shell_context():
    """Provides a shell context for the `flask shell` command."""
    return {
        'db': db,
        'Sheet': Sheet,
        'Vote': Vote,
        'Selection': Selection,
        'Note': Note,
    }

if __name__ == '__main__':
    app.run(debug=True, port=5001)
