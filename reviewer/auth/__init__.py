from flask import Blueprint

bp = Blueprint('auth', __name__, url_prefix='/auth')

# Import routes at the bottom
from reviewer.auth import routes
