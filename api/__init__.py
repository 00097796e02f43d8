"""
api - REST API layer.

All route modules register on a single Flask Blueprint
with url_prefix /api/v1.
"""

from flask import Blueprint

api_bp = Blueprint("api", __name__, url_prefix="/api/v1")

# Import route modules so their @api_bp decorators execute
from api import auth                  # noqa: F401, E402
from api import routes_auth           # noqa: F401, E402
from api import routes_projects       # noqa: F401, E402
from api import routes_coordinator    # noqa: F401, E402
from api import routes_hod            # noqa: F401, E402
from api import routes_years          # noqa: F401, E402
from api import routes_account        # noqa: F401, E402
from api import errors                # noqa: F401, E402
