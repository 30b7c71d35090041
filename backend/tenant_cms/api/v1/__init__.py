from flask import Blueprint

v1_bp = Blueprint("v1", __name__)

# Route modules register on import
from . import health
from . import auth
from . import users
from . import cms
from . import content
from . import settings
from . import media
from . import templates
from . import tenants
from . import webhooks
from . import audit
from . import public
from . import contact
