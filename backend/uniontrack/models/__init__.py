# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.

from uniontrack.models.member import Member  # noqa: F401  (doit précéder event)
from uniontrack.models.event import Event  # noqa: F401
from uniontrack.models.attendance import Attendance  # noqa: F401
from uniontrack.models.login_token import LoginToken  # noqa: F401
