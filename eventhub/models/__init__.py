# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant LocalStore.create_all().

from eventhub.models.attendance import Attendance  # noqa: F401
from eventhub.models.certificate import Certificate  # noqa: F401
