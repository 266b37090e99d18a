# models_bootstrap.py
from organization import models as _org_models
from employee import models as _employee_models
from shift import models as _shift_models
from roster import models as _roster_models
from assignment import models as _assignment_models
from events import models as _event_models
