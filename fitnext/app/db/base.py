from fitnext.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from fitnext.app.models.person import Person  # noqa: F401
from fitnext.app.models.temp_password import TempPassword  # noqa: F401
from fitnext.app.models.location import Location  # noqa: F401
from fitnext.app.models.session_type import SessionType  # noqa: F401
from fitnext.app.models.session import Session  # noqa: F401
from fitnext.app.models.booking import Booking  # noqa: F401
