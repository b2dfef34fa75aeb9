# telehealth/models/__init__.py
from telehealth.db.session import Base, engine

# Import model modules so SQLAlchemy registers all mappers.
# Modules (not classes) to avoid circular imports.
from . import user  # noqa: F401
from . import symptom_report  # noqa: F401
from . import consultation  # noqa: F401
from . import lab_result  # noqa: F401
from . import alert  # noqa: F401


def init_db() -> None:
    """Create tables if they don't exist."""
    Base.metadata.create_all(bind=engine)
