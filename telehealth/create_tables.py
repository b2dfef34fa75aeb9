# telehealth/create_tables.py
import sys
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Allow running from the telehealth/ directory without PYTHONPATH tweaks
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

ENV_PATH = ROOT_DIR / "telehealth" / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=True)

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from telehealth.db.session import Base
from telehealth import models


def create_missing_tables(engine: Engine) -> List[str]:
    """Create any model table the database lacks. Returns the names created, in dependency order."""
    existing = set(inspect(engine).get_table_names())
    Base.metadata.create_all(bind=engine)
    return [t.name for t in Base.metadata.sorted_tables if t.name not in existing]


def main() -> None:
    created = create_missing_tables(models.engine)
    if not created:
        print("All tables already exist.")
        return
    for name in created:
        print(f"Created table: {name}")
    print(f"{len(created)} table(s) created.")


if __name__ == "__main__":
    main()
