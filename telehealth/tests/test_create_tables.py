from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from telehealth.create_tables import create_missing_tables, main


def _fresh_engine():
    return create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


def test_creates_every_table_on_empty_database():
    engine = _fresh_engine()
    created = create_missing_tables(engine)

    assert set(created) == set(inspect(engine).get_table_names())
    assert {"users", "alerts", "alert_read_receipts", "consultations", "lab_results"} <= set(created)
    # Parents come before the tables that reference them
    assert created.index("users") < created.index("symptom_reports") < created.index("alert_related_reports")


def test_second_run_creates_nothing():
    engine = _fresh_engine()
    create_missing_tables(engine)
    assert create_missing_tables(engine) == []


def test_main_reports_existing_schema(capsys):
    # The test engine already carries the full schema
    main()
    assert "All tables already exist." in capsys.readouterr().out
