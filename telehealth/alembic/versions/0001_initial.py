"""Initial telehealth schema."""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
ID = sa.String(length=36)
ENUM = sa.String(length=32)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", ID, primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("role", ENUM, nullable=False),
        sa.Column("phone", sa.String(length=40)),
        sa.Column("specialization", sa.String(length=120)),
        sa.Column("date_of_birth", sa.Date()),
        sa.Column("gender", ENUM),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "symptom_reports",
        sa.Column("id", ID, primary_key=True),
        sa.Column("patient_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("symptoms", JSON_TYPE, nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("audio_transcript", sa.Text()),
        sa.Column("severity", ENUM, nullable=False),
        sa.Column("duration", sa.String(length=120), nullable=False),
        sa.Column("status", ENUM, nullable=False),
        sa.Column("reviewed_by", ID, sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("review_notes", sa.Text()),
        sa.Column("ai_analysis", JSON_TYPE),
        *_timestamps(),
    )
    op.create_index("ix_symptom_reports_patient_created", "symptom_reports", ["patient_id", "created_at"])
    op.create_index("ix_symptom_reports_status_severity", "symptom_reports", ["status", "severity"])

    op.create_table(
        "consultations",
        sa.Column("id", ID, primary_key=True),
        sa.Column("patient_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("doctor_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("report_id", ID, sa.ForeignKey("symptom_reports.id", ondelete="SET NULL")),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", ENUM, nullable=False),
        sa.Column("type", ENUM, nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("prescription", sa.Text()),
        sa.Column("follow_up", JSON_TYPE),
        sa.Column("duration", sa.Integer()),
        sa.Column("meeting_url", sa.String(length=1024)),
        *_timestamps(),
    )
    op.create_index("ix_consultations_patient_scheduled", "consultations", ["patient_id", "scheduled_at"])
    op.create_index("ix_consultations_doctor_scheduled", "consultations", ["doctor_id", "scheduled_at"])
    op.create_index("ix_consultations_status_scheduled", "consultations", ["status", "scheduled_at"])

    op.create_table(
        "lab_results",
        sa.Column("id", ID, primary_key=True),
        sa.Column("patient_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("test_name", sa.String(length=255), nullable=False),
        sa.Column("test_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("results", sa.Text(), nullable=False),
        sa.Column("doctor_notes", sa.Text()),
        sa.Column("file_url", sa.String(length=1024)),
        sa.Column("normal_range", sa.String(length=255)),
        sa.Column("status", ENUM, nullable=False),
        sa.Column("ordered_by", ID, sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("lab_facility", JSON_TYPE),
        *_timestamps(),
    )
    op.create_index("ix_lab_results_patient_test_date", "lab_results", ["patient_id", "test_date"])
    op.create_index("ix_lab_results_status_test_date", "lab_results", ["status", "test_date"])

    op.create_table(
        "alerts",
        sa.Column("id", ID, primary_key=True),
        sa.Column("type", ENUM, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("severity", ENUM, nullable=False),
        sa.Column("geo_country", sa.String(length=120)),
        sa.Column("geo_region", sa.String(length=120)),
        sa.Column("geo_city", sa.String(length=120)),
        sa.Column("geo_longitude", sa.Float()),
        sa.Column("geo_latitude", sa.Float()),
        sa.Column("geo_radius_km", sa.Float()),
        sa.Column("symptom_pattern", JSON_TYPE),
        sa.Column("affected_count", sa.Integer()),
        sa.Column("expires_at", sa.DateTime(timezone=True)),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_alerts_geo_point", "alerts", ["geo_longitude", "geo_latitude"])
    op.create_index("ix_alerts_type_severity_active", "alerts", ["type", "severity", "is_active"])
    op.create_index("ix_alerts_expires_at", "alerts", ["expires_at"])

    op.create_table(
        "alert_target_users",
        sa.Column("alert_id", ID, sa.ForeignKey("alerts.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_index("ix_alert_target_users_user_id", "alert_target_users", ["user_id"])

    op.create_table(
        "alert_target_roles",
        sa.Column("alert_id", ID, sa.ForeignKey("alerts.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role", ENUM, primary_key=True),
    )
    op.create_index("ix_alert_target_roles_role", "alert_target_roles", ["role"])

    op.create_table(
        "alert_related_reports",
        sa.Column("alert_id", ID, sa.ForeignKey("alerts.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("report_id", ID, sa.ForeignKey("symptom_reports.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "alert_read_receipts",
        sa.Column("id", ID, primary_key=True),
        sa.Column("alert_id", ID, sa.ForeignKey("alerts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", ID, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint("alert_id", "user_id", name="uq_alert_read_receipts_alert_user"),
    )
    op.create_index("ix_alert_read_receipts_alert_id", "alert_read_receipts", ["alert_id"])
    op.create_index("ix_alert_read_receipts_user_id", "alert_read_receipts", ["user_id"])


def downgrade():
    for table in (
        "alert_read_receipts",
        "alert_related_reports",
        "alert_target_roles",
        "alert_target_users",
        "alerts",
        "lab_results",
        "consultations",
        "symptom_reports",
        "users",
    ):
        op.drop_table(table)
