"""Initial schema - users, incidents, allocations, responses, notifications

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = sa.Enum("COMMUNITY_USER", "VOLUNTEER", "NGO", "GOVERNMENT_AGENCY", "ADMIN", name="userrole")
incident_type = sa.Enum(
    "FIRE", "FLOOD", "EARTHQUAKE", "STORM", "LANDSLIDE", "DROUGHT", "EPIDEMIC", "OTHER", name="incidenttype"
)
incident_status = sa.Enum(
    "PENDING", "VERIFIED", "IN_PROGRESS", "RESOLVED", "REJECTED", "CLOSED", name="incidentstatus"
)
allocation_status = sa.Enum("ASSIGNED", "ACCEPTED", "DECLINED", "COMPLETED", name="allocationstatus")
response_type = sa.Enum("STATUS_UPDATE", "STATUS_REPORT", "FEEDBACK", name="responsetype")
notification_type = sa.Enum("ALERT", "SUCCESS", "INFO", name="notificationtype")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("email_verified", sa.DateTime(), nullable=True),
        sa.Column("otp", sa.String(length=6), nullable=True),
        sa.Column("otp_expiry", sa.DateTime(), nullable=True),
        sa.Column("image", sa.String(length=512), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("organization", sa.String(length=255), nullable=True),
        sa.Column("government_id", sa.String(length=100), nullable=True),
        sa.Column("ngo_name", sa.String(length=255), nullable=True),
        sa.Column("ngo_founder", sa.String(length=255), nullable=True),
        sa.Column("available_resources", sa.Text(), nullable=True),
        sa.Column("distance_willing_to_travel", sa.Integer(), nullable=True),
        sa.Column("emergency_contact_name", sa.String(length=255), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(length=50), nullable=True),
        sa.Column("emergency_contact_address", sa.String(length=255), nullable=True),
        sa.Column("emergency_contact_relationship", sa.String(length=100), nullable=True),
        sa.Column("medications", sa.Text(), nullable=True),
        sa.Column("allergies", sa.Text(), nullable=True),
        sa.Column("conditions", sa.Text(), nullable=True),
        sa.Column("medical_additional_info", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_user"),
    )
    op.create_index("ix_user_id", "user", ["id"])
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "incident",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("type", incident_type, nullable=False),
        sa.Column("severity", sa.Integer(), nullable=False),
        sa.Column("status", incident_status, nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("affected_people", sa.Integer(), nullable=True),
        sa.Column("assigned_to", sa.String(length=255), nullable=True),
        sa.Column("reporter_id", sa.Integer(), nullable=False),
        sa.Column("verified_by_id", sa.Integer(), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["reporter_id"], ["user.id"], name="fk_incident_reporter_id_user"),
        sa.ForeignKeyConstraint(["verified_by_id"], ["user.id"], name="fk_incident_verified_by_id_user"),
        sa.PrimaryKeyConstraint("id", name="pk_incident"),
    )
    op.create_index("ix_incident_id", "incident", ["id"])
    op.create_index("ix_incident_status", "incident", ["status"])
    op.create_index("ix_incident_reporter_id", "incident", ["reporter_id"])

    op.create_table(
        "resourceallocation",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("resource_type", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("status", allocation_status, nullable=False),
        sa.Column("decline_reason", sa.Text(), nullable=True),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        sa.Column("incident_id", sa.Integer(), nullable=False),
        sa.Column("allocated_to_id", sa.Integer(), nullable=False),
        sa.Column("allocated_by_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["incident_id"], ["incident.id"], name="fk_resourceallocation_incident_id_incident", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["allocated_to_id"], ["user.id"], name="fk_resourceallocation_allocated_to_id_user"),
        sa.ForeignKeyConstraint(["allocated_by_id"], ["user.id"], name="fk_resourceallocation_allocated_by_id_user"),
        sa.PrimaryKeyConstraint("id", name="pk_resourceallocation"),
    )
    op.create_index("ix_resourceallocation_id", "resourceallocation", ["id"])
    op.create_index("ix_resourceallocation_status", "resourceallocation", ["status"])
    op.create_index("ix_resourceallocation_incident_id", "resourceallocation", ["incident_id"])
    op.create_index("ix_resourceallocation_allocated_to_id", "resourceallocation", ["allocated_to_id"])

    op.create_table(
        "incidentresponse",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", response_type, nullable=False),
        sa.Column("challenges_faced", sa.Text(), nullable=True),
        sa.Column("successes_had", sa.Text(), nullable=True),
        sa.Column("recommendations", sa.Text(), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("incident_id", sa.Integer(), nullable=False),
        sa.Column("responder_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["incident_id"], ["incident.id"], name="fk_incidentresponse_incident_id_incident", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["responder_id"], ["user.id"], name="fk_incidentresponse_responder_id_user"),
        sa.PrimaryKeyConstraint("id", name="pk_incidentresponse"),
    )
    op.create_index("ix_incidentresponse_id", "incidentresponse", ["id"])
    op.create_index("ix_incidentresponse_incident_id", "incidentresponse", ["incident_id"])

    op.create_table(
        "notification",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("incident_id", sa.Integer(), nullable=True),
        sa.Column("allocation_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], name="fk_notification_user_id_user", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["incident_id"], ["incident.id"], name="fk_notification_incident_id_incident", ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["allocation_id"],
            ["resourceallocation.id"],
            name="fk_notification_allocation_id_resourceallocation",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_notification"),
    )
    op.create_index("ix_notification_id", "notification", ["id"])
    op.create_index("ix_notification_user_id", "notification", ["user_id"])


def downgrade() -> None:
    op.drop_table("notification")
    op.drop_table("incidentresponse")
    op.drop_table("resourceallocation")
    op.drop_table("incident")
    op.drop_table("user")
    for enum_type in (
        notification_type, response_type, allocation_status, incident_status, incident_type, user_role
    ):
        enum_type.drop(op.get_bind(), checkfirst=True)
