"""Initial marketplace schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-01-15 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum labels are stored by member name
user_role = sa.Enum("SELLER", "BUYER", "ADMIN", name="user_role")
property_type = sa.Enum("HOUSE", "APARTMENT", "CONDO", "LAND", "COMMERCIAL", name="property_type")
operation_status = sa.Enum("SALE", "RENT", "NOT_AVAILABLE", name="operation_status")
listing_status = sa.Enum("DRAFT", "ACTIVE", "INACTIVE", "SOLD", name="listing_status")


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _base_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_id", table, ["id"])
    op.create_index(f"ix_{table}_created_at", table, ["created_at"])


def upgrade() -> None:
    """Create users, listings, images, features, neighborhoods and favorites."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    _base_indexes("users")
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "properties",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("zip_code", sa.String(length=20), nullable=True),
        sa.Column("property_type", property_type, nullable=False),
        sa.Column("rooms", sa.Integer(), nullable=False),
        sa.Column("bathrooms", sa.Integer(), nullable=False),
        sa.Column("area", sa.Integer(), nullable=False),
        sa.Column("year_built", sa.Integer(), nullable=True),
        sa.Column("operation_status", operation_status, nullable=False),
        sa.Column("listing_status", listing_status, nullable=False),
        sa.Column("latitude", sa.Numeric(precision=10, scale=7), nullable=True),
        sa.Column("longitude", sa.Numeric(precision=10, scale=7), nullable=True),
        sa.Column("seller_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["seller_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    _base_indexes("properties")
    for column in ("title", "price", "city", "state", "country", "property_type",
                   "operation_status", "listing_status", "seller_id"):
        op.create_index(f"ix_properties_{column}", "properties", [column])
    op.create_index(
        "idx_properties_status_city_price", "properties", ["listing_status", "city", "price"]
    )
    op.create_index(
        "idx_properties_seller_updated", "properties", ["seller_id", sa.text("updated_at DESC")]
    )
    op.create_index(
        "idx_properties_coordinates",
        "properties",
        ["latitude", "longitude"],
        postgresql_where=sa.text("latitude IS NOT NULL AND longitude IS NOT NULL"),
    )

    op.create_table(
        "property_images",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("property_id", sa.Uuid(), nullable=False),
        sa.Column("image_url", sa.String(length=500), nullable=False),
        sa.Column("is_cover", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("mime_type", sa.String(length=100), nullable=True),
        sa.Column("original_filename", sa.String(length=255), nullable=True),
        sa.Column("alt_text", sa.String(length=255), nullable=True),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("display_order >= 0", name="ck_property_images_display_order"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_property_images_created_at", "property_images", ["created_at"])
    op.create_index("idx_property_images_property_id", "property_images", ["property_id"])
    op.create_index("idx_property_images_cover", "property_images", ["property_id", "is_cover"])
    op.create_index("idx_property_images_order", "property_images", ["property_id", "display_order"])
    op.create_index(
        "idx_property_images_unique_cover",
        "property_images",
        ["property_id"],
        unique=True,
        postgresql_where=sa.text("is_cover"),
        sqlite_where=sa.text("is_cover = 1"),
    )

    op.create_table(
        "property_features",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("icon", sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    _base_indexes("property_features")
    op.create_index("ix_property_features_category", "property_features", ["category"])

    op.create_table(
        "property_feature_assignments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("property_id", sa.Uuid(), nullable=False),
        sa.Column("feature_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["feature_id"], ["property_features.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("property_id", "feature_id", name="uq_property_feature"),
    )
    _base_indexes("property_feature_assignments")
    op.create_index(
        "ix_property_feature_assignments_property_id", "property_feature_assignments", ["property_id"]
    )
    op.create_index(
        "ix_property_feature_assignments_feature_id", "property_feature_assignments", ["feature_id"]
    )

    op.create_table(
        "neighborhoods",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("subway_access", sa.Text(), nullable=True),
        sa.Column("dining_options", sa.Text(), nullable=True),
        sa.Column("schools_info", sa.Text(), nullable=True),
        sa.Column("shopping_info", sa.Text(), nullable=True),
        sa.Column("parks_recreation", sa.Text(), nullable=True),
        sa.Column("safety_rating", sa.Integer(), nullable=True),
        sa.Column("walkability_score", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("city", "name", name="uq_neighborhoods_city_name"),
    )
    _base_indexes("neighborhoods")
    op.create_index("ix_neighborhoods_name", "neighborhoods", ["name"])
    op.create_index("ix_neighborhoods_city", "neighborhoods", ["city"])

    op.create_table(
        "saved_properties",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("property_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "property_id", name="uq_saved_properties_user_property"),
    )
    _base_indexes("saved_properties")
    op.create_index("ix_saved_properties_user_id", "saved_properties", ["user_id"])
    op.create_index("ix_saved_properties_property_id", "saved_properties", ["property_id"])


def downgrade() -> None:
    """Drop every table, then the enum types."""
    op.drop_table("saved_properties")
    op.drop_table("neighborhoods")
    op.drop_table("property_feature_assignments")
    op.drop_table("property_features")
    op.drop_table("property_images")
    op.drop_table("properties")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (listing_status, operation_status, property_type, user_role):
        enum_type.drop(bind, checkfirst=True)
