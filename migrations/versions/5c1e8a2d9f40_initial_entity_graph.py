"""initial entity graph

Revision ID: 5c1e8a2d9f40
Revises:
Create Date: 2026-10-19 09:12:41.503118

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e8a2d9f40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    """Create the collections of the entity graph.

    Collections reference each other only through natural-key copies, so no
    foreign keys are declared between them.
    """
    op.create_table(
        "usuario",
        sa.Column("id", sa.String(length=24), primary_key=True),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("nombre", sa.Text(), nullable=False),
        sa.Column("apellidos", sa.Text(), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=False),
        sa.Column("intereses", sa.JSON(), nullable=False),
        sa.Column("profile_media_id", sa.String(length=24), nullable=True),
        sa.Column("premium", sa.Boolean(), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        _created_at(),
    )
    op.create_index("ix_usuario_username", "usuario", ["username"], unique=True)

    op.create_table(
        "comunidad",
        sa.Column("id", sa.String(length=24), primary_key=True),
        sa.Column("url", sa.String(length=128), nullable=False),
        sa.Column("nombre", sa.Text(), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=False),
        sa.Column("intereses", sa.JSON(), nullable=False),
        sa.Column("profile_media_id", sa.String(length=24), nullable=True),
        sa.Column("carousel_media_ids", sa.JSON(), nullable=False),
        sa.Column("creador", sa.String(length=64), nullable=False),
        sa.Column("administradores", sa.JSON(), nullable=False),
        sa.Column("privada", sa.Boolean(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("codigo_union", sa.String(length=16), nullable=True),
        _created_at(),
        sa.UniqueConstraint("codigo_union"),
    )
    op.create_index("ix_comunidad_url", "comunidad", ["url"], unique=True)
    op.create_index("ix_comunidad_creador", "comunidad", ["creador"])

    op.create_table(
        "actividad",
        sa.Column("id", sa.String(length=24), primary_key=True),
        sa.Column("nombre", sa.Text(), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=False),
        sa.Column("carousel_media_ids", sa.JSON(), nullable=False),
        sa.Column("comunidad", sa.String(length=128), nullable=False),
        sa.Column("creador", sa.String(length=64), nullable=False),
        sa.Column("fecha_inicio", sa.DateTime(timezone=True), nullable=False),
        sa.Column("fecha_finalizacion", sa.DateTime(timezone=True), nullable=False),
        sa.Column("privada", sa.Boolean(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("lugar", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_actividad_comunidad", "actividad", ["comunidad"])
    op.create_index("ix_actividad_creador", "actividad", ["creador"])
    op.create_index("ix_actividad_fecha_inicio", "actividad", ["fecha_inicio"])

    op.create_table(
        "actividades_comunidad",
        sa.Column("id", sa.String(length=24), primary_key=True),
        sa.Column("comunidad", sa.String(length=128), nullable=False),
        sa.Column("actividad_id", sa.String(length=24), nullable=False),
        sa.Column("nombre_actividad", sa.Text(), nullable=False),
    )
    op.create_index("ix_actividades_comunidad_comunidad", "actividades_comunidad", ["comunidad"])
    op.create_index(
        "ix_actividades_comunidad_actividad_id", "actividades_comunidad", ["actividad_id"]
    )

    op.create_table(
        "participantes_comunidad",
        sa.Column("id", sa.String(length=24), primary_key=True),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("comunidad", sa.String(length=128), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("username", "comunidad", name="uq_participante_comunidad"),
    )
    op.create_index("ix_participantes_comunidad_username", "participantes_comunidad", ["username"])
    op.create_index(
        "ix_participantes_comunidad_comunidad", "participantes_comunidad", ["comunidad"]
    )

    op.create_table(
        "participantes_actividad",
        sa.Column("id", sa.String(length=24), primary_key=True),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("actividad_id", sa.String(length=24), nullable=False),
        sa.Column("nombre_actividad", sa.Text(), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("username", "actividad_id", name="uq_participante_actividad"),
    )
    op.create_index("ix_participantes_actividad_username", "participantes_actividad", ["username"])
    op.create_index(
        "ix_participantes_actividad_actividad_id", "participantes_actividad", ["actividad_id"]
    )

    op.create_table(
        "media_blob",
        sa.Column("id", sa.String(length=24), primary_key=True),
        sa.Column("content", sa.LargeBinary(), nullable=False),
        sa.Column("content_type", sa.String(length=128), nullable=False),
        sa.Column("filename", sa.Text(), nullable=True),
        sa.Column("owner_type", sa.String(length=16), nullable=True),
        sa.Column("owner_key", sa.String(length=128), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=True),
        sa.Column("position", sa.Integer(), nullable=True),
        sa.Column("content_hash", sa.String(length=64), nullable=False),
        sa.Column("extra", sa.JSON(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_media_blob_owner_type", "media_blob", ["owner_type"])
    op.create_index("ix_media_blob_owner_key", "media_blob", ["owner_key"])

    op.create_table(
        "notificacion",
        sa.Column("id", sa.String(length=24), primary_key=True),
        sa.Column("tipo", sa.String(length=64), nullable=False),
        sa.Column("titulo", sa.Text(), nullable=False),
        sa.Column("mensaje", sa.Text(), nullable=False),
        sa.Column("usuario_destino", sa.String(length=64), nullable=False),
        sa.Column("entidad_id", sa.String(length=24), nullable=True),
        sa.Column("entidad_nombre", sa.Text(), nullable=True),
        _created_at(),
        sa.Column("leida", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_notificacion_usuario_destino", "notificacion", ["usuario_destino"])

    op.create_table(
        "notification_dispatch",
        sa.Column("actividad_id", sa.String(length=24), nullable=False),
        sa.Column("usuario_destino", sa.String(length=64), nullable=False),
        sa.Column("threshold", sa.String(length=32), nullable=False),
        sa.Column("trigger_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("dispatched_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("actividad_id", "usuario_destino", "threshold", "trigger_at"),
    )


def downgrade() -> None:
    """Drop every collection of the entity graph."""
    for table in (
        "notification_dispatch",
        "notificacion",
        "media_blob",
        "participantes_actividad",
        "participantes_comunidad",
        "actividades_comunidad",
        "actividad",
        "comunidad",
        "usuario",
    ):
        op.drop_table(table)
