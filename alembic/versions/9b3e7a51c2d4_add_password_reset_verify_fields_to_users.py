"""add_password_reset_verify_fields_to_users

Revision ID: 9b3e7a51c2d4
Revises: 4f1c2d8e9a37
Create Date: 2023-02-09 19:35:03.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9b3e7a51c2d4'
down_revision: Union[str, None] = '4f1c2d8e9a37'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(sa.Column("password_reset_token", sa.String(length=200), nullable=True))
        batch_op.add_column(sa.Column("password_reset_expires", sa.DateTime(timezone=True), nullable=True))
        batch_op.add_column(
            sa.Column("email_verified", sa.Boolean(), server_default=sa.false(), nullable=False)
        )


def downgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_column("email_verified")
        batch_op.drop_column("password_reset_expires")
        batch_op.drop_column("password_reset_token")
