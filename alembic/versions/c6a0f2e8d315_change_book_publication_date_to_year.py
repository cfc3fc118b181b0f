"""change_book_publication_date_to_year

Revision ID: c6a0f2e8d315
Revises: 9b3e7a51c2d4
Create Date: 2023-02-15 18:14:28.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c6a0f2e8d315'
down_revision: Union[str, None] = '9b3e7a51c2d4'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Existing dates are not carried over: the new column is NOT NULL without a
# default, so this only applies to an empty books table.
def upgrade() -> None:
    with op.batch_alter_table("books") as batch_op:
        batch_op.drop_column("publication_date")
        batch_op.add_column(sa.Column("publication_year", sa.SmallInteger(), nullable=False))


def downgrade() -> None:
    with op.batch_alter_table("books") as batch_op:
        batch_op.drop_column("publication_year")
        batch_op.add_column(sa.Column("publication_date", sa.Date(), nullable=False))
