from sqlalchemy import CheckConstraint
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def one_of(column: str, values: tuple[str, ...], name: str) -> CheckConstraint:
    """CHECK constraint limiting a string column to a fixed value set."""
    allowed = ", ".join(f"'{v}'" for v in values)
    return CheckConstraint(f"{column} IN ({allowed})", name=name)
