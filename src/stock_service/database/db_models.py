from sqlalchemy import Integer, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Stock(Base):
    __tablename__ = "stocks"

    # The column keeps its historical name; the attribute is exposed as `id`.
    id: Mapped[int] = mapped_column(
        "stockid", Integer, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(255))
    price: Mapped[float] = mapped_column(Numeric(asdecimal=False))
    company: Mapped[str] = mapped_column(String(255))
