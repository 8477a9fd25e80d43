from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table

metadata = MetaData()

users = Table(
    "users", metadata,
    Column("identity",          String(64),     primary_key=True),
    Column("display_name",      String(255),    nullable=False),
    Column("external_handle",   String(255)),
    Column("rating",            Integer,        nullable=False, default=1500),
    Column("games_played",      Integer,        nullable=False, default=0),
    Column("wins",              Integer,        nullable=False, default=0),
    Column("losses",            Integer,        nullable=False, default=0),
    Column("registered_at",     DateTime(timezone=True)),
    Column("updated_at",        DateTime(timezone=True)),
)
