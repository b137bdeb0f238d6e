from sqlmodel import Field, SQLModel


class Profile(SQLModel, table=True):
    """Read-only projection of the profile store used to name push actors."""
    __tablename__ = "profiles"
    user_id: str = Field(primary_key=True)
    username: str | None = None
    display_name: str | None = None
