import importlib.util

def normalize_database_url(url: str) -> str:
    """Pick the installed Postgres driver for a plain 'postgresql://' or legacy 'postgres://' URL.

    A bare URL makes SQLAlchemy load psycopg2. Only psycopg v3 is a dependency
    (psycopg[binary]), so the driver is switched when psycopg2 is absent.
    """
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if not url.startswith("postgresql://"):
        return url
    if importlib.util.find_spec("psycopg2") is not None:
        return url
    return url.replace("postgresql://", "postgresql+psycopg://", 1)
