"""
Stockage local (SQLite) des présences et certificats.

Le backend distant ne connaît pas ces deux collections : le tableau de bord
les conserve localement, comme un miroir persistant. Chaque instance de
LocalStore possède son propre moteur, ce qui isole les tests entre eux.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eventhub.config import settings

Base = declarative_base()


class LocalStore:
    """Moteur + fabrique de sessions pour une base locale donnée."""

    def __init__(self, url: str = settings.LOCAL_DATABASE_URL):
        kwargs = {}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url == "sqlite://":
                # Une seule connexion partagée, sinon chaque session voit une base vide
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(url, **kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        import eventhub.models  # noqa: F401 (enregistre les modèles dans Base.metadata)

        Base.metadata.create_all(self.engine)

    def reset(self) -> None:
        """Vide le miroir local (changement de tenant, tests)."""
        import eventhub.models  # noqa: F401

        Base.metadata.drop_all(self.engine)
        Base.metadata.create_all(self.engine)

