"""
Configuración de base de datos con SQLAlchemy
"""
from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
import logging

# Crear Base ANTES de importar config para evitar import circular
Base = declarative_base()

from bp_manager.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_options() -> dict:
    """Opciones del engine según el motor de base de datos"""
    if settings.is_sqlite:
        # SQLite en memoria necesita una sola conexión compartida entre hilos
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
            "echo": settings.DEBUG,
        }

    return {
        "poolclass": QueuePool,
        "pool_size": 20,
        "max_overflow": 30,
        "pool_pre_ping": True,
        "pool_recycle": 3600,  # Reciclar conexiones cada hora
        "echo": settings.DEBUG,  # Solo mostrar SQL en debug
    }


engine = create_engine(settings.database_url, **_engine_options())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """
    Dependency para obtener sesión de base de datos
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """
    Crear todas las tablas si no existen
    """
    try:
        # Importar todos los modelos para que se registren
        from bp_manager.models import (  # noqa: F401
            user, medication, dose_log, blood_pressure, message, activity, resource, medication_template
        )

        Base.metadata.create_all(bind=engine)
        logger.info("✅ Tablas creadas/verificadas exitosamente")

    except Exception as e:
        logger.error(f"❌ Error al crear tablas: {e}")
        raise


def drop_tables():
    """
    Eliminar todas las tablas (usar con cuidado)
    """
    try:
        Base.metadata.drop_all(bind=engine)
        logger.warning("⚠️ Todas las tablas han sido eliminadas")
    except Exception as e:
        logger.error(f"❌ Error al eliminar tablas: {e}")
        raise


def test_connection() -> bool:
    """
    Probar conexión a la base de datos
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.info("✅ Conexión a la base de datos exitosa")
        return True
    except Exception as e:
        logger.error(f"❌ Error de conexión a la base de datos: {e}")
        return False


def get_db_info():
    """
    Obtener información de la base de datos
    """
    try:
        with engine.connect() as conn:
            if settings.is_sqlite:
                version = conn.execute(text("SELECT sqlite_version()")).fetchone()[0]
                return {
                    "engine": "sqlite",
                    "version": version,
                    "database_name": engine.url.database or ":memory:",
                }

            version = conn.execute(text("SELECT VERSION()")).fetchone()[0]
            database = conn.execute(text("SELECT DATABASE()")).fetchone()[0]

            return {
                "engine": "mysql",
                "version": version,
                "database_name": database,
                "host": settings.DB_HOST,
                "port": settings.DB_PORT,
                "charset": settings.DB_CHARSET
            }
    except Exception as e:
        logger.error(f"Error al obtener info de DB: {e}")
        return None
