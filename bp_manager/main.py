"""
Archivo principal de la aplicación FastAPI - BP Manager
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from bp_manager.core.config import get_settings
from bp_manager.core.database import create_tables, test_connection, get_db_info
from bp_manager.api import api_router
from bp_manager.utils.timezone import utcnow
import logging

settings = get_settings()

# Configurar logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestión del ciclo de vida de la aplicación"""
    # Startup
    logger.info("🚀 Iniciando BP Manager API...")
    logger.info(f"🌍 Ambiente: {settings.ENVIRONMENT}")
    logger.info(f"🔑 Debug: {settings.DEBUG}")

    # Verificar conexión a la base de datos
    if test_connection():
        db_info = get_db_info()
        if db_info:
            logger.info(f"📊 {db_info['engine']} {db_info['version']} - DB: {db_info['database_name']}")

        # Crear tablas si no existen
        try:
            create_tables()
            logger.info("✅ Esquema de base de datos verificado")
        except Exception as e:
            logger.error(f"❌ Error al verificar esquema: {e}")
    else:
        logger.error("❌ Error de conexión a la base de datos")
        logger.warning("⚠️ La aplicación continuará pero sin base de datos")

    logger.info("🎯 BP Manager API lista para recibir requests")
    yield

    # Shutdown
    logger.info("🛑 Cerrando BP Manager API...")


def create_application() -> FastAPI:
    """Factory function para crear la aplicación FastAPI"""

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="""
## BP Manager API

API REST para el manejo de la presión arterial.

### Características principales:
- 🩺 Lecturas de presión arterial con umbrales por paciente
- 💊 Medicamentos y prescripciones
- ⏱️ Registro de dosis con verificación de intervalo
- 📊 Tasa de adherencia por ventana de tiempo
- 👩‍⚕️ Vista de proveedor sobre sus pacientes
        """,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # Configurar middlewares
    setup_middlewares(app)

    # Configurar rutas
    setup_routes(app)

    return app


def setup_middlewares(app: FastAPI):
    """Configurar middlewares de la aplicación"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )
    logger.info(f"🌐 Orígenes permitidos: {settings.CORS_ORIGINS}")


def setup_routes(app: FastAPI):
    """Configurar rutas de la aplicación"""

    @app.get("/")
    async def root():
        return {
            "message": "🩺 BP Manager API",
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "documentation": "/docs",
            "health": "/health",
            "api": "/api"
        }

    @app.get("/health")
    async def health_check():
        """Health check completo de la aplicación"""
        db_status = "connected" if test_connection() else "disconnected"

        health_status = {
            "status": "healthy" if db_status == "connected" else "degraded",
            "service": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "database": {
                "status": db_status
            },
            "timestamp": utcnow().isoformat()
        }

        # Información adicional en desarrollo
        if settings.DEBUG:
            db_info = get_db_info()
            if db_info:
                health_status["database"].update(db_info)

        return health_status

    # Incluir router principal de la API
    app.include_router(
        api_router,
        prefix="/api"
    )

    logger.info("🛣️ Rutas configuradas correctamente")


# Crear la aplicación
app = create_application()


# Solo para desarrollo con uvicorn run
if __name__ == "__main__":
    import uvicorn

    logger.info("🚀 Iniciando servidor de desarrollo...")
    logger.info(f"🌐 URL: http://{settings.HOST}:{settings.PORT}")
    logger.info(f"📚 Docs: http://{settings.HOST}:{settings.PORT}/docs")

    uvicorn.run(
        "bp_manager.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=settings.DEBUG,
    )
