"""
Módulo Principal de la Aplicación (Application Factory)
"""

import atexit

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from config import Config

from .core.errores import AccesoDenegado, ConfiguracionInvalida, DatosInvalidos, PeriodoCerrado
from .core.estado import EstadoEscolar
from .core.extensions import limiter
from .core.local_store import AlmacenLocal
from .core.logger import get_logger
from .core.periodos import ControladorPeriodos

logger = get_logger(__name__)


def _registrar_manejadores_error(app: Flask) -> None:
    """Todas las respuestas de error de la API son JSON."""

    @app.errorhandler(ConfiguracionInvalida)
    @app.errorhandler(DatosInvalidos)
    def datos_invalidos(e):
        return jsonify(error=str(e)), 400

    @app.errorhandler(PeriodoCerrado)
    @app.errorhandler(AccesoDenegado)
    def acceso_denegado(e):
        return jsonify(error=str(e)), 403

    @app.errorhandler(HTTPException)
    def error_http(e):
        return jsonify(error=e.description), e.code


def create_app(config_class=Config):
    """
    Crea y configura una instancia de la aplicación Flask.
    """

    app = Flask(__name__, instance_relative_config=True)

    # Detrás de un proxy (Cloud Run / nginx) se respetan los encabezados X-Forwarded-*
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # 1. Carga la configuración
    app.config.from_object(config_class)
    app.json.ensure_ascii = False

    # 2. Extensiones
    limiter.init_app(app)

    iniciar_tareas = app.config.get('INICIAR_TAREAS')

    # 3. Estado escolar (documento único del proceso)
    almacen = AlmacenLocal(app.config['DIRECTORIO_DATOS'])
    estado = EstadoEscolar(
        almacen,
        coleccion=app.config['COLECCION_REMOTA'],
        documento=app.config['DOCUMENTO_REMOTO'],
        password_inicial=app.config['PASSWORD_INICIAL'],
        sincronizar=bool(iniciar_tareas)
    )
    estado.cargar()
    app.extensions['estado_escolar'] = estado

    controlador = ControladorPeriodos(
        estado,
        zona=app.config['ZONA_HORARIA'],
        intervalo=app.config['INTERVALO_REVISION_PERIODOS']
    )
    app.extensions['controlador_periodos'] = controlador

    if iniciar_tareas:
        # atexit ejecuta en orden inverso: el controlador se detiene antes de cerrar el estado
        atexit.register(estado.cerrar)
        atexit.register(controlador.detener, 1)
        controlador.iniciar()

    _registrar_manejadores_error(app)

    # 4. Configura los Blueprints (Módulos)

    # Módulo de Autenticación
    from .auth import auth_bp
    app.register_blueprint(auth_bp)

    # Módulo Admin (personal, periodos, conexión a la nube)
    from .admin import admin_bp
    app.register_blueprint(admin_bp)

    # Módulo Académico (alumnos y calificaciones)
    from .academico import academico_bp
    app.register_blueprint(academico_bp)

    # Módulo de Subdirección (citatorios, bitácora, minutas)
    from .registros import registros_bp
    app.register_blueprint(registros_bp)

    # 5. Ruta de Health Check
    @app.route("/health")
    def health_check():
        modo = "en línea" if estado.conectado else "local"
        return f"Sistema Escolar en servicio ({modo})", 200

    return app
