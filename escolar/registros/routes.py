"""
Rutas del Módulo de Subdirección

/registros/<tipo> con tipo en: citatorios, bitacora, minutas.
"""

from flask import jsonify, request, abort, g

from . import registros_bp
from . import services as registros_services
from escolar.auth.services import usuario_en_sesion
from escolar.core.constants import ROLES_DIRECTIVOS, ROL_DOCENTE
from escolar.core.estado import estado_actual
from escolar.core.logger import get_logger

logger = get_logger(__name__)

ROLES_PERMITIDOS = ROLES_DIRECTIVOS + (ROL_DOCENTE,)


@registros_bp.before_request
def restringir_acceso():
    usuario = usuario_en_sesion()
    if not usuario:
        abort(401, "Inicia sesión para continuar.")
    if usuario.get('role') not in ROLES_PERMITIDOS:
        abort(403, "Acceso Restringido")
    g.usuario = usuario


def _coleccion(tipo: str, escritura: bool = False) -> str:
    coleccion = registros_services.coleccion_de(tipo)
    if coleccion is None:
        abort(404, f"Tipo de registro desconocido: {tipo}")
    # Los citatorios solo los emite o modifica la dirección
    if escritura and coleccion == 'citations' and g.usuario.get('role') not in ROLES_DIRECTIVOS:
        logger.warning(f"Docente {g.usuario.get('username')} intentó modificar citatorios")
        abort(403, "Solo la dirección puede emitir o modificar citatorios.")
    return coleccion


@registros_bp.route('/<tipo>')
def listar(tipo):
    coleccion = _coleccion(tipo)
    registros = registros_services.listar(estado_actual().datos, coleccion, g.usuario)
    return jsonify(registros=registros)


@registros_bp.route('/<tipo>', methods=['POST'])
def crear(tipo):
    coleccion = _coleccion(tipo, escritura=True)
    registro = registros_services.crear(estado_actual(), coleccion, request.get_json(silent=True) or {})
    return jsonify(registro=registro), 201


@registros_bp.route('/<tipo>/<registro_id>', methods=['PUT'])
def reemplazar(tipo, registro_id):
    coleccion = _coleccion(tipo, escritura=True)
    registro = registros_services.reemplazar(
        estado_actual(), coleccion, registro_id, request.get_json(silent=True) or {}
    )
    if registro is None:
        abort(404, "Registro no encontrado.")
    return jsonify(registro=registro)


@registros_bp.route('/<tipo>/<registro_id>', methods=['DELETE'])
def eliminar(tipo, registro_id):
    coleccion = _coleccion(tipo, escritura=True)
    if not registros_services.eliminar(estado_actual(), coleccion, registro_id):
        abort(404, "Registro no encontrado.")
    return jsonify(ok=True)
