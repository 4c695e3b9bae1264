"""
Rutas del Módulo Admin

Personal (docentes, directivos y apoyo), horarios, materias y talleres,
periodos de captura con sus fechas límite y la conexión con Firestore.
"""

from flask import jsonify, request, abort, g

from . import admin_bp
from . import services as admin_services
from .forms import UsuarioForm, ConexionForm
from escolar.auth.services import usuario_en_sesion, perfil_publico
from escolar.core.constants import ROL_ADMIN, ROLES_DIRECTIVOS
from escolar.core.estado import estado_actual
from escolar.core.logger import get_logger

logger = get_logger(__name__)


# === CONTROL DE ACCESO ===

@admin_bp.before_request
def restringir_acceso():
    usuario = usuario_en_sesion()
    if not usuario:
        abort(401, "Inicia sesión para continuar.")
    if usuario.get('role') not in ROLES_DIRECTIVOS:
        logger.warning(f"Acceso denegado al panel admin: {usuario.get('username')}")
        abort(403, "Acceso Restringido")
    g.usuario = usuario


def verificar_admin():
    """La conexión con la nube es exclusiva del director."""
    if g.usuario.get('role') != ROL_ADMIN:
        abort(403, "Acceso Restringido")


# === PERSONAL ===

@admin_bp.route('/usuarios')
def listar_usuarios():
    usuarios = estado_actual().datos.get('users', [])
    return jsonify(usuarios=[perfil_publico(u) for u in usuarios])


@admin_bp.route('/usuarios', methods=['POST'])
def crear_usuario():
    form = UsuarioForm()
    if not form.validate_on_submit():
        return jsonify(error="Datos de usuario inválidos.", campos=form.errors), 400

    usuario = admin_services.guardar_usuario(estado_actual(), form.data, request.get_json(silent=True) or {})
    return jsonify(usuario=usuario), 201


@admin_bp.route('/usuarios/<usuario_id>', methods=['PUT'])
def editar_usuario(usuario_id):
    form = UsuarioForm()
    if not form.validate_on_submit():
        return jsonify(error="Datos de usuario inválidos.", campos=form.errors), 400

    try:
        usuario = admin_services.guardar_usuario(
            estado_actual(), form.data, request.get_json(silent=True) or {}, usuario_id=usuario_id
        )
    except LookupError:
        abort(404, "Usuario no encontrado.")
    return jsonify(usuario=usuario)


@admin_bp.route('/usuarios/<usuario_id>', methods=['DELETE'])
def eliminar_usuario(usuario_id):
    if usuario_id == g.usuario.get('id'):
        abort(400, "No puedes eliminar tu propio usuario.")
    if not admin_services.eliminar_usuario(estado_actual(), usuario_id):
        abort(404, "Usuario no encontrado.")
    return jsonify(ok=True)


# === PERIODOS Y FECHAS LÍMITE ===

@admin_bp.route('/periodos')
def ver_periodos():
    datos = estado_actual().datos
    return jsonify(
        allowedPeriods=datos.get('allowedPeriods', []),
        periodDeadlines=datos.get('periodDeadlines', {})
    )


@admin_bp.route('/periodos', methods=['PUT'])
def actualizar_periodos():
    cuerpo = request.get_json(silent=True) or {}
    resultado = admin_services.actualizar_periodos(
        estado_actual(),
        abiertos=cuerpo.get('allowedPeriods'),
        fechas_limite=cuerpo.get('periodDeadlines')
    )
    return jsonify(resultado)


# === HORARIOS ===

@admin_bp.route('/horarios')
def listar_horarios():
    horarios = admin_services.horarios_de(estado_actual().datos, request.args.get('teacherId'))
    return jsonify(horarios=horarios)


@admin_bp.route('/horarios', methods=['POST'])
def crear_horario():
    horario = admin_services.guardar_horario(estado_actual(), request.get_json(silent=True) or {})
    return jsonify(horario=horario), 201


@admin_bp.route('/horarios/<horario_id>', methods=['PUT'])
def reemplazar_horario(horario_id):
    try:
        horario = admin_services.guardar_horario(
            estado_actual(), request.get_json(silent=True) or {}, horario_id=horario_id
        )
    except LookupError:
        abort(404, "Horario no encontrado.")
    return jsonify(horario=horario)


@admin_bp.route('/horarios/<horario_id>', methods=['DELETE'])
def eliminar_horario(horario_id):
    if not admin_services.eliminar_horario(estado_actual(), horario_id):
        abort(404, "Horario no encontrado.")
    return jsonify(ok=True)


# === MATERIAS Y TALLERES ===

@admin_bp.route('/estructura', methods=['PUT'])
def actualizar_estructura():
    """Materias visibles y ocultas de un grado: {grade, subjects?, hiddenSubjects?}."""
    cuerpo = request.get_json(silent=True) or {}
    grado = cuerpo.get('grade')
    if not grado:
        abort(400, "Indica el grado (grade).")

    try:
        info = admin_services.actualizar_grado(
            estado_actual(), grado,
            materias=cuerpo.get('subjects'),
            ocultas=cuerpo.get('hiddenSubjects')
        )
    except LookupError:
        abort(404, f"Grado inexistente: {grado}")
    return jsonify(grado=info)


@admin_bp.route('/talleres', methods=['PUT'])
def actualizar_talleres():
    cuerpo = request.get_json(silent=True) or {}
    talleres = admin_services.actualizar_talleres(estado_actual(), cuerpo.get('technologies'))
    return jsonify(technologies=talleres)


# === CONEXIÓN CON LA NUBE ===

@admin_bp.route('/conexion')
def estado_conexion():
    verificar_admin()
    return jsonify(conectado=estado_actual().conectado)


@admin_bp.route('/conexion', methods=['POST'])
def conectar():
    verificar_admin()
    form = ConexionForm()
    if not form.validate_on_submit():
        return jsonify(error="Pega la configuración de Firebase/Firestore.", campos=form.errors), 400

    # ConfiguracionInvalida -> 400 con el mensaje de validación
    estado = estado_actual()
    estado.configurar_remoto(form.configuracion.data)
    return jsonify(conectado=estado.conectado)


@admin_bp.route('/conexion', methods=['DELETE'])
def desconectar():
    verificar_admin()
    estado = estado_actual()
    estado.desconectar_remoto()
    return jsonify(conectado=estado.conectado)
