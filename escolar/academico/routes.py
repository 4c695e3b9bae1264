"""
Rutas del Módulo Académico
"""

from flask import jsonify, request, abort, g

from . import academico_bp
from . import services as academico_services
from .forms import EdicionEstudianteForm, EstudianteForm
from escolar.admin import services as admin_services
from escolar.auth.services import usuario_en_sesion
from escolar.core import promedios
from escolar.core.constants import ROLES_DIRECTIVOS, ROL_DOCENTE
from escolar.core.estado import estado_actual


@academico_bp.before_request
def requerir_sesion():
    usuario = usuario_en_sesion()
    if not usuario:
        abort(401, "Inicia sesión para continuar.")
    g.usuario = usuario


def _requerir_directivo():
    if g.usuario.get('role') not in ROLES_DIRECTIVOS:
        abort(403, "Acceso Restringido")


@academico_bp.route('/estructura')
def estructura():
    datos = estado_actual().datos
    return jsonify(
        gradesStructure=datos.get('gradesStructure', []),
        technologies=datos.get('technologies', []),
        allowedPeriods=datos.get('allowedPeriods', [])
    )


@academico_bp.route('/estudiantes')
def listar_estudiantes():
    datos = estado_actual().datos
    alumnos = academico_services.alumnos_del_grupo(
        datos,
        grado=request.args.get('grade'),
        grupo=request.args.get('group'),
        incluir_egresados=request.args.get('egresados') == '1'
    )
    return jsonify(estudiantes=alumnos)


@academico_bp.route('/estudiantes', methods=['POST'])
def crear_estudiante():
    _requerir_directivo()
    form = EstudianteForm()
    if not form.validate_on_submit():
        return jsonify(error="Datos del alumno inválidos.", campos=form.errors), 400

    alumno = academico_services.agregar_estudiante(estado_actual(), form.data)
    return jsonify(estudiante=alumno), 201


@academico_bp.route('/estudiantes/<int:alumno_id>', methods=['PUT'])
def editar_estudiante(alumno_id):
    """Edición parcial; con status='graduated' el alumno egresa y sale de las listas."""
    _requerir_directivo()
    form = EdicionEstudianteForm()
    if not form.validate_on_submit():
        return jsonify(error="Datos del alumno inválidos.", campos=form.errors), 400

    cuerpo = request.get_json(silent=True) or {}
    cambios = {campo: valor for campo, valor in form.data.items() if valor}
    if 'technology' in cuerpo and not cuerpo['technology']:
        cambios['technology'] = None
    if not cambios:
        abort(400, "No se indicó ningún cambio.")

    try:
        alumno = academico_services.actualizar_estudiante(estado_actual(), alumno_id, cambios)
    except LookupError:
        abort(404, "Alumno no encontrado.")
    return jsonify(estudiante=alumno)


@academico_bp.route('/estudiantes/<int:alumno_id>', methods=['DELETE'])
def eliminar_estudiante(alumno_id):
    _requerir_directivo()
    if not academico_services.eliminar_estudiante(estado_actual(), alumno_id):
        abort(404, "Alumno no encontrado.")
    return jsonify(ok=True)


@academico_bp.route('/estudiantes/<int:alumno_id>/calificaciones', methods=['PUT'])
def capturar_calificacion(alumno_id):
    cuerpo = request.get_json(silent=True) or {}
    materia = cuerpo.get('subject')
    periodo = cuerpo.get('period')
    if not materia or not periodo:
        abort(400, "Indica la materia (subject) y el periodo (period).")

    try:
        registro = academico_services.registrar_calificacion(
            estado_actual(), g.usuario, alumno_id, materia, periodo, cuerpo.get('value')
        )
    except LookupError:
        abort(404, "Alumno no encontrado.")
    return jsonify(subject=materia, calificaciones=registro)


@academico_bp.route('/estudiantes/<int:alumno_id>/promedios')
def promedios_estudiante(alumno_id):
    datos = estado_actual().datos
    alumno = academico_services.buscar_alumno(datos, alumno_id)
    if alumno is None:
        abort(404, "Alumno no encontrado.")

    finales = {materia: promedios.promedio_final(calificaciones)
               for materia, calificaciones in alumno.get('grades', {}).items()}
    return jsonify(
        id=alumno_id,
        finales=finales,
        general=promedios.promedio_general(datos, alumno)
    )


@academico_bp.route('/riesgo')
def alumnos_en_riesgo():
    """Alertas tempranas: alumnos con alguna materia en ROJO en el corte indicado."""
    grado = request.args.get('grade')
    grupo = request.args.get('group')
    corte = request.args.get('corte', 1, type=int)
    if not grado or not grupo or corte not in (1, 2, 3):
        abort(400, "Indica grade, group y corte (1-3).")

    datos = estado_actual().datos
    alumnos = academico_services.alumnos_del_grupo(datos, grado, grupo)

    materias = None
    materia = request.args.get('subject')
    if g.usuario.get('role') == ROL_DOCENTE and materia:
        materias = [materia]

    return jsonify(riesgo=promedios.alumnos_en_riesgo(datos, alumnos, corte, materias))


@academico_bp.route('/concentrado')
def concentrado_trimestral():
    """Promedio del grupo por materia en un trimestre."""
    grado = request.args.get('grade')
    grupo = request.args.get('group')
    trimestre = request.args.get('trimestre', 1, type=int)
    if not grado or not grupo or trimestre not in (1, 2, 3):
        abort(400, "Indica grade, group y trimestre (1-3).")

    datos = estado_actual().datos
    alumnos = academico_services.alumnos_del_grupo(datos, grado, grupo)
    return jsonify(
        trimestre=trimestre,
        promedios={m: promedios.promedio_columna(alumnos, m, trimestre)
                   for m in promedios.materias_visibles(datos, grado)}
    )


@academico_bp.route('/horario')
def mi_horario():
    """Horario semanal del usuario en sesión."""
    datos = estado_actual().datos
    return jsonify(horario=admin_services.horarios_de(datos, g.usuario.get('id')))
