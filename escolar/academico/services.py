"""
Capa de Servicio del Módulo Académico

Alta, edición y baja de alumnos y captura de calificaciones. La captura solo procede
si el periodo está en 'allowedPeriods'; cerrar un periodo nunca borra lo ya
capturado.
"""

from typing import Optional

from escolar.core.constants import (
    CLAVES_PERIODO,
    PERIODOS_AVANCE,
    VALORES_SEMAFORO,
    CALIFICACION_MINIMA,
    CALIFICACION_MAXIMA,
    ESTATUS_ACTIVO,
    ROL_DOCENTE,
    ROLES_DIRECTIVOS,
)
from escolar.core.defaults import calificaciones_vacias, generar_calificaciones_vacias
from escolar.core.errores import AccesoDenegado, DatosInvalidos, PeriodoCerrado
from escolar.core.logger import get_logger

logger = get_logger(__name__)


def alumnos_del_grupo(datos: dict, grado: Optional[str] = None, grupo: Optional[str] = None,
                      incluir_egresados: bool = False) -> list:
    alumnos = []
    for alumno in datos.get('studentsData', []):
        if grado and alumno.get('grade') != grado:
            continue
        if grupo and alumno.get('group') != grupo:
            continue
        if not incluir_egresados and alumno.get('status') != ESTATUS_ACTIVO:
            continue
        alumnos.append(alumno)
    return sorted(alumnos, key=lambda a: a.get('name', ''))


def buscar_alumno(datos: dict, alumno_id: int) -> Optional[dict]:
    return next((a for a in datos.get('studentsData', []) if a.get('id') == alumno_id), None)


def _validar_grupo(datos: dict, grado: str, grupo: str) -> dict:
    info = next((g for g in datos.get('gradesStructure', []) if g.get('grade') == grado), None)
    if not info:
        raise DatosInvalidos(f"Grado inexistente: {grado}")
    if grupo not in info.get('groups', []):
        raise DatosInvalidos(f"El grupo '{grupo}' no existe en {grado}.")
    return info


def _validar_taller(datos: dict, taller: Optional[str]) -> None:
    if taller and taller not in datos.get('technologies', []):
        raise DatosInvalidos(f"Taller inexistente: {taller}")


def _siguiente_id(alumnos: list) -> int:
    # Registros antiguos pueden traer ids de texto; solo cuentan los enteros
    ids = [a.get('id') for a in alumnos
           if isinstance(a.get('id'), int) and not isinstance(a.get('id'), bool)]
    return max(ids, default=0) + 1


def agregar_estudiante(estado, campos: dict) -> dict:
    """
    Da de alta un alumno con su mapa de calificaciones vacío.

    El id es consecutivo: el mayor id existente más uno.
    """
    nuevo = {}

    def _transformar(datos: dict) -> dict:
        _validar_grupo(datos, campos['grade'], campos['group'])
        taller = campos.get('technology') or None
        _validar_taller(datos, taller)

        alumnos = datos.get('studentsData', [])
        alumno = {
            'id': _siguiente_id(alumnos),
            'name': campos['name'].strip().upper(),
            'grade': campos['grade'],
            'group': campos['group'],
            'grades': generar_calificaciones_vacias(campos['grade'], datos.get('gradesStructure')),
            'status': ESTATUS_ACTIVO
        }
        if taller:
            alumno['technology'] = taller

        alumnos.append(alumno)
        nuevo.update(alumno)
        return {'studentsData': alumnos, 'studentsCount': len(alumnos)}

    estado.modificar(_transformar)
    logger.info(f"Alumno registrado: {nuevo['name']} ({nuevo['grade']} {nuevo['group']})")
    return nuevo


def actualizar_estudiante(estado, alumno_id: int, cambios: dict) -> dict:
    """
    Edición parcial de un alumno: nombre, grado, grupo, taller o estatus.

    Un cambio de grado agrega vacías las materias del nuevo grado y conserva
    las calificaciones ya capturadas. 'technology': None quita el taller.

    Raises:
        LookupError: el alumno no existe.
        DatosInvalidos: grado, grupo o taller inexistente.
    """
    actualizado = {}

    def _transformar(datos: dict) -> dict:
        alumno = buscar_alumno(datos, alumno_id)
        if alumno is None:
            raise LookupError(alumno_id)

        if 'grade' in cambios or 'group' in cambios:
            grado = cambios.get('grade', alumno.get('grade'))
            grupo = cambios.get('group', alumno.get('group'))
            info = _validar_grupo(datos, grado, grupo)
            alumno['grade'], alumno['group'] = grado, grupo
            calificaciones = alumno.setdefault('grades', {})
            for materia in info.get('subjects', []):
                calificaciones.setdefault(materia, calificaciones_vacias())

        if 'technology' in cambios:
            _validar_taller(datos, cambios['technology'])
            if cambios['technology']:
                alumno['technology'] = cambios['technology']
            else:
                alumno.pop('technology', None)

        if 'name' in cambios:
            alumno['name'] = cambios['name'].strip().upper()
        if 'status' in cambios:
            alumno['status'] = cambios['status']

        actualizado.update(alumno)
        return {'studentsData': datos['studentsData']}

    estado.modificar(_transformar)
    logger.info(f"Alumno {alumno_id} actualizado: {sorted(cambios)}")
    return actualizado


def eliminar_estudiante(estado, alumno_id: int) -> bool:
    eliminado = []

    def _transformar(datos: dict) -> Optional[dict]:
        alumnos = datos.get('studentsData', [])
        restantes = [a for a in alumnos if a.get('id') != alumno_id]
        if len(restantes) == len(alumnos):
            return None
        eliminado.append(alumno_id)
        return {'studentsData': restantes, 'studentsCount': len(restantes)}

    estado.modificar(_transformar)
    return bool(eliminado)


def puede_capturar(usuario: dict, alumno: dict, materia: str) -> bool:
    """Directivos capturan todo; un docente solo sus grupos y materias asignadas."""
    rol = usuario.get('role')
    if rol in ROLES_DIRECTIVOS:
        return True
    if rol != ROL_DOCENTE:
        return False

    for asignacion in usuario.get('assignments') or []:
        if (asignacion.get('grade') == alumno.get('grade')
                and asignacion.get('group') == alumno.get('group')
                and asignacion.get('subject') == materia):
            taller = asignacion.get('technology')
            if not taller or taller == alumno.get('technology'):
                return True
    return False


def _normalizar_valor(periodo: str, valor) -> str:
    if valor is None:
        valor = ''

    if periodo in PERIODOS_AVANCE:
        if valor not in VALORES_SEMAFORO:
            raise DatosInvalidos("El semáforo debe ser GREEN, RED o vacío.")
        return valor

    texto = str(valor).strip()
    if texto == '':
        return ''
    try:
        numero = float(texto)
    except ValueError:
        raise DatosInvalidos(f"Calificación no numérica: {valor!r}")
    if not CALIFICACION_MINIMA <= numero <= CALIFICACION_MAXIMA:
        raise DatosInvalidos(f"La calificación debe estar entre {CALIFICACION_MINIMA:g} y {CALIFICACION_MAXIMA:g}.")
    return texto


def registrar_calificacion(estado, usuario: dict, alumno_id: int, materia: str,
                           periodo: str, valor) -> dict:
    """
    Captura un semáforo (inter_k) o una calificación trimestral (trim_k).

    Raises:
        DatosInvalidos: periodo, materia o valor inválido.
        PeriodoCerrado: el periodo no está abierto para captura.
        AccesoDenegado: el docente no tiene asignada esa materia/grupo.
        LookupError: el alumno no existe.

    Returns:
        dict: El GradeScores actualizado de la materia.
    """
    if periodo not in CLAVES_PERIODO:
        raise DatosInvalidos(f"Periodo inválido: {periodo}")
    valor = _normalizar_valor(periodo, valor)
    registro = {}

    def _transformar(datos: dict) -> dict:
        if periodo not in datos.get('allowedPeriods', []):
            raise PeriodoCerrado(periodo)

        alumno = buscar_alumno(datos, alumno_id)
        if alumno is None:
            raise LookupError(alumno_id)
        calificaciones = alumno.get('grades', {})
        if materia not in calificaciones:
            raise DatosInvalidos(f"El alumno no cursa '{materia}'.")
        if not puede_capturar(usuario, alumno, materia):
            raise AccesoDenegado("No tienes asignada esta materia en el grupo del alumno.")

        calificaciones[materia][periodo] = valor
        registro.update(calificaciones[materia])
        return {'studentsData': datos['studentsData']}

    estado.modificar(_transformar)
    logger.info(f"Calificación capturada por {usuario.get('username')}: "
                f"alumno {alumno_id}, {materia}, {periodo}={valor!r}")
    return registro
