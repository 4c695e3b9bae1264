"""
Capa de Servicio del Módulo Admin

Altas, cambios y bajas de personal, horarios, estructura de materias y
control de periodos. Todas las mutaciones se confirman a través de
EstadoEscolar.modificar().
"""

import uuid
from typing import Optional

from escolar.auth.services import perfil_publico
from escolar.core.constants import (
    CLAVES_PERIODO,
    DIAS_SEMANA,
    MODULOS_CLASE,
    ROL_DOCENTE,
    ROL_SUBDIRECTOR,
    ROLES_APOYO,
    TIPOS_HORARIO,
)
from escolar.core.defaults import calificaciones_vacias
from escolar.core.errores import DatosInvalidos
from escolar.core.logger import get_logger
from escolar.core.periodos import interpretar_fecha_limite
from escolar.core.security import hash_password

logger = get_logger(__name__)

MATERIA_TECNOLOGIA = 'Tecnología'

# Los talleres de Tecnología se imparten por secciones de dos grupos
SECCIONES_TECNOLOGIA = {'AC': ['A', 'C'], 'BD': ['B', 'D']}


# === PERSONAL ===

def _normalizar_asignaciones(asignaciones, datos: dict) -> list:
    """
    Valida las asignaciones de un docente y expande las secciones de Tecnología.

    Raises:
        DatosInvalidos: grado/grupo/materia inexistente o taller faltante.
    """
    if not isinstance(asignaciones, list):
        raise DatosInvalidos("Las asignaciones deben ser una lista.")

    estructura = {g['grade']: g for g in datos.get('gradesStructure', [])}
    resultado = []
    for asignacion in asignaciones:
        if not isinstance(asignacion, dict):
            raise DatosInvalidos("Asignación inválida.")

        grado = asignacion.get('grade')
        grupo = asignacion.get('group')
        materia = asignacion.get('subject')
        info = estructura.get(grado)
        if not info or materia not in info.get('subjects', []):
            raise DatosInvalidos(f"Materia '{materia}' no existe en el grado '{grado}'.")

        if materia == MATERIA_TECNOLOGIA:
            taller = asignacion.get('technology')
            if not taller:
                raise DatosInvalidos("Debes seleccionar un taller específico para la asignatura de Tecnología.")
            grupos = SECCIONES_TECNOLOGIA.get(grupo, [grupo])
        else:
            taller = None
            grupos = [grupo]

        for g in grupos:
            if g not in info.get('groups', []):
                raise DatosInvalidos(f"El grupo '{g}' no existe en el grado '{grado}'.")
            nueva = {'grade': grado, 'group': g, 'subject': materia}
            if taller:
                nueva['technology'] = taller
            duplicada = any(a['grade'] == grado and a['group'] == g and a['subject'] == materia
                            for a in resultado)
            if not duplicada:
                resultado.append(nueva)

    return resultado


def _normalizar_horario(horario) -> dict:
    if not isinstance(horario, dict):
        raise DatosInvalidos("El horario laboral debe ser un objeto {día: horario}.")
    return {dia: str(horario.get(dia) or '') for dia in DIAS_SEMANA}


def guardar_usuario(estado, campos: dict, extra: dict, usuario_id: Optional[str] = None) -> dict:
    """
    Crea o actualiza un usuario.

    Args:
        campos: name, username, password, role (ya validados por UsuarioForm).
        extra: JSON original, de donde se leen 'assignments' y 'workSchedule'.
        usuario_id: None para crear.

    Returns:
        dict: Perfil público del usuario guardado.
    """
    rol = campos['role']
    password = campos.get('password') or ''
    if usuario_id is None and not password:
        raise DatosInvalidos("La contraseña es obligatoria para un usuario nuevo.")

    nuevo_hash = hash_password(password) if password else None
    resultado = {}

    def _transformar(datos: dict) -> dict:
        usuarios = datos.get('users', [])

        if any(u.get('username') == campos['username'] and u.get('id') != usuario_id for u in usuarios):
            raise DatosInvalidos(f"El usuario '{campos['username']}' ya existe.")

        if usuario_id is None:
            usuario = {'id': uuid.uuid4().hex}
            usuarios.append(usuario)
        else:
            usuario = next((u for u in usuarios if u.get('id') == usuario_id), None)
            if usuario is None:
                raise LookupError(usuario_id)

        usuario.update({'name': campos['name'], 'username': campos['username'], 'role': rol})
        if nuevo_hash:
            usuario.pop('password', None)
            usuario['passwordHash'] = nuevo_hash

        # Solo los docentes conservan asignaciones; solo el personal de apoyo, horario
        usuario.pop('assignments', None)
        usuario.pop('workSchedule', None)
        if rol == ROL_DOCENTE:
            usuario['assignments'] = _normalizar_asignaciones(extra.get('assignments') or [], datos)
        elif rol in ROLES_APOYO:
            usuario['workSchedule'] = _normalizar_horario(extra.get('workSchedule') or {})

        cambios = {'users': usuarios}
        if rol == ROL_SUBDIRECTOR:
            cambios['subdirector'] = campos['name']

        resultado.update(perfil_publico(usuario))
        return cambios

    estado.modificar(_transformar)
    logger.info(f"Usuario guardado: {campos['username']} (Rol: {rol})")
    return resultado


def eliminar_usuario(estado, usuario_id: str) -> bool:
    eliminado = []

    def _transformar(datos: dict) -> Optional[dict]:
        restantes = [u for u in datos.get('users', []) if u.get('id') != usuario_id]
        if len(restantes) == len(datos.get('users', [])):
            return None
        eliminado.append(usuario_id)
        return {'users': restantes}

    estado.modificar(_transformar)
    if eliminado:
        logger.info(f"Usuario eliminado: {usuario_id}")
    return bool(eliminado)


# === PERIODOS ===

def actualizar_periodos(estado, abiertos=None, fechas_limite=None) -> dict:
    """
    Reemplaza los periodos abiertos y/o las fechas límite.

    Las fechas vacías se eliminan (el periodo queda sin cierre automático);
    las ilegibles se rechazan aquí para avisar al director.
    """
    cambios = {}

    if abiertos is not None:
        if not isinstance(abiertos, list) or any(p not in CLAVES_PERIODO for p in abiertos):
            raise DatosInvalidos(f"Periodos válidos: {', '.join(CLAVES_PERIODO)}.")
        # Sin duplicados, en el orden recibido
        cambios['allowedPeriods'] = list(dict.fromkeys(abiertos))

    if fechas_limite is not None:
        if not isinstance(fechas_limite, dict) or any(p not in CLAVES_PERIODO for p in fechas_limite):
            raise DatosInvalidos(f"Periodos válidos: {', '.join(CLAVES_PERIODO)}.")
        limpias = {}
        for periodo, valor in fechas_limite.items():
            if not valor:
                continue
            if interpretar_fecha_limite(valor) is None:
                raise DatosInvalidos(f"Fecha límite inválida para '{periodo}': {valor!r}")
            limpias[periodo] = valor
        cambios['periodDeadlines'] = limpias

    if not cambios:
        raise DatosInvalidos("No se indicaron periodos ni fechas límite.")

    nuevo = estado.aplicar(cambios)
    logger.info(f"Periodos actualizados: abiertos={nuevo['allowedPeriods']} límites={nuevo['periodDeadlines']}")
    return {'allowedPeriods': nuevo['allowedPeriods'], 'periodDeadlines': nuevo['periodDeadlines']}


# === HORARIOS ===

def horarios_de(datos: dict, docente_id: Optional[str] = None) -> list:
    """Entradas de la sábana de horarios, ordenadas por día y módulo."""
    horarios = [h for h in datos.get('schedules', [])
                if isinstance(h, dict) and (docente_id is None or h.get('teacherId') == docente_id)]
    orden_dias = {dia: i for i, dia in enumerate(DIAS_SEMANA)}
    return sorted(horarios, key=lambda h: (orden_dias.get(h.get('day'), len(DIAS_SEMANA)),
                                           h.get('period') if isinstance(h.get('period'), int) else 0))


def _construir_horario(campos: dict, datos: dict, horario_id: str) -> dict:
    """
    Valida una entrada de horario.

    Raises:
        DatosInvalidos: docente, día, módulo o grupo inválido, o el docente
        ya tiene otra clase en el mismo día y módulo.
    """
    docente_id = campos.get('teacherId')
    if not any(u.get('id') == docente_id for u in datos.get('users', [])):
        raise DatosInvalidos(f"Docente inexistente: {docente_id}")

    dia = campos.get('day')
    if dia not in DIAS_SEMANA:
        raise DatosInvalidos(f"Día inválido: {dia}. Días válidos: {', '.join(DIAS_SEMANA)}.")

    modulo = campos.get('period')
    if isinstance(modulo, str) and modulo.strip().isdigit():
        modulo = int(modulo)
    if isinstance(modulo, bool) or modulo not in MODULOS_CLASE:
        raise DatosInvalidos(f"El módulo debe estar entre {MODULOS_CLASE[0]} y {MODULOS_CLASE[-1]}.")

    grupo = str(campos.get('gradeGroup') or '').strip()
    if not grupo:
        raise DatosInvalidos("Indica el grupo (gradeGroup), ej. '1A' o '11'.")

    tipo = campos.get('type') or TIPOS_HORARIO[0]
    if tipo not in TIPOS_HORARIO:
        raise DatosInvalidos(f"Tipo de horario inválido: {tipo}")

    ocupado = any(h.get('id') != horario_id and h.get('teacherId') == docente_id
                  and h.get('day') == dia and h.get('period') == modulo
                  for h in datos.get('schedules', []) if isinstance(h, dict))
    if ocupado:
        raise DatosInvalidos(f"El docente ya tiene clase el {dia} en el módulo {modulo}.")

    return {'id': horario_id, 'teacherId': docente_id, 'day': dia,
            'period': modulo, 'gradeGroup': grupo, 'type': tipo}


def guardar_horario(estado, campos: dict, horario_id: Optional[str] = None) -> dict:
    """Crea (horario_id=None) o reemplaza una entrada de horario."""
    resultado = {}

    def _transformar(datos: dict) -> dict:
        horarios = datos.get('schedules', [])
        if horario_id is None:
            entrada = _construir_horario(campos, datos, uuid.uuid4().hex)
            horarios.append(entrada)
        else:
            indice = next((i for i, h in enumerate(horarios)
                           if isinstance(h, dict) and h.get('id') == horario_id), None)
            if indice is None:
                raise LookupError(horario_id)
            entrada = _construir_horario(campos, datos, horario_id)
            horarios[indice] = entrada
        resultado.update(entrada)
        return {'schedules': horarios}

    estado.modificar(_transformar)
    logger.info(f"Horario guardado: {resultado['teacherId']} {resultado['day']} módulo {resultado['period']}")
    return resultado


def eliminar_horario(estado, horario_id: str) -> bool:
    eliminado = []

    def _transformar(datos: dict) -> Optional[dict]:
        horarios = datos.get('schedules', [])
        restantes = [h for h in horarios if not (isinstance(h, dict) and h.get('id') == horario_id)]
        if len(restantes) == len(horarios):
            return None
        eliminado.append(horario_id)
        return {'schedules': restantes}

    estado.modificar(_transformar)
    return bool(eliminado)


# === ESTRUCTURA ESCOLAR ===

def _lista_de_texto(valor, campo: str) -> list:
    """Lista de textos sin vacíos ni duplicados, en el orden recibido."""
    if not isinstance(valor, list) or not all(isinstance(v, str) for v in valor):
        raise DatosInvalidos(f"'{campo}' debe ser una lista de textos.")
    return list(dict.fromkeys(v.strip() for v in valor if v.strip()))


def actualizar_grado(estado, grado: str, materias=None, ocultas=None) -> dict:
    """
    Reemplaza las materias y/o las materias ocultas de un grado.

    Las materias nuevas se agregan vacías a los alumnos del grado; las que se
    quitan conservan lo ya capturado en cada alumno.

    Raises:
        LookupError: el grado no existe.
        DatosInvalidos: listas mal formadas o materias ocultas que no existen.
    """
    if materias is None and ocultas is None:
        raise DatosInvalidos("Indica las materias (subjects) y/o las ocultas (hiddenSubjects).")
    if materias is not None:
        materias = _lista_de_texto(materias, 'subjects')
        if not materias:
            raise DatosInvalidos("El grado debe tener al menos una materia.")
    if ocultas is not None:
        ocultas = _lista_de_texto(ocultas, 'hiddenSubjects')

    resultado = {}

    def _transformar(datos: dict) -> dict:
        estructura = datos.get('gradesStructure', [])
        info = next((g for g in estructura if g.get('grade') == grado), None)
        if info is None:
            raise LookupError(grado)

        if materias is not None:
            info['subjects'] = materias
        if ocultas is not None:
            info['hiddenSubjects'] = ocultas
        desconocidas = [m for m in info.get('hiddenSubjects') or [] if m not in info['subjects']]
        if desconocidas:
            raise DatosInvalidos(f"Materias ocultas que no existen en {grado}: {', '.join(desconocidas)}")

        cambios = {'gradesStructure': estructura}
        if materias is not None:
            alumnos = datos.get('studentsData', [])
            for alumno in alumnos:
                if alumno.get('grade') == grado:
                    calificaciones = alumno.setdefault('grades', {})
                    for materia in materias:
                        calificaciones.setdefault(materia, calificaciones_vacias())
            cambios['studentsData'] = alumnos

        resultado.update(info)
        return cambios

    estado.modificar(_transformar)
    logger.info(f"Estructura de {grado} actualizada: materias={resultado['subjects']} "
                f"ocultas={resultado.get('hiddenSubjects')}")
    return resultado


def actualizar_talleres(estado, talleres) -> list:
    talleres = _lista_de_texto(talleres, 'technologies')
    if not talleres:
        raise DatosInvalidos("Debe existir al menos un taller.")
    nuevo = estado.aplicar({'technologies': talleres})
    logger.info(f"Talleres actualizados: {talleres}")
    return nuevo['technologies']
