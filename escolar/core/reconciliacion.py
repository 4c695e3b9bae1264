"""
Capa de Reconciliación (Merge Layer)

Garantiza que el documento escolar en memoria tenga siempre la forma completa
vigente, sin importar qué versión del documento se haya persistido antes
(almacén local o Firestore). Es una función pura: quien la llama decide
dónde persistir el resultado.
"""

import copy
import json
from typing import Any, Optional

from .constants import (
    CLAVES_PERIODO,
    ESTATUS_ACTIVO,
    CAMPO_ULTIMA_ACTUALIZACION,
)
from .defaults import calificaciones_vacias
from .logger import get_logger

logger = get_logger(__name__)

# Campos lista/mapa: un valor vacío o ausente en el documento entrante
# no debe borrar los datos semilla.
CAMPOS_LISTA = ('visitLogs', 'minutas', 'citations', 'schedules',
                'studentsData', 'users', 'allowedPeriods',
                'gradesStructure', 'technologies')
CAMPOS_MAPA = ('periodDeadlines', 'sabanaLayout')
CAMPOS_COLECCION = CAMPOS_LISTA + CAMPOS_MAPA

# Listas cuyos elementos deben ser objetos
CAMPOS_LISTA_DE_OBJETOS = ('gradesStructure',)

# Una lista vacía de periodos abiertos es un estado legítimo (todo cerrado)
CAMPOS_VACIO_VALIDO = ('allowedPeriods',)

# Metadatos del servidor que nunca forman parte del agregado
CAMPOS_DESCARTADOS = (CAMPO_ULTIMA_ACTUALIZACION,)


def _tipo_valido(clave: str, valor: Any) -> bool:
    if clave in CAMPOS_MAPA:
        return isinstance(valor, dict)
    if not isinstance(valor, list):
        return False
    if clave in CAMPOS_LISTA_DE_OBJETOS:
        return all(isinstance(elemento, dict) for elemento in valor)
    return True


# Campos de cada grado que deben ser listas de texto
CAMPOS_GRADO = ('groups', 'subjects', 'hiddenSubjects')


def _normalizar_estructura(datos: dict, defaults: dict) -> None:
    """
    Deja cada grado de gradesStructure con 'grade' de texto y listas de texto
    en groups, subjects y hiddenSubjects. Los grados sin 'grade' se descartan.
    """
    estructura = []
    for info in datos.get('gradesStructure') or []:
        if not isinstance(info.get('grade'), str):
            logger.warning(f"Grado sin nombre descartado de gradesStructure: {info!r}")
            continue
        for campo in CAMPOS_GRADO:
            valor = info.get(campo)
            info[campo] = [v for v in valor if isinstance(v, str)] if isinstance(valor, list) else []
        estructura.append(info)

    datos['gradesStructure'] = estructura or copy.deepcopy(defaults.get('gradesStructure', []))


def _normalizar_estudiantes(datos: dict) -> None:
    """
    Completa el mapa de calificaciones de cada alumno.

    Toda materia del grado del alumno debe tener un GradeScores; las entradas
    faltantes o ilegibles se crean vacías ("sin calificar"), nunca en cero.
    """
    materias_por_grado = {g['grade']: g['subjects'] for g in datos.get('gradesStructure') or []}

    alumnos = [a for a in datos.get('studentsData') or [] if isinstance(a, dict)]
    for alumno in alumnos:
        if not alumno.get('status'):
            alumno['status'] = ESTATUS_ACTIVO

        calificaciones = alumno.get('grades')
        if not isinstance(calificaciones, dict):
            calificaciones = {}
            alumno['grades'] = calificaciones

        grado = alumno.get('grade')
        for materia in materias_por_grado.get(grado, []) if isinstance(grado, str) else []:
            calificaciones.setdefault(materia, calificaciones_vacias())

        for materia, registro in calificaciones.items():
            if not isinstance(registro, dict):
                calificaciones[materia] = calificaciones_vacias()
                continue
            for clave in CLAVES_PERIODO:
                registro.setdefault(clave, '')

    datos['studentsData'] = alumnos


def reconciliar(entrante: Optional[dict], defaults: dict) -> dict:
    """
    Fusiona un documento posiblemente parcial con el documento por defecto.

    Args:
        entrante: Documento leído del almacén local o recibido de Firestore.
        defaults: Documento recién generado por generar_datos_iniciales().

    Returns:
        dict: Documento completo. Todo campo de 'defaults' está presente y se
        sobrescribe campo por campo con los valores presentes en 'entrante';
        los campos de CAMPOS_COLECCION solo se sobrescriben si el valor entrante
        es del tipo correcto y no está vacío.
    """
    resultado = copy.deepcopy(defaults)

    if isinstance(entrante, dict):
        for clave, valor in entrante.items():
            if valor is None or clave in CAMPOS_DESCARTADOS:
                continue

            if clave in CAMPOS_COLECCION:
                if not _tipo_valido(clave, valor):
                    logger.warning(f"Campo '{clave}' con tipo inesperado; se usa el valor por defecto.")
                    continue
                if not valor and clave not in CAMPOS_VACIO_VALIDO:
                    continue

            resultado[clave] = copy.deepcopy(valor)

    if 'schemaVersion' in defaults:
        resultado['schemaVersion'] = defaults['schemaVersion']

    if 'gradesStructure' in resultado:
        _normalizar_estructura(resultado, defaults)
    _normalizar_estudiantes(resultado)
    return resultado


def decodificar_documento(texto: Optional[str], defaults: dict) -> dict:
    """
    Decodifica el JSON guardado en el almacén local y lo reconcilia.

    Un JSON malformado se registra y se trata como "sin datos".
    """
    if not texto:
        return reconciliar(None, defaults)

    try:
        entrante = json.loads(texto)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"Documento local ilegible, se usan los valores por defecto: {e}")
        return reconciliar(None, defaults)

    return reconciliar(entrante, defaults)
