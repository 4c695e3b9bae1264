"""
Capa de Servicio de los Registros de Subdirección

Los registros se ligan al alumno por nombre y grupo en texto libre (no hay
llave foránea), para permitir captura manual. Se crean al inicio de la lista,
se editan reemplazándolos completos y se eliminan de forma definitiva.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from escolar.core.constants import ROL_DOCENTE
from escolar.core.errores import DatosInvalidos
from escolar.core.logger import get_logger

logger = get_logger(__name__)

# Tipo de registro en la URL -> campo del documento escolar
COLECCIONES = {
    'citatorios': 'citations',
    'bitacora': 'visitLogs',
    'minutas': 'minutas',
}

TIPOS_BITACORA = ('inasistencia', 'conducta', 'accidente')

# Campos permitidos por colección con su valor por defecto
ESQUEMAS = {
    'citations': {
        'studentId': None, 'studentName': '', 'group': '', 'date': '', 'time': '',
        'reason': '', 'teacherId': None, 'teacherName': None,
    },
    'visitLogs': {
        'logType': 'conducta', 'studentId': None, 'studentName': '', 'grade': '', 'group': '',
        'parentName': '', 'date': '', 'startTime': '', 'endTime': '',
        'location': '', 'whoReported': '', 'involvedStudents': '', 'narrative': '',
        'informedDirector': False, 'informedSubdirector': False,
        'informedParent': False, 'informedUdeei': False,
        'teacherActions': '', 'formativeAction': '', 'generatedCitation': False,
        'udeeiActions': '', 'technicalMeasure': '',
        'pedagogicalMeasure': '', 'conciliation': False, 'canalization': False,
        'canalizationInstitution': '', 'bullyingProtocol': False, 'bullyingProtocolReason': '',
        'vaSeguro': False, 'vaSeguroObservation': '',
        'agreementsParent': '', 'agreementsStudent': '', 'attentionToParent': '',
        'conformityStaffId': None,
    },
    'minutas': {
        'studentId': None, 'studentName': '', 'grade': '', 'group': '', 'parentName': '',
        'date': '', 'startTime': '', 'subject': '', 'description': '',
        'previousActions': '', 'agreements': '', 'attendedBy': '',
    },
}

OBLIGATORIOS = {
    'citations': ('studentName', 'date'),
    'visitLogs': ('studentName',),
    'minutas': ('studentName',),
}


def coleccion_de(tipo: str) -> Optional[str]:
    return COLECCIONES.get(tipo)


def _construir(coleccion: str, campos: dict, datos: dict) -> dict:
    """Arma el registro a partir de su esquema, ignorando campos desconocidos."""
    registro = {}
    for campo, defecto in ESQUEMAS[coleccion].items():
        valor = campos.get(campo)
        if valor is None:
            valor = defecto
        if isinstance(defecto, bool):
            valor = bool(valor)
        elif campo == 'studentId':
            valor = int(valor) if isinstance(valor, (int, str)) and str(valor).isdigit() else None
        elif valor is not None:
            valor = str(valor).strip()
        registro[campo] = valor

    faltantes = [c for c in OBLIGATORIOS[coleccion] if not registro.get(c)]
    if faltantes:
        raise DatosInvalidos(f"Campos obligatorios: {', '.join(faltantes)}")

    if coleccion == 'visitLogs' and registro['logType'] not in TIPOS_BITACORA:
        raise DatosInvalidos(f"Tipo de bitácora inválido: {registro['logType']}")

    if coleccion == 'citations':
        docente = next((u for u in datos.get('users', []) if registro['teacherId']
                        and u.get('id') == registro['teacherId']), None)
        registro['teacherId'] = docente['id'] if docente else None
        registro['teacherName'] = docente['name'] if docente else None

    return registro


def listar(datos: dict, coleccion: str, usuario: dict) -> list:
    registros = datos.get(coleccion, [])
    # Un docente solo ve los citatorios emitidos a su nombre
    if coleccion == 'citations' and usuario.get('role') == ROL_DOCENTE:
        return [r for r in registros if r.get('teacherId') == usuario.get('id')]
    return registros


def crear(estado, coleccion: str, campos: dict) -> dict:
    nuevo = {}

    def _transformar(datos: dict) -> dict:
        registro = {
            'id': uuid.uuid4().hex,
            **_construir(coleccion, campos, datos),
            'createdAt': datetime.now(timezone.utc).isoformat()
        }
        nuevo.update(registro)
        return {coleccion: [registro] + datos.get(coleccion, [])}

    estado.modificar(_transformar)
    logger.info(f"Registro creado en {coleccion}: {nuevo['id']} ({nuevo['studentName']})")
    return nuevo


def reemplazar(estado, coleccion: str, registro_id: str, campos: dict) -> Optional[dict]:
    """Edición por reemplazo completo; conserva id y fecha de creación."""
    reemplazado = {}

    def _transformar(datos: dict) -> Optional[dict]:
        registros = datos.get(coleccion, [])
        for i, anterior in enumerate(registros):
            if anterior.get('id') == registro_id:
                registros[i] = {
                    'id': registro_id,
                    **_construir(coleccion, campos, datos),
                    'createdAt': anterior.get('createdAt')
                }
                reemplazado.update(registros[i])
                return {coleccion: registros}
        return None

    estado.modificar(_transformar)
    return reemplazado or None


def eliminar(estado, coleccion: str, registro_id: str) -> bool:
    eliminado = []

    def _transformar(datos: dict) -> Optional[dict]:
        registros = datos.get(coleccion, [])
        restantes = [r for r in registros if r.get('id') != registro_id]
        if len(restantes) == len(registros):
            return None
        eliminado.append(registro_id)
        return {coleccion: restantes}

    estado.modificar(_transformar)
    if eliminado:
        logger.info(f"Registro eliminado de {coleccion}: {registro_id}")
    return bool(eliminado)
