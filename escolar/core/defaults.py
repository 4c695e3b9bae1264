"""
Generador del documento escolar por defecto.

Es el registro canónico a partir del cual la capa de reconciliación completa
documentos parciales o de versiones anteriores.
"""

import copy

from .constants import (
    GRADOS_ESCOLARES,
    TECNOLOGIAS,
    CLAVES_PERIODO,
)
from .security import hash_password_inicial

VERSION_ESQUEMA = 2
PASSWORD_INICIAL_POR_DEFECTO = '123'


def calificaciones_vacias() -> dict:
    """Un registro GradeScores sin semáforos ni calificaciones capturadas."""
    return {clave: '' for clave in CLAVES_PERIODO}


def generar_calificaciones_vacias(grado: str, estructura: list = None) -> dict:
    """
    Genera el mapa materia -> GradeScores vacío para un grado escolar.

    Args:
        grado: Etiqueta del grado ("1°", "2°", "3°").
        estructura: gradesStructure vigente; si no se indica se usa la de fábrica.

    Returns:
        dict: Una entrada por materia del grado. Grados desconocidos devuelven {}.
    """
    estructura = estructura if estructura is not None else GRADOS_ESCOLARES
    info_grado = next((g for g in estructura if g.get('grade') == grado), None)
    if not info_grado:
        return {}
    return {materia: calificaciones_vacias() for materia in info_grado.get('subjects', [])}


def generar_datos_iniciales(password_inicial: str = PASSWORD_INICIAL_POR_DEFECTO) -> dict:
    """
    Crea el documento SchoolData del primer arranque.

    Los usuarios semilla comparten el hash de 'password_inicial'; el director
    debe cambiarla desde la gestión de personal.
    """
    password_hash = hash_password_inicial(password_inicial)

    usuarios_iniciales = [
        {
            'id': 'admin',
            'name': 'Director Gerardo Durán',
            'username': 'director',
            'passwordHash': password_hash,
            'role': 'admin'
        },
        {
            'id': 'sub1',
            'name': 'Subdirector General',
            'username': 'subdirector',
            'passwordHash': password_hash,
            'role': 'subdirector'
        },
        {
            'id': 't1',
            'name': 'Prof. Juan Pérez (Matemáticas)',
            'username': 'profe',
            'passwordHash': password_hash,
            'role': 'teacher',
            'assignments': [
                {'grade': '1°', 'group': 'A', 'subject': 'Matemáticas'},
                {'grade': '1°', 'group': 'B', 'subject': 'Matemáticas'},
                {'grade': '2°', 'group': 'A', 'subject': 'Matemáticas'},
            ]
        }
    ]

    return {
        'schemaVersion': VERSION_ESQUEMA,
        'name': 'Escuela Secundaria Diurna No. 27 TV. “Alfredo E Uruchurtu”',
        'director': 'Gerardo Durán Diaz',
        'subdirector': 'Nombre del Subdirector(a)',
        'teachers': 25,
        'studentsCount': 0,
        'gradesStructure': copy.deepcopy(GRADOS_ESCOLARES),
        'technologies': list(TECNOLOGIAS),
        'studentsData': [],
        'users': usuarios_iniciales,
        # Solo el primer corte de avance inicia abierto
        'allowedPeriods': ['inter_1'],
        'periodDeadlines': {},
        'citations': [],
        'visitLogs': [],
        'minutas': [],
        'schedules': [],
        'sabanaLayout': {
            'academic': ['t1'],
            'technology': [],
            'support': []
        },
        'alcaldia': 'LA MAGDALENA CONTRERAS',
        'zonaEscolar': '069',
        'turno': 'VESPERTINO'
    }
