"""
Cálculo de promedios y alertas tempranas a partir del documento escolar.

Las calificaciones se guardan como texto; "" significa "sin capturar" y
nunca cuenta como cero.
"""

from typing import Optional

from .constants import PERIODOS_TRIMESTRE, SEMAFORO_ROJO


def _numero(valor) -> Optional[float]:
    try:
        return float(valor)
    except (TypeError, ValueError):
        return None


def _formato(valor: float) -> str:
    return f"{valor:.1f}"


def materias_visibles(datos: dict, grado: str) -> list:
    """Materias del grado que sí cuentan para promedio y boleta."""
    info = next((g for g in datos.get('gradesStructure', []) if g.get('grade') == grado), None)
    if not info:
        return []
    ocultas = info.get('hiddenSubjects') or []
    return [m for m in info.get('subjects', []) if m not in ocultas]


def promedio_final(calificaciones: dict) -> str:
    """Promedio de los tres trimestres con un decimal; vacío si falta alguno."""
    valores = [_numero((calificaciones or {}).get(p)) for p in PERIODOS_TRIMESTRE]
    if any(v is None for v in valores):
        return ''
    return _formato(sum(valores) / len(valores))


def promedio_general(datos: dict, alumno: dict) -> str:
    """
    Promedio de los promedios finales del alumno, excluyendo materias ocultas.

    Returns:
        str: Un decimal, o '-' si ninguna materia tiene los tres trimestres.
    """
    info = next((g for g in datos.get('gradesStructure', []) if g.get('grade') == alumno.get('grade')), {})
    ocultas = info.get('hiddenSubjects') or []

    finales = []
    for materia, calificaciones in (alumno.get('grades') or {}).items():
        if materia in ocultas:
            continue
        final = promedio_final(calificaciones)
        if final:
            finales.append(float(final))

    return _formato(sum(finales) / len(finales)) if finales else '-'


def promedio_columna(alumnos: list, materia: str, trimestre: int) -> str:
    """Promedio de un grupo en una materia para un trimestre (1..3)."""
    clave = f"trim_{trimestre}"
    valores = [_numero((a.get('grades') or {}).get(materia, {}).get(clave)) for a in alumnos]
    valores = [v for v in valores if v is not None]
    return _formato(sum(valores) / len(valores)) if valores else '-'


def alumnos_en_riesgo(datos: dict, alumnos: list, corte: int, materias: Optional[list] = None) -> list:
    """
    Alumnos con al menos una materia en ROJO en el corte de avance indicado.

    Returns:
        list: [{'id', 'name', 'group', 'riskSubjects': [...]}, ...]
    """
    clave = f"inter_{corte}"
    resultado = []
    for alumno in alumnos:
        revisar = materias if materias is not None else materias_visibles(datos, alumno.get('grade'))
        en_rojo = [m for m in revisar
                   if (alumno.get('grades') or {}).get(m, {}).get(clave) == SEMAFORO_ROJO]
        if en_rojo:
            resultado.append({
                'id': alumno.get('id'),
                'name': alumno.get('name'),
                'group': alumno.get('group'),
                'riskSubjects': en_rojo
            })
    return resultado
