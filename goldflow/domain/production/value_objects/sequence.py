"""
Department sequence model.

Static, totally ordered list of the nine departments with their display
metadata. Pure lookups; callers reject unknown identifiers before reaching
this module (see DepartmentName.parse).
"""

from .enums import DepartmentName

DEPARTMENT_ORDER: tuple[DepartmentName, ...] = (
    DepartmentName.CAD,
    DepartmentName.PRINT,
    DepartmentName.CASTING,
    DepartmentName.FILLING,
    DepartmentName.MEENA,
    DepartmentName.POLISH_1,
    DepartmentName.SETTING,
    DepartmentName.POLISH_2,
    DepartmentName.ADDITIONAL,
)

DISPLAY_NAMES: dict[DepartmentName, str] = {
    DepartmentName.CAD: "CAD Design",
    DepartmentName.PRINT: "3D Printing",
    DepartmentName.CASTING: "Casting",
    DepartmentName.FILLING: "Filling",
    DepartmentName.MEENA: "Meena Work",
    DepartmentName.POLISH_1: "First Polish",
    DepartmentName.SETTING: "Stone Setting",
    DepartmentName.POLISH_2: "Final Polish",
    DepartmentName.ADDITIONAL: "Additional Work",
}

TOTAL_DEPARTMENTS = len(DEPARTMENT_ORDER)
FIRST_DEPARTMENT = DEPARTMENT_ORDER[0]
LAST_DEPARTMENT = DEPARTMENT_ORDER[-1]

_INDEX = {department: position for position, department in enumerate(DEPARTMENT_ORDER)}


def index_of(department: DepartmentName) -> int:
    """Zero-based position in the production sequence."""
    return _INDEX[department]


def sequence_number(department: DepartmentName) -> int:
    """1-based sequence index shown to users."""
    return _INDEX[department] + 1


def next_department(department: DepartmentName) -> DepartmentName | None:
    position = _INDEX[department]
    if position + 1 < TOTAL_DEPARTMENTS:
        return DEPARTMENT_ORDER[position + 1]
    return None


def previous_department(department: DepartmentName) -> DepartmentName | None:
    position = _INDEX[department]
    if position > 0:
        return DEPARTMENT_ORDER[position - 1]
    return None


def preceding_departments(department: DepartmentName) -> tuple[DepartmentName, ...]:
    return DEPARTMENT_ORDER[: _INDEX[department]]


def display_name(department: DepartmentName) -> str:
    return DISPLAY_NAMES[department]


def is_terminal(department: DepartmentName) -> bool:
    return department == LAST_DEPARTMENT
