"""
Tipos de entidad sincronizados entre Firestore y la base SQL local.

Enumeración cerrada: agregar una entidad nueva implica agregar el miembro
aquí y su declaración en el registro de esquemas.
"""
from enum import Enum


class EntityType(str, Enum):
    """Entidades del dominio de finanzas personales."""

    # Entidades principales
    USER = "USER"
    CATEGORY = "CATEGORY"
    CATEGORY_DEFAULT = "CATEGORY_DEFAULT"
    TRANSACTION = "TRANSACTION"
    BUDGET = "BUDGET"
    GOAL = "GOAL"

    # Recurrentes e historial
    RECURRING_TXN = "RECURRING_TXN"
    BUDGET_HISTORY = "BUDGET_HISTORY"
    GOAL_CONTRIBUTION = "GOAL_CONTRIBUTION"

    # Sistema
    SYNC_LOG = "SYNC_LOG"
    ACTIVITY_LOG = "ACTIVITY_LOG"
    NOTIFICATION = "NOTIFICATION"
    DEVICE = "DEVICE"

    # Adjuntos
    ATTACHMENT = "ATTACHMENT"

    # Medios de pago y comercios
    PAYMENT_METHOD = "PAYMENT_METHOD"
    MERCHANT = "MERCHANT"

    # Etiquetas
    TAG = "TAG"
    TRANSACTION_TAG = "TRANSACTION_TAG"
    SPLIT_TRANSACTION = "SPLIT_TRANSACTION"

    # Reportes y configuración
    REPORT = "REPORT"
    APP_SETTINGS = "APP_SETTINGS"
    CATEGORY_BUDGET_TEMPLATE = "CATEGORY_BUDGET_TEMPLATE"

    # Gastos (colección en minúsculas en Firestore)
    EXPENSES = "EXPENSES"


class WriteKind(str, Enum):
    """Tipo de operación dentro de un batch de escritura."""
    SET = "set"
    DELETE = "delete"


class SortDirection(str, Enum):
    """Dirección de ordenamiento de una consulta."""
    ASCENDING = "asc"
    DESCENDING = "desc"


class QueryState(str, Enum):
    """Estados del ejecutor de consultas por rango."""
    COMPOSITE = "composite"
    RANGE_ONLY = "range_only"
    FAILED = "failed"


# Límite de operaciones por commit impuesto por Firestore
WRITE_BATCH_LIMIT = 500

# Columna de la base local que indica si el registro ya subió a Firestore
SYNC_MARKER_FIELD = "isSynced"

# Columna JSON de la base local con los campos del documento sin columna declarada
EXTRA_FIELDS_COLUMN = "extraFields"

# Campo que actúa como tombstone explícito
TOMBSTONE_FIELD = "isDeleted"

# Campos de auditoría ignorados por defecto al comparar registros
DEFAULT_MERGE_IGNORE_FIELDS = ("updatedAt", "createdAt")
