"""
Registro de esquemas: colección Firestore <-> tabla SQL.

Aquí está el control total de:
- nombre de colección en Firestore (incluye los typos históricos
  PAYMENT_METHHOD y MERCHART, que no se pueden renombrar sin migrar datos)
- nombre de tabla en la base local
- campo que actúa como PK natural de cada entidad
- tipo declarado de cada campo (reemplaza la inferencia por nombre)
- campos requeridos

Este módulo no realiza I/O: solo define configuración.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Union

from app.shared.constants.entity_types import EntityType
from .types import FieldType

EntityRef = Union[EntityType, str]

S = FieldType.STRING
N = FieldType.NUMBER
I = FieldType.INTEGER
B = FieldType.BOOLEAN
T = FieldType.TIMESTAMP
J = FieldType.JSON

DEFAULT_PRIMARY_KEY = "id"


@dataclass(frozen=True)
class EntitySchema:
    """
    Declaración de una entidad.

    NOTA sobre el PK:
    - En Firestore el PK viaja como ID del documento, no como campo.
    - En la tabla local es una columna más (la PRIMARY KEY).
    """

    entity_type: EntityType
    collection_name: str
    table_name: str
    primary_key: str
    fields: Mapping[str, FieldType] = field(default_factory=dict)
    required: frozenset[str] = frozenset()

    def field_type(self, name: str) -> Optional[FieldType]:
        if name == self.primary_key:
            return FieldType.STRING
        return self.fields.get(name)

    @property
    def field_names(self) -> list[str]:
        """PK primero, luego los campos en orden de declaración."""
        return [self.primary_key] + [f for f in self.fields if f != self.primary_key]


class SchemaRegistry:
    """
    Mapeo bidireccional y total entre entidades, colecciones y tablas.

    Se construye una vez al inicio y se inyecta en cada componente.
    Nombres desconocidos se devuelven sin cambios (mapeo identidad) para
    que colecciones ad-hoc sigan siendo utilizables en forma degradada.
    """

    def __init__(self, schemas: Iterable[EntitySchema]) -> None:
        self._by_entity: dict[EntityType, EntitySchema] = {}
        self._by_table: dict[str, EntitySchema] = {}
        self._by_collection: dict[str, EntitySchema] = {}

        for schema in schemas:
            if schema.entity_type in self._by_entity:
                raise ValueError(f"Entidad declarada dos veces: {schema.entity_type.value}")
            if schema.table_name in self._by_table:
                raise ValueError(f"Tabla declarada dos veces: {schema.table_name}")
            if schema.collection_name in self._by_collection:
                raise ValueError(f"Colección declarada dos veces: {schema.collection_name}")
            self._by_entity[schema.entity_type] = schema
            self._by_table[schema.table_name] = schema
            self._by_collection[schema.collection_name] = schema

        for name, schema in self._by_collection.items():
            other = self._by_table.get(name)
            if other is not None and other.entity_type != schema.entity_type:
                raise ValueError(f"Nombre ambiguo entre colección y tabla: {name}")

        missing = [e.value for e in EntityType if e not in self._by_entity]
        if missing:
            raise ValueError(f"Entidades sin esquema declarado: {', '.join(missing)}")

    def resolve(self, ref: EntityRef) -> Optional[EntityType]:
        """
        Resuelve una entidad a partir del enum, su valor, el nombre de
        colección o el nombre de tabla. None si no corresponde a ninguna.
        """
        if isinstance(ref, EntityType):
            return ref
        for index in (self._by_collection, self._by_table):
            schema = index.get(ref)
            if schema is not None:
                return schema.entity_type
        try:
            return EntityType(ref)
        except ValueError:
            return None

    def schema_of(self, ref: EntityRef) -> Optional[EntitySchema]:
        entity = self.resolve(ref)
        return self._by_entity[entity] if entity is not None else None

    def require_schema(self, ref: EntityRef) -> EntitySchema:
        schema = self.schema_of(ref)
        if schema is None:
            raise KeyError(f"Entidad sin esquema: {ref}")
        return schema

    def table_name_of(self, ref: EntityRef) -> str:
        schema = self.schema_of(ref)
        return schema.table_name if schema else str(ref)

    def collection_name_of(self, ref: EntityRef) -> str:
        schema = self.schema_of(ref)
        return schema.collection_name if schema else str(ref)

    def entity_type_of_table(self, table_name: str) -> EntityRef:
        """Tabla -> entidad. Un nombre desconocido se devuelve tal cual."""
        schema = self._by_table.get(table_name)
        return schema.entity_type if schema else table_name

    def collection_name_of_table(self, table_name: str) -> str:
        schema = self._by_table.get(table_name)
        return schema.collection_name if schema else table_name

    def primary_key_of(self, ref: EntityRef) -> str:
        schema = self.schema_of(ref)
        return schema.primary_key if schema else DEFAULT_PRIMARY_KEY

    def entity_types(self) -> list[EntityType]:
        return list(self._by_entity)

    def schemas(self) -> list[EntitySchema]:
        return list(self._by_entity.values())


def _schema(
    entity_type: EntityType,
    collection_name: str,
    primary_key: str,
    fields: Mapping[str, FieldType],
    required: Iterable[str] = (),
) -> EntitySchema:
    return EntitySchema(
        entity_type=entity_type,
        collection_name=collection_name,
        table_name=entity_type.value,
        primary_key=primary_key,
        fields=dict(fields),
        required=frozenset(required),
    )


_CATEGORY_FIELDS = {
    "name": S, "type": S, "isSystemDefault": B, "keywords": J, "icon": S,
    "color": S, "parentCategoryID": S, "displayOrder": I, "isHidden": B,
    "userID": S, "createdAt": T, "updatedAt": T,
}


def default_schemas() -> list[EntitySchema]:
    """
    Esquemas de la app de finanzas personales.

    IMPORTANTE:
    - Mantén estos campos alineados con las estructuras del cliente móvil.
    - El PK no se declara dentro de `fields`: lo agrega EntitySchema.
    """
    return [
        _schema(EntityType.USER, "USER", "userID", {
            "email": S, "passwordHash": S, "name": S, "role": S,
            "accountStatus": S, "monthlyIncome": N, "currentBalance": N,
            "failedLoginAttempts": I, "lastLoginTime": T, "currency": S,
            "language": S, "timezone": S, "emailVerified": B, "phoneNumber": S,
            "avatarURL": S, "budgetRule": S, "createdAt": T, "updatedAt": T,
        }, required=["email"]),
        _schema(EntityType.CATEGORY, "CATEGORIES", "categoryID", _CATEGORY_FIELDS,
                required=["name", "type"]),
        _schema(EntityType.CATEGORY_DEFAULT, "CATEGORIES_DEFAULT", "categoryID", _CATEGORY_FIELDS,
                required=["name", "type"]),
        _schema(EntityType.TRANSACTION, "TRANSACTIONS", "transactionID", {
            "userID": S, "categoryID": S, "amount": N, "type": S, "date": T,
            "description": S, "paymentMethod": S, "merchantName": S,
            "merchantLocation": S, "latitude": N, "longitude": N, "tags": J,
            "lastModifiedAt": T, "location": J, "isDeleted": B, "deletedAt": T,
            "createdBy": S, "hasAttachment": B, "recurTxnID": S,
            "parentTransactionID": S, "createdAt": T, "updatedAt": T,
        }, required=["userID", "amount", "type", "date"]),
        _schema(EntityType.BUDGET, "BUDGET", "budgetID", {
            "userID": S, "categoryID": S, "monthYear": S, "budgetAmount": N,
            "spentAmount": N, "warningThreshold": N, "createdAt": T, "updatedAt": T,
        }, required=["userID", "categoryID", "budgetAmount"]),
        _schema(EntityType.GOAL, "GOAL", "goalID", {
            "userID": S, "name": S, "targetAmount": N, "savedAmount": N,
            "startDate": T, "endDate": T, "monthlyContribution": N, "status": S,
            "createdAt": T, "updatedAt": T,
        }, required=["userID", "name", "targetAmount"]),
        _schema(EntityType.RECURRING_TXN, "RECURRING_TXN", "recurTxnID", {
            "userID": S, "categoryID": S, "amount": N, "frequency": S,
            "startDate": T, "nextDueDate": T, "description": S, "type": S,
            "isActive": B, "createdAt": T,
        }),
        _schema(EntityType.BUDGET_HISTORY, "BUDGET_HISTORY", "historyID", {
            "budgetID": S, "userID": S, "changeType": S, "oldAmount": N,
            "newAmount": N, "oldWarningThreshold": N, "newWarningThreshold": N,
            "reason": S, "notes": S, "changedAt": T, "changedBy": S,
        }),
        _schema(EntityType.GOAL_CONTRIBUTION, "GOAL_CONTRIBUTION", "contributionID", {
            "goalID": S, "userID": S, "amount": N, "contributionType": S,
            "sourceTransactionID": S, "note": S, "contributedAt": T, "createdBy": S,
        }),
        _schema(EntityType.SYNC_LOG, "SYNC_LOG", "logID", {
            "userID": S, "deviceID": S, "syncTime": T, "status": S,
            "conflictDetails": J, "tableName": S, "recordID": S, "action": S,
            "createdAt": T,
        }),
        _schema(EntityType.ACTIVITY_LOG, "ACTIVITY_LOG", "logID", {
            "userId": S, "userEmail": S, "userName": S, "action": S,
            "entityType": S, "entityId": S, "details": J, "ipAddress": S,
            "userAgent": S, "timestamp": T, "createdAt": T,
        }),
        _schema(EntityType.NOTIFICATION, "NOTIFICATION", "notificationID", {
            "userID": S, "type": S, "title": S, "message": S, "isRead": B,
            "priority": S, "relatedEntityType": S, "relatedEntityID": S,
            "actionURL": S, "createdAt": T, "readAt": T, "expiresAt": T,
        }),
        _schema(EntityType.DEVICE, "DEVICE", "deviceID", {
            "userID": S, "deviceUUID": S, "deviceName": S, "deviceType": S,
            "osVersion": S, "appVersion": S, "fcmToken": S, "isActive": B,
            "lastSyncAt": T, "lastActiveAt": T, "createdAt": T,
        }),
        _schema(EntityType.ATTACHMENT, "ATTACHMENT", "attachmentID", {
            "transactionID": S, "fileURL": S, "fileName": S, "fileType": S,
            "fileSize": I, "mimeType": S, "thumbnailURL": S, "ocrRawText": S,
            "ocrConfidence": N, "wasEdited": B, "uploadedAt": T,
            "uploadedBy": S, "createdAt": T,
        }),
        _schema(EntityType.PAYMENT_METHOD, "PAYMENT_METHHOD", "methodID", {
            "userID": S, "methodType": S, "name": S, "lastFourDigits": S,
            "icon": S, "color": S, "isDefault": B, "isActive": B,
            "displayOrder": I, "balance": N, "notes": S, "createdAt": T,
            "updatedAt": T,
        }),
        _schema(EntityType.MERCHANT, "MERCHART", "merchantID", {
            "name": S, "category": S, "defaultCategoryID": S, "logo": S,
            "address": S, "latitude": N, "longitude": N, "phone": S,
            "website": S, "keywords": J, "usageCount": I, "isVerified": B,
            "createdAt": T,
        }),
        _schema(EntityType.TAG, "TAG", "tagID", {
            "userID": S, "name": S, "color": S, "icon": S, "description": S,
            "usageCount": I, "createdAt": T,
        }),
        _schema(EntityType.TRANSACTION_TAG, "TRANSACTION_TAG", "id", {
            "transactionID": S, "tagID": S, "taggedAt": T,
        }),
        _schema(EntityType.SPLIT_TRANSACTION, "SPLIT_TRANSACTION", "splitID", {
            "parentTransactionID": S, "childTransactionID": S, "splitAmount": N,
            "splitPercentage": N, "participantName": S, "notes": S, "createdAt": T,
        }),
        _schema(EntityType.REPORT, "REPORT", "reportID", {
            "userID": S, "reportType": S, "period": S, "totalIncome": N,
            "totalExpense": N, "balance": N, "savingsRate": N,
            "transactionCount": I, "categoryBreakdown": J, "topCategories": J,
            "comparisonPrevious": J, "insights": J, "generatedAt": T,
        }),
        _schema(EntityType.APP_SETTINGS, "APP_SETTINGS", "settingID", {
            "userID": S, "currency": S, "language": S, "timezone": S,
            "dateFormat": S, "theme": S, "budgetRule": S,
            "notificationEnabled": B, "notificationTime": S,
            "reminderFrequency": S, "biometricEnabled": B, "autoBackup": B,
            "backupFrequency": S, "privacyMode": B, "createdAt": T, "updatedAt": T,
        }),
        _schema(EntityType.CATEGORY_BUDGET_TEMPLATE, "CATEGORY_BUDGET_TEMPLATE", "templateID", {
            "templateName": S, "description": S, "isSystemDefault": B,
            "userID": S, "allocations": J, "createdAt": T,
        }),
        _schema(EntityType.EXPENSES, "expenses", "expenseID", {
            "userID": S, "categoryID": S, "amount": N, "description": S,
            "date": T, "createdAt": T, "updatedAt": T,
        }),
    ]


def build_default_registry() -> SchemaRegistry:
    return SchemaRegistry(default_schemas())
