"""
Sincronización entre Firestore (fuente de verdad) y la base SQL local.

Este paquete contiene el núcleo del pipeline:
- Registro de esquemas: colección <-> tabla y PK declarada por entidad.
- Normalizador de tipos: Timestamp nativo <-> string ISO-8601.
- Export: Firestore -> registros listos para tabla.
- Upsert por batches: registros -> Firestore en chunks de <= 500 operaciones.
- Delta sync: registros locales con isSynced = false -> Firestore.
- Merge: diferencias por campo y "Firestore gana" por defecto.
- Consulta resiliente: rango + igualdad + orden con fallback en memoria
  cuando falta el índice compuesto.

Objetivos de diseño:
- Commits secuenciales: un prefijo de chunks confirmado, un sufijo no.
- Al-menos-una-vez: isSynced solo pasa a true tras un commit confirmado.
- Sin estado global: cada componente recibe su configuración al construirse.
"""
