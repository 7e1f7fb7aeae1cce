"""
Pipeline de sincronización one-way: GitHub Projects (v2) -> PostgreSQL.

Este paquete está diseñado para ejecutarse como job (cron / task scheduler).

Objetivos de diseño:
- Idempotencia: se puede ejecutar N veces sin duplicar datos ni mover
  timestamps de ciclo de vida ya registrados.
- Proyección explícita: los campos dinámicos del tablero se resuelven a
  columnas tipadas (sin JSON blobs).
- Aislamiento de fallos: un issue que falla no detiene el lote; un
  proyecto que falla no detiene los siguientes.
"""
