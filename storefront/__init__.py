# ==============================================================================
# STOREFRONT - Tienda con verificación de edad, carrito y checkout
# ==============================================================================
# Paquetes:
#   models/        → Entidades (dataclasses)
#   repositories/  → Persistencia JSON
#   services/      → Lógica de negocio
#   main.py        → Aplicación Flask (páginas + API JSON)
# ==============================================================================
