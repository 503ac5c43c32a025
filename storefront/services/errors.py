# ==============================================================================
# ERRORES DE NEGOCIO
# ==============================================================================
# Todos son recuperables: se devuelven a la acción que los provocó, la cual
# muestra un mensaje al usuario. Ninguno deja estado parcialmente modificado.
# Las rutas los convierten a {"ok": False, "error": ..., "code": ...}.
# ==============================================================================


class StorefrontError(Exception):
    """Error base de la tienda."""

    code = 'ERROR'
    status_code = 400

    def __init__(self, message: str = '', code: str = None, **details):
        super().__init__(message or self.code)
        self.message = message or self.code
        if code:
            self.code = code
        self.details = details

    def to_dict(self):
        payload = {'ok': False, 'error': self.message, 'code': self.code}
        if self.details:
            payload['details'] = self.details
        return payload


class VerificationError(StorefrontError):
    """La prueba de edad no satisface la edad mínima."""
    INVALID_PROOF = 'INVALID_PROOF'

    code = INVALID_PROOF
    status_code = 400


class CartError(StorefrontError):
    """Operación de carrito inválida."""
    INVALID_QUANTITY = 'INVALID_QUANTITY'

    code = INVALID_QUANTITY
    status_code = 400


class CheckoutError(StorefrontError):
    """El checkout no puede continuar."""
    EMPTY_INTENT = 'EMPTY_INTENT'
    OVER_STOCK = 'OVER_STOCK'
    STALE_QUANTITY = 'STALE_QUANTITY'
    HANDLE_CLOSED = 'HANDLE_CLOSED'

    status_code = 409


class CatalogUnavailable(StorefrontError):
    """No se pudo consultar el catálogo. Distinto de OVER_STOCK."""
    code = 'CATALOG_UNAVAILABLE'
    status_code = 503


class ProductNotFound(StorefrontError):
    """El producto no existe en el catálogo."""
    code = 'PRODUCT_NOT_FOUND'
    status_code = 404
