# ==============================================================================
# SERVICIO DE VERIFICACIÓN DE EDAD
# ==============================================================================
# Decide si el contenido comercial puede mostrarse al visitante actual.
# Es un gate binario: sin verificación no se expone ningún dato comercial,
# solo el aviso de verificación.
# El estado vive en memoria durante la sesión; no se persiste.
# ==============================================================================

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from storefront.models import AgeProof, PageConfig, VerificationState
from storefront.services.audit_service import AuditService
from storefront.services.errors import VerificationError


class AgeVerificationGate:
    """
    Guard de edad con alcance de sesión.

    Uso:
        gate = AgeVerificationGate(minimum_age=18)
        if not gate.should_render(page):
            ... mostrar aviso de verificación ...
    """

    def __init__(
        self,
        minimum_age: int = 18,
        audit_service: AuditService = None,
        visitor: str = ''
    ):
        """
        Args:
            minimum_age: Edad mínima aceptada
            audit_service: Servicio de auditoría (opcional)
            visitor: Identificador del visitante para auditoría
        """
        self.minimum_age = minimum_age
        self.audit_service = audit_service
        self.visitor = visitor
        self._state = VerificationState()

    @staticmethod
    def is_required(page_config: PageConfig) -> bool:
        """Función pura del flag de la página (default True)."""
        return bool(page_config.require_age_verification)

    def current_state(self) -> VerificationState:
        """Copia del estado actual."""
        return replace(self._state)

    def should_render(self, page_config: PageConfig) -> bool:
        """True si el contenido real de la página puede renderizarse."""
        return not (self.is_required(page_config) and not self._state.verified)

    @staticmethod
    def age_on(birth_date: date, today: date) -> int:
        """Edad cumplida en la fecha dada."""
        before_birthday = (today.month, today.day) < (birth_date.month, birth_date.day)
        return today.year - birth_date.year - int(before_birthday)

    def satisfies_minimum_age(self, proof: AgeProof, today: date) -> bool:
        birth_date = proof.birth_date if proof else None
        if birth_date is None or birth_date > today:
            return False
        return self.age_on(birth_date, today) >= self.minimum_age

    def verify(self, proof: AgeProof, today: Optional[date] = None) -> VerificationState:
        """
        Verifica la edad del visitante.
        Re-verificar una sesión ya verificada devuelve el estado existente
        sin cambios.

        Args:
            proof: Prueba con la fecha de nacimiento
            today: Fecha de referencia (default: hoy)

        Returns:
            Estado de verificación resultante

        Raises:
            VerificationError: si la prueba no alcanza la edad mínima
        """
        if self._state.verified:
            return self.current_state()

        today = today or date.today()
        if not self.satisfies_minimum_age(proof, today):
            if self.audit_service:
                self.audit_service.log_age_rejected(self.visitor)
            raise VerificationError(
                f'Debes tener al menos {self.minimum_age} años para ingresar.'
            )

        self._state = VerificationState(verified=True, timestamp=datetime.now())

        if self.audit_service:
            self.audit_service.log_age_verified(self.visitor)

        return self.current_state()
