"""
Storage adapter interface for the product sheet API.
Defines the contract that all storage backends must implement.
"""

from typing import Protocol, List, Dict, Any, Optional


class StorageAdapter(Protocol):
    """
    Protocol defining the interface for all storage adapters.

    Rows are returned as plain dicts using the stored column names
    (`nome`, `ordem`, `chave`, ...); routers convert them through
    models.converters.
    """

    def ping(self) -> None:
        """Cheap connectivity check used by /health and /readyz."""
        ...

    # ========== Families ==========

    def list_families(self, include_inactive: bool = False) -> List[Dict[str, Any]]:
        """
        Return families ordered by (ordem, nome).

        Args:
            include_inactive: also return deactivated families
        """
        ...

    def get_family(self, familia_id: int) -> Optional[Dict[str, Any]]:
        """
        Fetch one family row (active or not).

        Returns:
            Dict with family fields, or None if not found.
        """
        ...

    def create_family(
        self,
        nome: str,
        ordem: int = 0,
        marcadores_vista: Optional[str] = None,
    ) -> int:
        """
        Create a new family.

        Args:
            nome: display name (already trimmed / validated)
            ordem: display order
            marcadores_vista: marker collection as canonical JSON text

        Returns:
            Generated family id.
        """
        ...

    def update_family(self, familia_id: int, updates: Dict[str, Any]) -> None:
        """
        Overwrite only the provided keys and bump `updated_at`.

        Raises:
            HTTPException 404 if the family does not exist.
        """
        ...

    def deactivate_family(self, familia_id: int) -> None:
        """
        Set ativo = 0. Families are never hard-deleted.

        Raises:
            HTTPException 404 if the family does not exist.
        """
        ...

    # ========== Technical variables ==========

    def list_variables(self, active_only: bool = True) -> List[Dict[str, Any]]:
        """Return variables ordered by (ordem, nome)."""
        ...

    def get_variable(self, variavel_id: int) -> Optional[Dict[str, Any]]:
        ...

    def find_active_variable_by_key(self, chave: str) -> Optional[Dict[str, Any]]:
        """Used to keep `chave` unique among active variables."""
        ...

    def create_variable(self, data: Dict[str, Any]) -> int:
        """
        Args:
            data: chave, nome, categoria, tipo, opcoes (newline text), ordem

        Returns:
            Generated variable id.
        """
        ...

    def update_variable(self, variavel_id: int, updates: Dict[str, Any]) -> None:
        """
        Raises:
            HTTPException 404 if the variable does not exist.
        """
        ...

    def deactivate_variable(self, variavel_id: int) -> None:
        """
        Deactivation only: markers may still reference the key.

        Raises:
            HTTPException 404 if the variable does not exist.
        """
        ...

    def list_variable_categories(self) -> List[str]:
        """Sorted distinct non-empty categories of active variables."""
        ...

    # ========== Per-family option catalog ==========

    def list_options(self, familia_id: int) -> List[Dict[str, Any]]:
        """All options of one family, in insertion order."""
        ...

    def create_option(self, familia_id: int, variavel_chave: str, valor: str) -> int:
        """
        Duplicated values for the same (family, key) are allowed.

        Returns:
            Generated option id.
        """
        ...

    def delete_option(self, familia_id: int, variavel_chave: str, opcao_id: int) -> bool:
        """
        Returns:
            False if no option with that id exists for (family, key).
        """
        ...
