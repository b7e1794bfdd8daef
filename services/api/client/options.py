# services/api/client/options.py
from __future__ import annotations

import logging
from typing import Dict, List
from urllib.parse import quote

from .errors import ValidationError
from .session import ApiSession

logger = logging.getLogger(__name__)


def _key_segment(variavel_chave: str) -> str:
    # legacy keys may carry "/", "?" or "#"
    return quote(variavel_chave, safe="")


class OptionCatalog:
    """
    Allowed values per variable key for one family.

    Every write is followed by a full refetch so the local map always
    carries server-assigned ids.
    """

    def __init__(self, session: ApiSession, familia_id: int):
        self.session = session
        self.familia_id = familia_id
        self.options: Dict[str, List[Dict]] = {}

    def refresh(self) -> Dict[str, List[Dict]]:
        data = self.session.request("GET", f"/familias/{self.familia_id}/opcoes-variaveis")
        self.options = data or {}
        return self.options

    def values(self, variavel_chave: str) -> List[str]:
        return [o["valor"] for o in self.options.get(variavel_chave, [])]

    def add(self, variavel_chave: str, valor: str) -> Dict[str, List[Dict]]:
        v = (valor or "").strip()
        if not v:
            raise ValidationError("Enter a value.")
        self.session.request(
            "POST",
            f"/familias/{self.familia_id}/variaveis/{_key_segment(variavel_chave)}/opcoes",
            json={"valor": v},
        )
        return self.refresh()

    def remove(self, variavel_chave: str, opcao_id: int) -> Dict[str, List[Dict]]:
        self.session.request(
            "DELETE",
            f"/familias/{self.familia_id}/variaveis/{_key_segment(variavel_chave)}/opcoes/{opcao_id}",
        )
        return self.refresh()
