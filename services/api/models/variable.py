# services/api/models/variable.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

KIND_TEXT = "texto"
KIND_NUMBER = "numero"
KIND_LIST = "lista"
DATA_KINDS = (KIND_TEXT, KIND_NUMBER, KIND_LIST)

# Key a new marker gets when no active variable exists yet.
OTHER_KEY = "outro"


def _bool(v: Any) -> bool:
  if isinstance(v, bool):
    return v
  if v is None:
    return False
  return str(v).strip().upper() in ("TRUE", "1", "YES", "Y")


@dataclass
class TechnicalVariable:
  """A reusable named attribute (e.g. motor power in HP)."""

  key: str
  name: str
  id: Optional[int] = None
  category: Optional[str] = None
  kind: str = KIND_TEXT
  options: List[str] = field(default_factory=list)
  order: int = 0
  active: bool = True

  @classmethod
  def from_api(cls, data: Dict[str, Any]) -> "TechnicalVariable":
    opcoes = data.get("opcoes") or []
    if isinstance(opcoes, str):
      opcoes = [s.strip() for s in opcoes.splitlines() if s.strip()]
    return cls(
      id=data.get("id"),
      key=str(data.get("chave") or ""),
      name=str(data.get("nome") or ""),
      category=data.get("categoria") or None,
      kind=data.get("tipo") or KIND_TEXT,
      options=list(opcoes),
      order=int(data.get("ordem") or 0),
      active=_bool(data.get("ativo", True)),
    )

  def matches(self, text: str) -> bool:
    t = (text or "").strip().lower()
    if not t:
      return True
    return t in self.name.lower() or t in self.key.lower()


class VariableRegistry:
  """
  Ordered lookup over the active technical variables.

  Markers reference variables by key only, so `resolve` must tolerate
  keys that no longer exist (deactivated variables).
  """

  def __init__(self, variables: Optional[Iterable[TechnicalVariable]] = None):
    self._variables: List[TechnicalVariable] = [v for v in (variables or []) if v.active]
    self._by_key: Dict[str, TechnicalVariable] = {}
    for v in self._variables:
      # first one wins if legacy data carries a duplicate key
      self._by_key.setdefault(v.key, v)

  @classmethod
  def from_api(cls, rows: Iterable[Dict[str, Any]]) -> "VariableRegistry":
    return cls(TechnicalVariable.from_api(r) for r in rows)

  def __len__(self) -> int:
    return len(self._variables)

  def __iter__(self):
    return iter(self._variables)

  def resolve(self, key: Optional[str]) -> Optional[TechnicalVariable]:
    if not key:
      return None
    return self._by_key.get(key)

  def display_name(self, key: Optional[str]) -> str:
    variable = self.resolve(key)
    if variable is None:
      return key or ""
    return variable.name

  def default_key(self) -> str:
    return self._variables[0].key if self._variables else OTHER_KEY

  def search(self, text: str = "") -> List[TechnicalVariable]:
    return [v for v in self._variables if v.matches(text)]

  def categories(self) -> List[str]:
    return sorted({v.category for v in self._variables if v.category})
